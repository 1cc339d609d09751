"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from devsketch.presentation.api.v1.endpoints.health import router as health_router
from devsketch.presentation.api.v1.endpoints.generate import router as generate_router
from devsketch.presentation.api.v1.endpoints.designs import router as designs_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(generate_router)
router.include_router(designs_router)
