"""Health check endpoint — no database access, always available."""

from fastapi import APIRouter, Depends

from devsketch.config import get_settings
from devsketch.infrastructure.dependencies import get_design_notifier
from devsketch.infrastructure.realtime import DesignChangeNotifier

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(
    notifier: DesignChangeNotifier = Depends(get_design_notifier),
) -> dict:
    """Returns the application health and whether generation is configured."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "generation_configured": bool(settings.openrouter_api_key.strip()),
        "realtime_subscribers": notifier.subscriber_count,
    }
