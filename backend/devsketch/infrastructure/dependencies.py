"""Dependency wiring — FastAPI providers and the editor session factory."""

from functools import lru_cache

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devsketch.config import Settings, get_settings
from devsketch.application.interfaces import DesignRepository
from devsketch.application.services import (
    CodeGenerationOrchestrator,
    DesignResolver,
    EditorSyncService,
    SketchToCodeService,
    SlidingWindowRateLimiter,
)
from devsketch.infrastructure.database.repositories import SQLAlchemyDesignRepository
from devsketch.infrastructure.database.session import async_session_factory
from devsketch.infrastructure.generation import HttpGenerationGateway
from devsketch.infrastructure.identity import StaticActorProvider
from devsketch.infrastructure.openrouter import OpenRouterClient
from devsketch.infrastructure.realtime import DesignChangeNotifier
from devsketch.infrastructure.storage import (
    JsonFileKeyValueStore,
    KeyValueStore,
    LocalDesignStorage,
)


@lru_cache
def get_design_notifier() -> DesignChangeNotifier:
    """Process-wide notifier; every repository publishes through it."""
    return DesignChangeNotifier()


@lru_cache
def get_rate_limiter() -> SlidingWindowRateLimiter:
    settings = get_settings()
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_session_factory


def get_design_repository(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    notifier: DesignChangeNotifier = Depends(get_design_notifier),
) -> DesignRepository:
    """Provides the SQLAlchemy-backed design repository."""
    return SQLAlchemyDesignRepository(session_factory, notifier)


def get_sketch_to_code_service(
    rate_limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
) -> SketchToCodeService:
    """Provides a SketchToCodeService with OpenRouter as the chat provider.

    Without an API key the service is still built; it answers every request
    with a transport error instead of failing at startup.
    """
    settings = get_settings()

    provider = None
    if settings.openrouter_api_key.strip():
        provider = OpenRouterClient(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            app_name=settings.openrouter_app_name,
        )

    return SketchToCodeService(
        provider,
        model=settings.generation_model,
        fallback_model=settings.generation_fallback_model,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens,
        fallback_max_tokens=settings.generation_fallback_max_tokens,
        model_timeout=settings.generation_model_timeout_seconds,
        rate_limiter=rate_limiter,
    )


def build_editor_sync_service(
    repository: DesignRepository,
    *,
    actor_id: str | None = None,
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> EditorSyncService:
    """Wire an editor session against ``repository`` and the generation endpoint."""
    settings = settings or get_settings()

    store = store or JsonFileKeyValueStore(
        settings.local_storage_dir,
        quota_bytes=settings.local_storage_quota_bytes,
    )
    local_storage = LocalDesignStorage(store, settings.legacy_session_keys)

    gateway = HttpGenerationGateway(
        settings.generation_endpoint_url,
        http_client=http_client,
        timeout=settings.generation_timeout_seconds,
    )
    orchestrator = CodeGenerationOrchestrator(
        gateway,
        timeout_seconds=settings.generation_timeout_seconds,
        complex_sketch_threshold=settings.complex_sketch_threshold,
    )

    return EditorSyncService(
        repository,
        local_storage,
        DesignResolver(repository, local_storage),
        orchestrator,
        StaticActorProvider(actor_id),
        debounce_seconds=settings.persist_debounce_seconds,
    )
