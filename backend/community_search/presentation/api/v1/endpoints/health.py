"""Health check endpoint: liveness plus which providers are wired up."""

from fastapi import APIRouter, Depends

from community_search.application.services.provider_factory import ProviderFactory
from community_search.config import get_settings
from community_search.infrastructure.dependencies import get_provider_factory

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(factory: ProviderFactory = Depends(get_provider_factory)) -> dict:
    """Returns application health and a summary of provider availability.

    Open circuits do not make the service unhealthy; search degrades to
    the fallback answer instead.
    """
    settings = get_settings()
    status = factory.provider_status()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "providers": {
            "chat": factory.has_chat_providers,
            "embedding": factory.has_embedding_providers,
            "open_circuits": [f"{s['kind']}:{s['name']}" for s in status if s["open"]],
        },
    }
