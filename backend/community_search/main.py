"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from community_search.config import get_settings
from community_search.infrastructure.database import Base, engine
from community_search.infrastructure.dependencies import get_provider_factory
from community_search.infrastructure.logging.log_config import setup_logging
from community_search.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_schema() -> None:
    """Enable pgvector and create any missing tables.

    Search still starts when the database is unreachable; requests that
    touch storage will fail until it comes back.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.warning("Could not prepare database schema: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: set up logging and the schema, then report providers."""
    setup_logging()

    await _ensure_schema()

    factory = get_provider_factory()
    status = factory.provider_status()
    logger.info(
        "Providers configured: chat=%s, embedding=%s",
        [s["name"] for s in status if s["kind"] == "chat"] or "none",
        [s["name"] for s in status if s["kind"] == "embedding"] or "none",
    )
    if not factory.has_embedding_providers:
        logger.warning("No embedding provider configured; searches will return the fallback answer")

    yield

    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "community_search.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
