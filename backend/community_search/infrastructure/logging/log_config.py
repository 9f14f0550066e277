"""Logging setup for the search service.

Per-category levels come from Settings, so SQL echo or outbound HTTP
chatter can be raised or silenced without touching pipeline traces.

    from community_search.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import sys

from community_search.config import Settings, get_settings
from community_search.infrastructure.logging.colored_logger import set_colors

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Settings field → loggers whose level it controls.
LOGGER_CATEGORIES: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "asyncpg"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_pipeline": (
        "community_search.pipeline",
        "community_search.application.services",
    ),
    "log_level_providers": ("community_search.infrastructure.providers",),
}


def parse_level(raw: str | None, default: int = logging.INFO) -> int:
    """Level name to logging constant; unknown names fall back to ``default``."""
    if not raw:
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(settings: Settings | None = None) -> None:
    """Apply root and per-category levels and the pipeline color switch."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(parse_level(settings.log_level))

    # uvicorn installs its own handlers; scripts and tests may not have any.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    for field_name, logger_names in LOGGER_CATEGORIES.items():
        level = parse_level(getattr(settings, field_name, None))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    set_colors(settings.log_colors)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s sql=%s http=%s pipeline=%s providers=%s colors=%s",
        settings.log_level,
        settings.log_level_sql,
        settings.log_level_http,
        settings.log_level_pipeline,
        settings.log_level_providers,
        settings.log_colors,
    )
