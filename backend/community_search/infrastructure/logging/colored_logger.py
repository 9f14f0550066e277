"""Colored pipeline logger — one trace line per stage of a member search.

Stages are color-coded so a single query can be followed from intent
classification to the formatted answer:

    Blue     intent classification
    Yellow   generative extraction
    Cyan     filters, ranking, formatting
    Magenta  retrieval
    Green    completion
    Red      errors

Colors are switched off globally with ``set_colors(False)``
(``LOG_COLORS=false``), which keeps the same text without escape codes.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[91m"
_GREEN = "\033[92m"
_YELLOW = "\033[93m"
_BLUE = "\033[94m"
_MAGENTA = "\033[95m"
_CYAN = "\033[96m"
_GRAY = "\033[90m"

_colors_enabled = True


def set_colors(enabled: bool) -> None:
    """Toggle ANSI colors for every PipelineLogger."""
    global _colors_enabled
    _colors_enabled = enabled


def _paint(text: str, *codes: str) -> str:
    if not _colors_enabled or not codes:
        return text
    return f"{''.join(codes)}{text}{_RESET}"


def _join(values: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in values.items())


class Stage(NamedTuple):
    label: str
    color: str
    icon: str


class PipelineStage:
    """Stages of the natural-language search pipeline."""

    INTENT = Stage("INTENT", _BLUE, "🧭")
    LLM = Stage("LLM", _YELLOW, "🤖")
    FILTERS = Stage("FILTERS", _CYAN, "🧰")
    RETRIEVAL = Stage("RETRIEVAL", _MAGENTA, "📚")
    RANKING = Stage("RANKING", _CYAN, "🏁")
    FORMAT = Stage("FORMAT", _CYAN, "📝")
    COMPLETE = Stage("COMPLETE", _GREEN, "✅")


class PipelineLogger:
    """Stage-aware wrapper around a standard logger.

    Usage:
        plog = PipelineLogger("community_search.pipeline")
        with plog.timed_step(PipelineStage.RETRIEVAL, "Hybrid retrieval"):
            response = await retriever.search(...)
        plog.detail("intent=find_peers", confidence=0.85)
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def step_start(self, stage: Stage, message: str, **context: Any) -> None:
        line = f"{_paint(f'{stage.icon} [{stage.label}]', stage.color, _BOLD)} {_paint(message, stage.color)}"
        if context:
            line += " " + _paint(f"({_join(context)})", _GRAY)
        self._logger.info("%s", line)

    def step_complete(self, stage: Stage, message: str, **context: Any) -> None:
        line = f"{_paint(f'{stage.icon} [{stage.label}]', stage.color)} {_paint(f'✓ {message}', _GREEN)}"
        if context:
            line += " " + _paint(f"({_join(context)})", _GRAY)
        self._logger.info("%s", line)

    def step_error(self, stage: Stage, message: str, error: BaseException | None = None) -> None:
        """Stage failure, logged at ERROR whether or not the pipeline recovers."""
        line = f"{_paint(f'❌ [{stage.label}]', _RED, _BOLD)} {_paint(message, _RED)}"
        if error is not None:
            line += " " + _paint(f"→ {type(error).__name__}: {error}", _DIM)
        self._logger.error("%s", line)

    def detail(self, message: str, **context: Any) -> None:
        line = _paint(f"   ├─ {message}", _GRAY)
        if context:
            line += " " + _paint(f"({_join(context)})", _DIM)
        self._logger.info("%s", line)

    def separator(self, title: str = "") -> None:
        if title:
            text = f"{'─' * 10} {title} {'─' * max(0, 50 - len(title))}"
        else:
            text = "─" * 60
        self._logger.info("%s", _paint(text, _GRAY))

    @contextmanager
    def timed_step(self, stage: Stage, message: str, **context: Any) -> Iterator[None]:
        """Log start and end of a block with its elapsed time; errors are logged and re-raised."""
        self.step_start(stage, message, **context)
        start = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.step_error(stage, f"{message} failed after {time.perf_counter() - start:.2f}s", error=exc)
            raise
        self.step_complete(stage, f"{message} ({time.perf_counter() - start:.2f}s)")
