"""Tests for the logging setup and the pipeline trace logger."""

import logging

import pytest

from community_search.config import Settings
from community_search.infrastructure.logging import colored_logger
from community_search.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage
from community_search.infrastructure.logging.log_config import parse_level, setup_logging


@pytest.fixture
def plain_colors():
    colored_logger.set_colors(False)
    yield
    colored_logger.set_colors(True)


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" WARNING ") == logging.WARNING
    assert parse_level("loud") == logging.INFO
    assert parse_level(None, default=logging.ERROR) == logging.ERROR


def test_setup_logging_applies_category_levels(plain_colors):
    settings = Settings(
        _env_file=None,
        log_level_sql="ERROR",
        log_level_pipeline="DEBUG",
        log_colors=False,
    )

    setup_logging(settings)

    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("community_search.pipeline").level == logging.DEBUG
    assert logging.getLogger("community_search.application.services").level == logging.DEBUG


def test_timed_step_logs_start_and_completion(caplog, plain_colors):
    plog = PipelineLogger("tests.pipeline")

    with caplog.at_level(logging.INFO, logger="tests.pipeline"):
        with plog.timed_step(PipelineStage.RETRIEVAL, "Hybrid retrieval", phrase="python"):
            pass

    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "📚 [RETRIEVAL] Hybrid retrieval (phrase=python)"
    assert messages[1].startswith("📚 [RETRIEVAL] ✓ Hybrid retrieval (")
    assert "\033[" not in "".join(messages)


def test_timed_step_logs_error_and_reraises(caplog, plain_colors):
    plog = PipelineLogger("tests.pipeline")

    with caplog.at_level(logging.INFO, logger="tests.pipeline"):
        with pytest.raises(ValueError):
            with plog.timed_step(PipelineStage.INTENT, "Classifying"):
                raise ValueError("bad query")

    error = caplog.records[-1]
    assert error.levelno == logging.ERROR
    assert error.getMessage().startswith("❌ [INTENT] Classifying failed after")
    assert "ValueError: bad query" in error.getMessage()


def test_colors_wrap_stage_label():
    plog = PipelineLogger("tests.pipeline.colored")
    records: list[logging.LogRecord] = []

    class Capture(logging.Handler):
        def emit(self, record):
            records.append(record)

    logger = logging.getLogger("tests.pipeline.colored")
    handler = Capture()
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        plog.detail("intent=find_peers")
    finally:
        logger.removeHandler(handler)

    assert records[0].getMessage().startswith("\033[90m")
