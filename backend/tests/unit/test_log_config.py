"""Tests for per-category logging levels and the pipeline logger."""

import logging

from devsketch.config import Settings
from devsketch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage
from devsketch.infrastructure.logging.log_config import setup_logging


def test_category_levels_follow_settings():
    settings = Settings(
        log_level="INFO",
        log_level_sql="ERROR",
        log_level_generation="DEBUG",
        log_level_sync="WARNING",
    )

    setup_logging(settings)

    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("CodeGenerationOrchestrator").level == logging.DEBUG
    assert logging.getLogger("devsketch.infrastructure.generation").level == logging.DEBUG
    assert logging.getLogger("devsketch.application.services.editor_sync_service").level == logging.WARNING


def test_unknown_level_names_fall_back_to_info():
    setup_logging(Settings(log_level_sync="LOUD"))

    assert logging.getLogger("devsketch.infrastructure.storage").level == logging.INFO


def test_pipeline_logger_plain_output(caplog):
    plog = PipelineLogger("test.pipeline", use_color=False)

    with caplog.at_level(logging.INFO, logger="test.pipeline"):
        plog.step_start(PipelineStage.REQUEST, "Generating from 3 shapes", mode="stream")
        plog.step_error(PipelineStage.ERROR, "Code generation failed", error=ValueError("boom"))

    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "📨 [REQUEST] Generating from 3 shapes (mode=stream)"
    assert messages[1] == "❌ [ERROR] Code generation failed → ValueError: boom"
    assert "\033[" not in "".join(messages)


def test_timed_step_reraises_and_logs_failure(caplog):
    plog = PipelineLogger("test.timed", use_color=False)

    with caplog.at_level(logging.INFO, logger="test.timed"):
        try:
            with plog.timed_step(PipelineStage.MODEL, "Calling model"):
                raise RuntimeError("upstream down")
        except RuntimeError:
            pass

    assert caplog.records[-1].levelno == logging.ERROR
    assert "Calling model failed after" in caplog.records[-1].getMessage()
