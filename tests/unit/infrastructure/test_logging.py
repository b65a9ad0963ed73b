"""Tests for structured logging."""

import json
import logging

import pytest

from savepipe.infrastructure.telemetry.logging import (
    StructuredFormatter,
    TextFormatter,
    configure_logging,
    get_logger,
    pipeline_name_var,
    pipeline_run_id_var,
    reset_pipeline_context,
    set_pipeline_context,
)


def make_record(extra=None) -> logging.LogRecord:
    record = logging.LogRecord(
        name="savepipe.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Pipeline run failed",
        args=(),
        exc_info=None,
    )
    if extra is not None:
        record.extra = extra
    return record


@pytest.fixture
def pipeline_context():
    """Set correlation context for one test and restore it afterwards."""
    tokens = []

    def apply(**values):
        tokens.extend(set_pipeline_context(**values))

    yield apply
    reset_pipeline_context(tokens)


class TestStructuredFormatter:
    def test_includes_pipeline_context_and_extra(self, pipeline_context):
        pipeline_context(pipeline_run_id="abc123", pipeline_name="signup")

        data = json.loads(StructuredFormatter().format(make_record({"status": "rolled_back"})))

        assert data["message"] == "Pipeline run failed"
        assert data["level"] == "warning"
        assert data["pipeline_run_id"] == "abc123"
        assert data["pipeline"] == "signup"
        assert data["status"] == "rolled_back"

    def test_drops_none_values(self):
        data = json.loads(StructuredFormatter().format(make_record({"trace_id": None})))

        assert "trace_id" not in data
        assert "pipeline_run_id" not in data


class TestTextFormatter:
    def test_renders_context(self, pipeline_context):
        pipeline_context(pipeline_run_id="abcdef123456", pipeline_name="signup")

        line = TextFormatter().format(make_record({"status": "committed"}))

        assert "WARNING" in line
        assert "pipeline=signup" in line
        assert "run=abcdef12" in line
        assert "status=committed" in line


class TestContextLogger:
    def test_merges_bound_and_call_extra(self, caplog):
        logger = get_logger("savepipe.test", component="builder")

        with caplog.at_level(logging.INFO, logger="savepipe.test"):
            logger.info("hello", extra={"step": "create_user"})

        record = caplog.records[-1]
        assert record.extra == {"component": "builder", "step": "create_user"}


class TestConfigureLogging:
    def test_installs_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="DEBUG", format_type="text")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, TextFormatter)
            assert root.level == logging.DEBUG
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_defaults_come_from_settings(self, configure):
        configure(log_level="WARNING", log_format="json")
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging()

            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestPipelineContext:
    def test_reset_restores_previous_values(self):
        outer = set_pipeline_context(pipeline_run_id="outer", pipeline_name="signup")
        inner = set_pipeline_context(pipeline_run_id="inner")

        reset_pipeline_context(inner)
        assert pipeline_run_id_var.get() == "outer"

        reset_pipeline_context(outer)
        assert pipeline_run_id_var.get() is None
        assert pipeline_name_var.get() is None
