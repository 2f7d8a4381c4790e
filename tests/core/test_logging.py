"""
Tests for the logging module.

Tests verify:
- Context binding and scoped LogContext
- JSON output carries service metadata and bound context
- DEBUG logs are suppressed at INFO level
"""

import io
import json
import logging

import pytest
import structlog

from chronicle.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


@pytest.fixture
def stream():
    buf = io.StringIO()
    yield buf
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if getattr(handler, "stream", None) is buf:
            root.removeHandler(handler)
    clear_context()


def records(buf):
    return [json.loads(line) for line in buf.getvalue().splitlines() if line.strip()]


class TestContextManagement:
    """Test context bind/unbind/clear operations."""

    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_bind_and_unbind(self):
        bind_context(job_name="night-compiler", job_type="night_compile")
        assert structlog.contextvars.get_contextvars() == {
            "job_name": "night-compiler",
            "job_type": "night_compile",
        }
        unbind_context("job_type")
        assert structlog.contextvars.get_contextvars() == {"job_name": "night-compiler"}

    def test_clear_context(self):
        bind_context(job_name="x")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}

    def test_log_context_is_scoped(self):
        bind_context(service_run="outer")
        with LogContext(job_name="day-organizer"):
            assert structlog.contextvars.get_contextvars()["job_name"] == "day-organizer"
        assert structlog.contextvars.get_contextvars() == {"service_run": "outer"}


class TestConfigureLogging:
    """Test rendered output."""

    def test_json_output(self, stream):
        configure_logging("INFO", json_format=True, service="chronicle-test", stream=stream)
        logger = get_logger("tests.logging")

        with LogContext(job_name="night-compiler"):
            logger.info("snippet_captured", project="/src/app", snippet_id=12)

        [record] = records(stream)
        assert record["event"] == "snippet_captured"
        assert record["level"] == "info"
        assert record["service"] == "chronicle-test"
        assert record["job_name"] == "night-compiler"
        assert record["snippet_id"] == 12
        assert "timestamp" in record

    def test_debug_suppressed_at_info(self, stream):
        configure_logging("INFO", json_format=True, stream=stream)
        logger = get_logger("tests.logging")

        logger.debug("hidden")
        logger.warning("shown")

        assert [r["event"] for r in records(stream)] == ["shown"]

    def test_stdlib_loggers_share_stream(self, stream):
        configure_logging("INFO", json_format=True, stream=stream)
        logging.getLogger("chronicle.scheduling.service").info("Scheduler started")
        assert "Scheduler started" in stream.getvalue()
