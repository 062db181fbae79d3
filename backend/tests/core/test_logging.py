"""
Tests for structured logging configuration.
"""

import io
import json
import logging

import pytest
import structlog
from structlog.contextvars import get_contextvars

from apps.core.logging import (
    _drop_empty_identifiers,
    bind_contextvars,
    clear_contextvars,
    configure_logging,
    get_logger,
)


@pytest.fixture
def json_logs():
    """Configure JSON logging into a buffer and return a reader for emitted records."""
    clear_contextvars()
    configure_logging(json_format=True, log_level="DEBUG")
    buffer = io.StringIO()
    (handler,) = logging.getLogger().handlers
    handler.setStream(buffer)

    def read() -> list[dict]:
        lines = buffer.getvalue().splitlines()
        return [json.loads(line) for line in lines if line.startswith("{")]

    yield read
    clear_contextvars()


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_sets_root_level(self):
        configure_logging(json_format=False, log_level="warning")

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(json_format=False, log_level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_single_root_handler(self):
        """Reconfiguring should replace the handler, not stack another one."""
        configure_logging(json_format=True, log_level="INFO")
        configure_logging(json_format=True, log_level="INFO")

        assert len(logging.getLogger().handlers) == 1

    def test_uses_stdlib_logger_factory(self):
        configure_logging(json_format=True, log_level="INFO")

        assert structlog.get_config()["wrapper_class"] is structlog.stdlib.BoundLogger


class TestLogOutput:
    """Tests for rendered JSON records."""

    def test_event_and_context_are_rendered(self, json_logs):
        logger = get_logger("test.output")

        logger.info("subscription_activated", tenant_id="t1", subscription_id="sub-1")

        (record,) = json_logs()
        assert record["event"] == "subscription_activated"
        assert record["tenant_id"] == "t1"
        assert record["subscription_id"] == "sub-1"
        assert record["level"] == "info"
        assert record["logger"] == "test.output"

    def test_timestamp_is_iso_utc(self, json_logs):
        get_logger("test.timestamp").info("tick")

        (record,) = json_logs()
        assert record["timestamp"].endswith("Z")
        assert "T" in record["timestamp"]

    def test_bound_context_is_merged(self, json_logs):
        bind_contextvars(request_id="req-123")

        get_logger("test.context").info("resolve_subscription_started")

        (record,) = json_logs()
        assert record["request_id"] == "req-123"

    def test_exception_is_rendered(self, json_logs):
        logger = get_logger("test.exception")

        try:
            raise ValueError("db down")
        except ValueError:
            logger.exception("resolve_subscription_failed")

        (record,) = json_logs()
        assert record["event"] == "resolve_subscription_failed"
        assert "ValueError: db down" in record["exception"]

    def test_stdlib_records_share_the_format(self, json_logs):
        """Records from plain logging (Django, httpx) go through the same renderer."""
        logging.getLogger("httpx").warning("connection pool full")

        (record,) = json_logs()
        assert record["event"] == "connection pool full"
        assert "timestamp" in record

    def test_empty_identifiers_are_dropped(self, json_logs):
        get_logger("test.identifiers").info("subscription_event", tenant_id="", subscription_id="s")

        (record,) = json_logs()
        assert "tenant_id" not in record
        assert record["subscription_id"] == "s"


class TestContextVars:
    """Tests for context variable binding."""

    def setup_method(self):
        clear_contextvars()

    def teardown_method(self):
        clear_contextvars()

    def test_bind_adds_context(self):
        bind_contextvars(tenant_id="t1", **{"http.method": "POST"})

        assert get_contextvars() == {"tenant_id": "t1", "http.method": "POST"}

    def test_clear_removes_context(self):
        bind_contextvars(request_id="req-1")

        clear_contextvars()

        assert get_contextvars() == {}


class TestDropEmptyIdentifiers:
    """Tests for the empty identifier processor."""

    def test_removes_unset_identifiers(self):
        event_dict = {"event": "x", "tenant_id": "", "subscription_id": None, "user_id": "u1"}

        assert _drop_empty_identifiers(None, "info", event_dict) == {"event": "x", "user_id": "u1"}

    def test_keeps_other_empty_values(self):
        event_dict = {"event": "x", "upn": ""}

        assert _drop_empty_identifiers(None, "info", event_dict) == {"event": "x", "upn": ""}
