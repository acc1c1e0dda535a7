"""
Tests for structured logging and log sanitization.
"""

import json
import logging

from relay_gateway.components.core.context import WebSocketContext, sanitize_log_data
from relay_shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
    resolve_log_level,
)
from relay_shared.infrastructure.correlation import (
    ConnectionIdFilter,
    bind_connection_id,
    get_connection_id,
)


def test_get_logger_returns_structured_logger():
    assert isinstance(get_logger("relay_gateway.test"), StructuredLogger)


def test_keyword_arguments_become_extra_data(caplog):
    logger = get_logger("relay_gateway.test.extra")
    with caplog.at_level(logging.INFO, logger="relay_gateway.test.extra"):
        logger.info("Client connected", connection_id="abc123", total=2)

    record = caplog.records[-1]
    assert record.getMessage() == "Client connected"
    assert record.extra_data == {"connection_id": "abc123", "total": 2}


def test_structured_formatter_emits_json():
    record = logging.LogRecord("relay", logging.WARNING, __file__, 1, "Dropped frame", (), None)
    record.extra_data = {"connection_id": "c1"}

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "Dropped frame"
    assert payload["data"] == {"connection_id": "c1"}


def test_development_formatter_appends_fields():
    record = logging.LogRecord("relay", logging.INFO, __file__, 1, "Routed", (), None)
    record.extra_data = {"event": "ping"}

    assert "(event=ping)" in DevelopmentFormatter().format(record)


class TestSanitizeLogData:

    def test_truncates(self):
        assert sanitize_log_data("x" * 150, max_length=100) == "x" * 100 + "..."

    def test_strips_control_and_invisible_characters(self):
        assert sanitize_log_data("a\x00b\nc\u200bd\u202ee") == "abcde"

    def test_escapes_quotes(self):
        assert sanitize_log_data('say "hi"\\') == 'say \\"hi\\"\\\\'

    def test_bytes(self):
        assert sanitize_log_data(b"\xffok") == "\ufffdok"


def test_audit_context(caplog):
    context = WebSocketContext(endpoint="/ws", connection_id="c1", client="127.0.0.1:5000")
    with caplog.at_level(logging.INFO, logger="security.audit"):
        context.audit("CONNECT")

    record = caplog.records[-1]
    assert record.getMessage() == "WS_AUDIT: CONNECT"
    assert record.extra_data["connection_id"] == "c1"
    assert record.extra_data["endpoint"] == "/ws"


class TestConnectionCorrelation:

    def test_filter_stamps_bound_connection_id(self):
        record = logging.LogRecord("relay", logging.INFO, __file__, 1, "x", (), None)

        with bind_connection_id("c42"):
            ConnectionIdFilter().filter(record)
            assert get_connection_id() == "c42"

        assert record.connection_id == "c42"
        assert get_connection_id() == ""

    def test_unbound_records_get_placeholder(self):
        record = logging.LogRecord("relay", logging.INFO, __file__, 1, "x", (), None)
        ConnectionIdFilter().filter(record)
        assert record.connection_id == "-"

    def test_formatters_show_connection_id(self):
        record = logging.LogRecord("relay", logging.INFO, __file__, 1, "Routed", (), None)
        record.connection_id = "c42"

        assert json.loads(StructuredFormatter().format(record))["connection_id"] == "c42"
        assert "[c42]" in DevelopmentFormatter().format(record)


def test_resolve_log_level():
    assert resolve_log_level("warning") == logging.WARNING
    assert resolve_log_level("nonsense") == logging.INFO
