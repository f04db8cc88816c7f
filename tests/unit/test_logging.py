"""
Tests for zkgmbridge logging setup and formatters.
"""

import io
import json
import logging
import sys

import pytest

from zkgmbridge.logging import (
    JSONFormatter,
    LogConfig,
    LogContext,
    LogLevel,
    TextFormatter,
    get_logger,
    setup_logging,
    shutdown_logging,
)


def make_record(message="Packet 0x12345678... status: PACKET_RECV", context=None):
    record = logging.LogRecord(
        name="zkgmbridge.indexer.tracker",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    if context is not None:
        record.context = context
    return record


class TestLogLevel:
    """Test level parsing."""

    def test_parse(self):
        """Test case-insensitive parsing."""
        assert LogLevel.parse("DEBUG") is LogLevel.DEBUG
        assert LogLevel.parse(" warning ") is LogLevel.WARNING
        assert LogLevel.INFO.to_logging_level() == logging.INFO

    def test_parse_unknown(self):
        """Test that unknown names raise ValueError."""
        with pytest.raises(ValueError, match="verbose"):
            LogLevel.parse("verbose")


class TestLogContext:
    """Test structured context."""

    def test_omits_unset_fields(self):
        """Test that only set fields are emitted."""
        context = LogContext(component="tracker", packet_hash="0xab")
        assert context.to_dict() == {"component": "tracker", "packet_hash": "0xab"}
        assert context.as_extra() == {"context": context.to_dict()}

    def test_metadata(self):
        """Test metadata passthrough."""
        context = LogContext(metadata={"attempt": 3})
        assert context.to_dict() == {"metadata": {"attempt": 3}}


class TestFormatters:
    """Test text and JSON output."""

    def test_json_formatter(self):
        """Test JSON fields."""
        formatter = JSONFormatter(include_timestamp=False)
        data = json.loads(formatter.format(make_record(context={"chain_id": "ethereum.1"})))
        assert data == {
            "level": "info",
            "logger": "zkgmbridge.indexer.tracker",
            "context": {"chain_id": "ethereum.1"},
            "message": "Packet 0x12345678... status: PACKET_RECV",
        }

    def test_json_timestamp_formats(self):
        """Test ISO and unix timestamps."""
        record = make_record()
        iso = json.loads(JSONFormatter().format(record))["timestamp"]
        assert iso.endswith("Z") and "T" in iso
        unix = json.loads(JSONFormatter(timestamp_format="unix").format(record))["timestamp"]
        assert float(unix) == record.created

    def test_json_exception(self):
        """Test that exceptions are serialised."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert data["exception"]["type"] == "RuntimeError"
        assert data["exception"]["message"] == "boom"

    def test_text_formatter(self):
        """Test the single-line text layout."""
        formatter = TextFormatter(include_timestamp=False)
        line = formatter.format(make_record(context={"chain_id": "ethereum.1"}))
        assert line == (
            "[INFO] zkgmbridge.indexer.tracker: "
            "Packet 0x12345678... status: PACKET_RECV chain_id=ethereum.1"
        )


class TestSetupLogging:
    """Test handler installation."""

    def test_single_handler(self):
        """Test that repeated setup replaces the handler."""
        first = io.StringIO()
        second = io.StringIO()
        setup_logging(LogConfig(stream=first))
        logger = setup_logging(LogConfig(stream=second, level=LogLevel.DEBUG))

        get_logger("zkgmbridge.bridge.builder").debug("built")
        assert first.getvalue() == ""
        assert "built" in second.getvalue()
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_json_setup(self):
        """Test JSON output through the package logger."""
        stream = io.StringIO()
        setup_logging(LogConfig(stream=stream, format_type="json"))
        get_logger("indexer").info("hello", extra=LogContext(component="cli").as_extra())
        data = json.loads(stream.getvalue().strip())
        assert data["logger"] == "zkgmbridge.indexer"
        assert data["context"] == {"component": "cli"}

    def test_level_filtering(self):
        """Test that records below the level are dropped."""
        stream = io.StringIO()
        setup_logging(LogConfig(stream=stream, level=LogLevel.WARNING))
        get_logger().info("quiet")
        get_logger().warning("loud")
        assert "quiet" not in stream.getvalue()
        assert "loud" in stream.getvalue()

    def test_shutdown(self):
        """Test that shutdown restores propagation."""
        setup_logging(LogConfig(stream=io.StringIO()))
        shutdown_logging()
        logger = logging.getLogger("zkgmbridge")
        assert logger.handlers == []
        assert logger.propagate is True

    def test_unknown_format(self):
        """Test format validation."""
        with pytest.raises(ValueError):
            LogConfig(format_type="xml")

    def test_get_logger_namespacing(self):
        """Test that names are placed under the package logger."""
        assert get_logger("tracker").name == "zkgmbridge.tracker"
        assert get_logger("zkgmbridge.cli").name == "zkgmbridge.cli"
