"""Log formatters for zkgmbridge.

Both formatters understand the ``context`` attribute that
:meth:`LogContext.as_extra` attaches to a record.
"""

import json
import logging
import time
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """JSON log formatter, one object per line."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_level: bool = True,
        include_logger: bool = True,
        include_context: bool = True,
        include_exception: bool = True,
        include_thread: bool = False,
        include_process: bool = False,
        timestamp_format: str = "iso",
        indent: Optional[int] = None,
        ensure_ascii: bool = False,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_level = include_level
        self.include_logger = include_logger
        self.include_context = include_context
        self.include_exception = include_exception
        self.include_thread = include_thread
        self.include_process = include_process
        self.timestamp_format = timestamp_format
        self.indent = indent
        self.ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: Dict[str, Any] = {}

        if self.include_timestamp:
            data["timestamp"] = self._format_timestamp(record.created)

        if self.include_level:
            data["level"] = record.levelname.lower()

        if self.include_logger:
            data["logger"] = record.name

        context = getattr(record, "context", None)
        if self.include_context and context:
            data["context"] = context

        if self.include_exception and record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_thread:
            data["thread_id"] = record.thread

        if self.include_process:
            data["process_id"] = record.process

        data["message"] = record.getMessage()

        return json.dumps(
            data, indent=self.indent, ensure_ascii=self.ensure_ascii, default=str
        )

    def _format_timestamp(self, timestamp: float) -> str:
        """Format timestamp."""
        if self.timestamp_format == "iso":
            return (
                time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(timestamp))
                + f".{int((timestamp % 1) * 1000000):06d}Z"
            )
        elif self.timestamp_format == "unix":
            return str(timestamp)
        else:
            return time.strftime(self.timestamp_format, time.gmtime(timestamp))


class TextFormatter(logging.Formatter):
    """Human-readable formatter."""

    def __init__(
        self,
        include_timestamp: bool = True,
        include_context: bool = True,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_context = include_context
        self.timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single text line."""
        parts = []

        if self.include_timestamp:
            parts.append(time.strftime(self.timestamp_format, time.localtime(record.created)))

        parts.append(f"[{record.levelname}]")
        parts.append(f"{record.name}:")
        parts.append(record.getMessage())

        context = getattr(record, "context", None)
        if self.include_context and context:
            parts.append(" ".join(f"{key}={value}" for key, value in context.items()))

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
