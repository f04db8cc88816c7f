"""Core logging configuration for zkgmbridge.

Library modules log through ``logging.getLogger(__name__)``. This module
wires the ``zkgmbridge`` logger hierarchy to a handler and formatter chosen
by :class:`LogConfig`; applications call :func:`setup_logging` once.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, TextIO

ROOT_LOGGER_NAME = "zkgmbridge"


class LogLevel(Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_logging_level(self) -> int:
        """Map to the numeric level of the ``logging`` module."""
        return getattr(logging, self.name)

    @classmethod
    def parse(cls, value: str) -> "LogLevel":
        """Parse a level name case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown log level: {value}") from None


@dataclass
class LogContext:
    """Structured context attached to log records via ``extra``."""

    component: Optional[str] = None
    operation: Optional[str] = None
    chain_id: Optional[str] = None
    packet_hash: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary, omitting unset fields."""
        data = {
            "component": self.component,
            "operation": self.operation,
            "chain_id": self.chain_id,
            "packet_hash": self.packet_hash,
        }
        data = {key: value for key, value in data.items() if value is not None}
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    def as_extra(self) -> Dict[str, Any]:
        """Wrap the context for the ``extra`` argument of a log call."""
        return {"context": self.to_dict()}


@dataclass
class LogConfig:
    """Log configuration."""

    name: str = ROOT_LOGGER_NAME
    level: LogLevel = LogLevel.INFO
    format_type: str = "text"  # text, json
    propagate: bool = False
    stream: Optional[TextIO] = None
    formatter_options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.format_type not in ("text", "json"):
            raise ValueError(f"Unknown log format: {self.format_type}")


_configured_handler: Optional[logging.Handler] = None


def _build_formatter(config: LogConfig) -> logging.Formatter:
    from .formatters import JSONFormatter, TextFormatter

    if config.format_type == "json":
        return JSONFormatter(**config.formatter_options)
    return TextFormatter(**config.formatter_options)


def setup_logging(config: Optional[LogConfig] = None) -> logging.Logger:
    """Install a single handler on the package logger."""
    global _configured_handler
    config = config or LogConfig()

    logger = logging.getLogger(config.name)
    if _configured_handler is not None:
        logger.removeHandler(_configured_handler)
        _configured_handler.close()

    handler = logging.StreamHandler(config.stream or sys.stderr)
    handler.setFormatter(_build_formatter(config))
    logger.addHandler(handler)
    logger.setLevel(config.level.to_logging_level())
    logger.propagate = config.propagate

    _configured_handler = handler
    return logger


def shutdown_logging(name: str = ROOT_LOGGER_NAME) -> None:
    """Remove the handler installed by :func:`setup_logging`."""
    global _configured_handler
    if _configured_handler is None:
        return
    logger = logging.getLogger(name)
    logger.removeHandler(_configured_handler)
    _configured_handler.close()
    _configured_handler = None
    logger.propagate = True


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger inside the package hierarchy."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
