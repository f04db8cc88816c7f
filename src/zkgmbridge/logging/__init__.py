"""zkgmbridge logging setup.

Handler and formatter wiring for the ``zkgmbridge`` logger hierarchy.
"""

from .core import (
    LogConfig,
    LogContext,
    LogLevel,
    get_logger,
    setup_logging,
    shutdown_logging,
)
from .formatters import JSONFormatter, TextFormatter

__all__ = [
    # Core
    "LogLevel",
    "LogConfig",
    "LogContext",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
]
