"""zkgmbridge error handling.

Exception hierarchy and the backoff schedule shared by the poll loops.
"""

from .exceptions import (
    AddressDerivationError,
    AllowanceError,
    BridgeError,
    ChainNotFoundError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    IndexerQueryError,
    RouteNotFoundError,
    TimeoutError,
    UpstreamQueryError,
    ValidationError,
)
from .recovery import BackoffStrategy

__all__ = [
    # Exceptions
    "BridgeError",
    "ValidationError",
    "EncodeError",
    "DecodeError",
    "AddressDerivationError",
    "RouteNotFoundError",
    "UpstreamQueryError",
    "ChainNotFoundError",
    "IndexerQueryError",
    "AllowanceError",
    "TimeoutError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    # Recovery
    "BackoffStrategy",
]
