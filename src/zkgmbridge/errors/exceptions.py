"""Exception hierarchy for zkgmbridge.

Every error raised by the bridge core derives from :class:`BridgeError`,
which carries a severity, a category and a ``retryable`` flag so callers can
decide whether a failed attempt is worth repeating.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    ENCODING = "encoding"
    CRYPTOGRAPHIC = "cryptographic"
    ROUTING = "routing"
    NETWORK = "network"
    TRANSACTION = "transaction"
    CONFIGURATION = "configuration"
    TIMEOUT = "timeout"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    chain_id: Optional[str] = None
    packet_hash: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "chain_id": self.chain_id,
            "packet_hash": self.packet_hash,
            "metadata": self.metadata,
        }


class BridgeError(Exception):
    """Base exception for all zkgmbridge errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.category != ErrorCategory.SYSTEM:
            parts.append(f"Category: {self.category.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ValidationError(BridgeError):
    """Invalid caller input."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        kwargs.setdefault("category", ErrorCategory.VALIDATION)
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
            }
        )
        return data


class EncodeError(ValidationError):
    """Data could not be encoded into the ZKGM wire format."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.ENCODING)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)


class DecodeError(ValidationError):
    """Malformed address or wire bytes."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("category", ErrorCategory.ENCODING)
        super().__init__(message, **kwargs)


class AddressDerivationError(BridgeError):
    """A deterministic address could not be derived."""

    def __init__(self, message: str, algorithm: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CRYPTOGRAPHIC,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.algorithm = algorithm

    def to_dict(self) -> Dict[str, Any]:
        """Convert derivation error to dictionary."""
        data = super().to_dict()
        data["algorithm"] = self.algorithm
        return data


class RouteNotFoundError(BridgeError):
    """No configured route matches the requested transfer."""

    def __init__(
        self,
        message: str,
        src: Optional[str] = None,
        dest: Optional[str] = None,
        denom: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.ROUTING, **kwargs)
        self.src = src
        self.dest = dest
        self.denom = denom

    def to_dict(self) -> Dict[str, Any]:
        """Convert route error to dictionary."""
        data = super().to_dict()
        data.update({"src": self.src, "dest": self.dest, "denom": self.denom})
        return data


class UpstreamQueryError(BridgeError):
    """Chain registry or chain RPC failure."""

    def __init__(self, message: str, endpoint: Optional[str] = None, **kwargs):
        kwargs.setdefault("retryable", True)
        super().__init__(message, category=ErrorCategory.NETWORK, **kwargs)
        self.endpoint = endpoint

    def to_dict(self) -> Dict[str, Any]:
        """Convert upstream error to dictionary."""
        data = super().to_dict()
        data["endpoint"] = self.endpoint
        return data


class ChainNotFoundError(UpstreamQueryError):
    """Unknown universal chain id."""

    def __init__(self, message: str, chain_id: Optional[str] = None, **kwargs):
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)
        self.chain_id = chain_id


class IndexerQueryError(BridgeError):
    """The packet indexer query failed."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(
            message, category=ErrorCategory.NETWORK, retryable=True, **kwargs
        )
        self.endpoint = endpoint
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert indexer error to dictionary."""
        data = super().to_dict()
        data.update({"endpoint": self.endpoint, "status_code": self.status_code})
        return data


class AllowanceError(BridgeError):
    """The ERC-20 approval step failed or was never confirmed."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.TRANSACTION, **kwargs)
        self.token = token
        self.transaction_hash = transaction_hash

    def to_dict(self) -> Dict[str, Any]:
        """Convert allowance error to dictionary."""
        data = super().to_dict()
        data.update(
            {"token": self.token, "transaction_hash": self.transaction_hash}
        )
        return data


class TimeoutError(BridgeError):
    """A wait did not finish before its deadline."""

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        last_status: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message, category=ErrorCategory.TIMEOUT, retryable=True, **kwargs
        )
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert timeout error to dictionary."""
        data = super().to_dict()
        data.update(
            {"timeout_seconds": self.timeout_seconds, "last_status": self.last_status}
        )
        return data


class ConfigurationError(BridgeError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data
