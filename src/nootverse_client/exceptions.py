"""Custom exceptions for the Nootverse client.

Provides a structured exception hierarchy with error codes and
machine-readable error information. Every failure the sync engine can
surface to a user maps onto one of these classes.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Local validation errors (1xxx)
    VALIDATION_FAILED = 1001
    TITLE_REQUIRED = 1002
    READ_ONLY_SCOPE = 1003
    UNSUPPORTED_SCOPE = 1004

    # Remote call errors (2xxx)
    TRANSPORT_FAILED = 2001
    CREDENTIAL_REJECTED = 2002
    REMOTE_REJECTED = 2003
    MALFORMED_RESPONSE = 2004

    # Cache consistency errors (3xxx)
    STALE_POSITION = 3001

    # Workflow errors (4xxx)
    INVALID_TRANSITION = 4001

    # Configuration errors (5xxx)
    CONFIG_INVALID = 5001


class NootverseError(Exception):
    """Base exception for all Nootverse client errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class ValidationError(NootverseError):
    """Raised for local validation failures. Never reaches the network."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED
    ):
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)[:100]

        super().__init__(message, code=code, details=details)
        self.field = field
        self.value = value


class TransportError(NootverseError):
    """Raised when the remote actor cannot be reached or the credential fails.

    Recoverable by retrying; the client never retries on its own.
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        code: ErrorCode = ErrorCode.TRANSPORT_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if method:
            details["method"] = method
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.method = method
        self.original_error = original_error


class RejectedError(NootverseError):
    """Raised when the remote actor refuses a call (e.g. malformed input)."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        reason: Optional[str] = None,
        code: ErrorCode = ErrorCode.REMOTE_REJECTED
    ):
        details = {}
        if method:
            details["method"] = method
        if reason:
            details["reason"] = reason[:200]

        super().__init__(message, code=code, details=details)
        self.method = method
        self.reason = reason


class StalePositionError(NootverseError):
    """Raised when a cached position no longer denotes the expected record.

    Attributes:
        position: The position that was used
        expected_id: The identifier the caller expected at that position
        length: Length of the list the position was checked against
    """

    def __init__(
        self,
        position: int,
        expected_id: Optional[str] = None,
        length: Optional[int] = None,
        message: Optional[str] = None
    ):
        details: Dict[str, Any] = {"position": position}
        if expected_id is not None:
            details["expected_id"] = expected_id
        if length is not None:
            details["length"] = length

        super().__init__(
            message or f"Position {position} no longer denotes the expected record",
            code=ErrorCode.STALE_POSITION,
            details=details
        )
        self.position = position
        self.expected_id = expected_id
        self.length = length


class InvalidTransitionError(NootverseError):
    """Raised when a dialog transition is not allowed from the current state."""

    def __init__(self, current: str, action: str):
        super().__init__(
            f"Cannot {action} while dialog is {current}",
            code=ErrorCode.INVALID_TRANSITION,
            details={"state": current, "action": action}
        )
        self.current = current
        self.action = action


class ConfigurationError(NootverseError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
