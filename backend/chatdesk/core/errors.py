"""
Structured error handling with stable error codes.

Provider failures are caught by the gateway and turned into fallback
messages; everything else propagates to the presentation layer as an
AppError carrying one of the codes below.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    INVALID_STATE = "E1003"
    CONFIGURATION_ERROR = "E1004"
    RATE_LIMITED = "E1005"

    # Provider errors (4xxx)
    PROVIDER_UNAVAILABLE = "E4000"
    PROVIDER_ERROR = "E4001"
    MODEL_NOT_FOUND = "E4002"
    PROVIDER_BAD_RESPONSE = "E4004"
    PROVIDER_AUTH_FAILED = "E4005"

    # Store errors (5xxx)
    SESSION_NOT_FOUND = "E5000"
    STORE_ERROR = "E5001"
    STORE_TIMEOUT = "E5002"


@dataclass(frozen=True)
class ErrorDetail:
    """Serializable error payload for the presentation layer.

    Format: {error: {code, message, details?}}
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        error: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AppError(Exception):
    """Base application error with structured error detail."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Create a serializable error detail."""
        return ErrorDetail(code=self.code, message=self.message, details=self.details)


class ValidationError(AppError):
    """Invalid input."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(ErrorCode.NOT_FOUND, message)


class InvalidStateError(AppError):
    """Operation not allowed in the controller's current state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.INVALID_STATE, message, details)


class ConfigurationError(AppError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.CONFIGURATION_ERROR, message, details)


class RateLimitError(AppError):
    """Provider rate limit exceeded (429)."""

    def __init__(self, message: str = "Rate limit exceeded", details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.RATE_LIMITED, message, details)


class ProviderError(AppError):
    """Provider returned an error."""

    def __init__(
        self, message: str = "Provider error", details: dict[str, Any] | None = None
    ):
        super().__init__(ErrorCode.PROVIDER_ERROR, message, details)


class ProviderUnavailableError(AppError):
    """Provider unreachable, timed out or failing server-side."""

    def __init__(
        self, message: str = "Provider unavailable", details: dict[str, Any] | None = None
    ):
        super().__init__(ErrorCode.PROVIDER_UNAVAILABLE, message, details)


class ProviderBadResponseError(AppError):
    """Provider returned a malformed response."""

    def __init__(
        self, message: str = "Provider returned invalid response", details: dict[str, Any] | None = None
    ):
        super().__init__(ErrorCode.PROVIDER_BAD_RESPONSE, message, details)


class ProviderAuthError(AppError):
    """Provider rejected the credentials (401/403)."""

    def __init__(
        self,
        message: str = "Provider authentication failed",
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(ErrorCode.PROVIDER_AUTH_FAILED, message, details)


class ModelNotFoundError(AppError):
    """Requested model not found (404)."""

    def __init__(self, message: str = "Model not found", details: dict[str, Any] | None = None):
        super().__init__(ErrorCode.MODEL_NOT_FOUND, message, details)


class StoreError(AppError):
    """Persistence read/write failure."""

    def __init__(
        self,
        message: str = "Store operation failed",
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.STORE_ERROR,
    ):
        super().__init__(code, message, details)


class SessionNotFoundError(StoreError):
    """Chat session does not exist for this user."""

    def __init__(self, session_id: str):
        super().__init__(
            "Chat session not found",
            details={"session_id": session_id},
            code=ErrorCode.SESSION_NOT_FOUND,
        )
