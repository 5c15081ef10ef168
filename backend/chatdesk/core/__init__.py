"""Core utilities: errors, logging, metrics and time helpers."""

from chatdesk.core.errors import (
    AppError,
    ConfigurationError,
    ErrorCode,
    ErrorDetail,
    InvalidStateError,
    ModelNotFoundError,
    NotFoundError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitError,
    SessionNotFoundError,
    StoreError,
    ValidationError,
)
from chatdesk.core.logging import bind_log_context, get_logger, log_context, setup_logging
from chatdesk.core.metrics import metrics
from chatdesk.core.time import MonotonicClock, utcnow

__all__ = [
    # Errors
    "AppError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorDetail",
    "InvalidStateError",
    "ModelNotFoundError",
    "NotFoundError",
    "ProviderAuthError",
    "ProviderBadResponseError",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SessionNotFoundError",
    "StoreError",
    "ValidationError",
    # Logging
    "bind_log_context",
    "get_logger",
    "log_context",
    "setup_logging",
    # Metrics
    "metrics",
    # Time
    "MonotonicClock",
    "utcnow",
]
