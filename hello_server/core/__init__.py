"""Core application: config, logging, error model."""

from hello_server.core.config import Settings, get_settings
from hello_server.core.errors import (
    AppError,
    ErrorCategory,
    ErrorClassification,
    classify_error,
    safe_message,
)
from hello_server.core.logging import (
    CorrelationIdFilter,
    DevFormatter,
    JsonFormatter,
    configure_logging,
)

__all__ = [
    "AppError",
    "CorrelationIdFilter",
    "DevFormatter",
    "ErrorCategory",
    "ErrorClassification",
    "JsonFormatter",
    "Settings",
    "classify_error",
    "configure_logging",
    "get_settings",
    "safe_message",
]
