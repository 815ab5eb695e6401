"""HTTP middleware."""

from hello_server.middleware.access_log import AccessLogMiddleware
from hello_server.middleware.body_limit import BodySizeLimitMiddleware
from hello_server.middleware.correlation import CORRELATION_HEADER, CorrelationIdMiddleware
from hello_server.middleware.error_handler import (
    ErrorHandler,
    ErrorHandlingMiddleware,
    install_error_handlers,
)
from hello_server.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "CORRELATION_HEADER",
    "AccessLogMiddleware",
    "BodySizeLimitMiddleware",
    "CorrelationIdMiddleware",
    "ErrorHandler",
    "ErrorHandlingMiddleware",
    "SecurityHeadersMiddleware",
    "install_error_handlers",
]
