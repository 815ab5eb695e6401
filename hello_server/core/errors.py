"""Typed application errors and the rules that map any failure to an HTTP status.

Route handlers raise the subclasses of :class:`AppError` below; everything
else (library exceptions, OS errors, plain ``RuntimeError``) is classified by
:func:`classify_error` with the following priority:

1. an explicit ``status_code``/``status`` attribute,
2. the exception class name (walking the MRO),
3. a system fault code (``errno`` or a string ``code`` attribute),
4. keywords in the message,
5. 500.
"""

from dataclasses import dataclass
from enum import Enum
import errno
import re
import socket
import time
from typing import Any
import uuid


class ErrorCategory(str, Enum):
    """Who is at fault for a failed request."""

    CLIENT = "client"
    SERVER = "server"


def category_for(status_code: int) -> ErrorCategory:
    return ErrorCategory.CLIENT if 400 <= status_code < 500 else ErrorCategory.SERVER


@dataclass(frozen=True)
class ErrorClassification:
    """HTTP status and fault category derived from a failure."""

    status_code: int
    category: ErrorCategory

    @classmethod
    def for_status(cls, status_code: int) -> "ErrorClassification":
        return cls(status_code=status_code, category=category_for(status_code))


class AppError(Exception):
    """Base class for failures that know their HTTP status from the start."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"
    default_message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: Any = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def category(self) -> ErrorCategory:
        return category_for(self.status_code)


class ValidationError(AppError):
    status_code = 400
    default_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = 401
    default_code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    default_code = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"
    default_message = "Resource not found"


class MethodNotAllowedError(AppError):
    status_code = 405
    default_code = "METHOD_NOT_ALLOWED"
    default_message = "Method not allowed"


class NotAcceptableError(AppError):
    status_code = 406
    default_code = "NOT_ACCEPTABLE"
    default_message = "Requested format not available"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"
    default_message = "Resource conflict detected"


class PayloadTooLargeError(AppError):
    """Request body over a size limit; ``max_bytes`` is the limit that was applied."""

    status_code = 413
    default_code = "PAYLOAD_TOO_LARGE"
    default_message = "Request payload exceeds size limit"

    def __init__(self, message: str | None = None, *, max_bytes: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.max_bytes = max_bytes


class UnsupportedMediaTypeError(AppError):
    status_code = 415
    default_code = "UNSUPPORTED_MEDIA_TYPE"
    default_message = "Content type not supported"


class TooManyRequestsError(AppError):
    status_code = 429
    default_code = "TOO_MANY_REQUESTS"
    default_message = "Rate limit exceeded"


class InternalServerError(AppError):
    status_code = 500


class NotImplementedServerError(AppError):
    status_code = 501
    default_code = "NOT_IMPLEMENTED"
    default_message = "Feature not implemented"


class BadGatewayError(AppError):
    status_code = 502
    default_code = "BAD_GATEWAY"
    default_message = "External service error"


class ServiceUnavailableError(AppError):
    status_code = 503
    default_code = "SERVICE_UNAVAILABLE"
    default_message = "Service temporarily unavailable"


class GatewayTimeoutError(AppError):
    status_code = 504
    default_code = "GATEWAY_TIMEOUT"
    default_message = "External service timeout"


# Exception class names, looked up along the MRO.
NAME_CLASSIFICATIONS: dict[str, int] = {
    "ValidationError": 400,
    "RequestValidationError": 400,
    "JSONDecodeError": 400,
    "UnicodeDecodeError": 400,
    "UnauthorizedError": 401,
    "ForbiddenError": 403,
    "NotFoundError": 404,
    "MethodNotAllowedError": 405,
    "NotAcceptableError": 406,
    "ConflictError": 409,
    "PayloadTooLargeError": 413,
    "UnsupportedMediaTypeError": 415,
    "TooManyRequestsError": 429,
    "InternalServerError": 500,
    "NotImplementedError": 501,
    "BadGatewayError": 502,
    "ServiceUnavailableError": 503,
    "GatewayTimeoutError": 504,
    "TimeoutError": 504,
}

# Symbolic fault codes; anything else carrying a code maps to 500.
FAULT_CODE_CLASSIFICATIONS: dict[str, int] = {
    "ECONNREFUSED": 503,
    "ETIMEDOUT": 503,
    "ENOTFOUND": 503,
    "EADDRINUSE": 503,
    "EACCES": 403,
    "EPERM": 403,
}

# Checked in order; first match wins.
MESSAGE_KEYWORDS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("validation", "invalid"), 400),
    (("unauthorized", "authentication"), 401),
    (("forbidden", "permission"), 403),
    (("not found",), 404),
)

SAFE_ERROR_MESSAGES: dict[int, str] = {
    400: "Bad Request - Invalid request format or parameters",
    401: "Unauthorized - Authentication required",
    403: "Forbidden - Access denied",
    404: "Not Found - The requested resource was not found",
    405: "Method Not Allowed - HTTP method not supported for this endpoint",
    406: "Not Acceptable - Requested format not available",
    409: "Conflict - Resource conflict detected",
    413: "Payload Too Large - Request payload exceeds size limit",
    415: "Unsupported Media Type - Content type not supported",
    429: "Too Many Requests - Rate limit exceeded",
    500: "Internal Server Error - An unexpected error occurred",
    501: "Not Implemented - Feature not implemented",
    502: "Bad Gateway - External service error",
    503: "Service Unavailable - Service temporarily unavailable",
    504: "Gateway Timeout - External service timeout",
}

SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"password",
        r"token",
        r"secret",
        r"key",
        r"database",
        r"connection",
        r"internal",
        r"stack",
        r"file.*path",
        r"directory",
        r"config",
        r"env",
    )
)

MAX_CLIENT_MESSAGE_LENGTH = 200


def _explicit_status(exc: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599:
            return value
    return None


def fault_code(exc: BaseException) -> str | None:
    """Symbolic system fault code carried by an exception, if any."""
    if isinstance(exc, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(exc, OSError) and exc.errno is not None:
        return errno.errorcode.get(exc.errno, f"E{exc.errno}")
    code = getattr(exc, "code", None)
    if isinstance(code, str) and code:
        return code.upper()
    return None


def error_message(exc: BaseException) -> str:
    """The human-written message of a failure, without class or status prefixes."""
    if isinstance(exc, AppError):
        return exc.message
    detail = getattr(exc, "detail", None)
    if isinstance(detail, str):
        return detail
    return str(exc)


def classify_error(exc: BaseException) -> ErrorClassification:
    """Map an arbitrary failure to an HTTP status and a fault category."""
    status_code = _explicit_status(exc)
    if status_code is not None:
        return ErrorClassification.for_status(status_code)

    for klass in type(exc).__mro__:
        if klass.__name__ in NAME_CLASSIFICATIONS:
            return ErrorClassification.for_status(NAME_CLASSIFICATIONS[klass.__name__])

    code = fault_code(exc)
    if code is not None:
        return ErrorClassification.for_status(FAULT_CODE_CLASSIFICATIONS.get(code, 500))

    message = error_message(exc).lower()
    for keywords, keyword_status in MESSAGE_KEYWORDS:
        if any(keyword in message for keyword in keywords):
            return ErrorClassification.for_status(keyword_status)

    return ErrorClassification.for_status(500)


def is_sensitive(message: str) -> bool:
    return any(pattern.search(message) for pattern in SENSITIVE_PATTERNS)


def safe_message(status_code: int, message: str | None = None) -> str:
    """Client-facing message for a classified failure.

    Short, non-sensitive messages of client errors are passed through with a
    ``"Bad Request - "`` prefix. Everything else, and every server error,
    gets the fixed text for its status.
    """
    if (
        400 <= status_code < 500
        and message
        and len(message) < MAX_CLIENT_MESSAGE_LENGTH
        and not is_sensitive(message)
    ):
        return f"Bad Request - {message}"
    if status_code in SAFE_ERROR_MESSAGES:
        return SAFE_ERROR_MESSAGES[status_code]
    if 400 <= status_code < 500:
        return SAFE_ERROR_MESSAGES[400]
    return SAFE_ERROR_MESSAGES[500]


def generate_error_id() -> str:
    """Timestamped identifier that ties a server error response to its log entry."""
    return f"err_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


__all__ = [
    "FAULT_CODE_CLASSIFICATIONS",
    "NAME_CLASSIFICATIONS",
    "SAFE_ERROR_MESSAGES",
    "AppError",
    "BadGatewayError",
    "ConflictError",
    "ErrorCategory",
    "ErrorClassification",
    "ForbiddenError",
    "GatewayTimeoutError",
    "InternalServerError",
    "MethodNotAllowedError",
    "NotAcceptableError",
    "NotFoundError",
    "NotImplementedServerError",
    "PayloadTooLargeError",
    "ServiceUnavailableError",
    "TooManyRequestsError",
    "UnauthorizedError",
    "UnsupportedMediaTypeError",
    "ValidationError",
    "category_for",
    "classify_error",
    "error_message",
    "fault_code",
    "generate_error_id",
    "is_sensitive",
    "safe_message",
]
