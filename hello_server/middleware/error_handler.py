"""Centralized error handling: the single place that classifies, logs and renders failures."""

import contextlib
import json
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp
import structlog

from hello_server.core.config import Settings
from hello_server.core.errors import (
    SAFE_ERROR_MESSAGES,
    AppError,
    ErrorCategory,
    NotFoundError,
    PayloadTooLargeError,
    classify_error,
    error_message,
    fault_code,
    generate_error_id,
    safe_message,
)
from hello_server.schemas.common import ErrorResponse, utc_now_iso

LOGGED_HEADERS = ("content-type", "accept", "origin", "referer", "user-agent")
MAX_HEADER_LENGTH = 200
MAX_LOGGED_BODY_LENGTH = 1000

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

RETRY_AFTER_SECONDS = 60


def correlation_id_of(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or "unknown"


def format_size(size: int) -> str:
    for unit, factor in (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)):
        if size >= factor and size % factor == 0:
            return f"{size // factor}{unit}"
    return f"{size}B"


def request_context(request: Request) -> dict[str, Any]:
    """Request metadata worth logging next to an error, with large values cut down."""
    body = getattr(request.state, "body", None)
    if body is not None:
        encoded = json.dumps(body, default=str)
        if len(encoded) >= MAX_LOGGED_BODY_LENGTH:
            body = f"{encoded[:MAX_LOGGED_BODY_LENGTH]}...(truncated)"
    headers = {
        name: request.headers[name][:MAX_HEADER_LENGTH]
        for name in LOGGED_HEADERS
        if name in request.headers
    }
    return {
        "method": request.method,
        "user_agent": request.headers.get("user-agent"),
        "url": str(request.url.path) + (f"?{request.url.query}" if request.url.query else ""),
        "remote_addr": request.client.host if request.client else None,
        "headers": headers,
        "query": dict(request.query_params),
        "params": dict(request.path_params),
        "body": body,
    }


def minimal_error_body() -> dict[str, Any]:
    """Last-resort body used when rendering the real error response failed."""
    return {
        "error": True,
        "status": 500,
        "message": SAFE_ERROR_MESSAGES[500],
        "timestamp": utc_now_iso(),
    }


class ErrorHandler:
    """Turns any failure into a logged, client-safe JSON error response.

    Every failure is logged once at error level; server errors carry the
    full traceback. The response never carries a raw server-side
    message or a stack trace.
    """

    def __init__(self, settings: Settings, logger: Any = None) -> None:
        self.settings = settings
        self.logger = logger or structlog.get_logger(__name__)

    def handle(self, request: Request, exc: BaseException) -> Response:
        try:
            return self._render(request, exc)
        except Exception as handler_error:
            with contextlib.suppress(Exception):
                self.logger.critical(
                    "Critical error in error handler",
                    original_error={"type": type(exc).__name__, "message": str(exc)},
                    handler_error={"type": type(handler_error).__name__, "message": str(handler_error)},
                    critical_failure=True,
                    exc_info=handler_error,
                )
            return JSONResponse(status_code=500, content=minimal_error_body())

    def _render(self, request: Request, exc: BaseException) -> Response:
        classification = classify_error(exc)
        status_code = classification.status_code
        category = classification.category
        correlation_id = correlation_id_of(request)
        error_id = generate_error_id()
        message = error_message(exc)
        is_server = category is ErrorCategory.SERVER

        self.logger.error(
            f"{category.value.upper()} ERROR: {message}",
            error={
                "type": type(exc).__name__,
                "message": message,
                "code": exc.code if isinstance(exc, AppError) else fault_code(exc),
                "status": status_code,
                "category": category.value,
            },
            request=request_context(request),
            correlation_id=correlation_id,
            error_id=error_id,
            exc_info=exc if is_server else None,
        )

        is_client = 400 <= status_code < 500
        body = ErrorResponse(
            status=status_code,
            message=safe_message(status_code, message),
            correlation_id=correlation_id,
            code=exc.code if is_client and isinstance(exc, AppError) else None,
            details=self._client_details(exc) if is_client else None,
            error_id=error_id if status_code >= 500 else None,
            retry_after=f"{RETRY_AFTER_SECONDS}s" if status_code == 429 else None,
            max_size=format_size(self._limit_for(exc)) if status_code == 413 else None,
        )

        headers = dict(NO_CACHE_HEADERS)
        if isinstance(exc, StarletteHTTPException) and exc.headers:
            headers.update(exc.headers)
        if status_code == 429:
            headers["Retry-After"] = str(RETRY_AFTER_SECONDS)

        response = JSONResponse(status_code=status_code, content=body.to_json_dict(), headers=headers)

        self.logger.info(
            "Error handled",
            error_id=error_id,
            status=status_code,
            category=category.value,
            correlation_id=correlation_id,
        )
        return response

    def _limit_for(self, exc: BaseException) -> int:
        if isinstance(exc, PayloadTooLargeError) and exc.max_bytes is not None:
            return exc.max_bytes
        return self.settings.json_body_limit

    @staticmethod
    def _client_details(exc: BaseException) -> Any:
        if isinstance(exc, AppError):
            return exc.details
        if isinstance(exc, RequestValidationError):
            return {"errors": jsonable_encoder(exc.errors())}
        return None


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch every exception escaping the route layer and hand it to the ErrorHandler."""

    def __init__(self, app: ASGIApp, handler: ErrorHandler) -> None:
        super().__init__(app)
        self.handler = handler

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self.handler.handle(request, exc)


def install_error_handlers(app: FastAPI, handler: ErrorHandler) -> None:
    """Route FastAPI's own exception types through the same handler."""

    async def handle_app_error(request: Request, exc: Exception) -> Response:
        return handler.handle(request, exc)

    async def handle_http_exception(request: Request, exc: Exception) -> Response:
        if isinstance(exc, StarletteHTTPException) and exc.status_code == 404 and exc.detail == "Not Found":
            exc = NotFoundError(
                f"Route {request.method} {request.url.path} not found", code="ROUTE_NOT_FOUND"
            )
        return handler.handle(request, exc)

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)


__all__ = [
    "ErrorHandler",
    "ErrorHandlingMiddleware",
    "install_error_handlers",
    "minimal_error_body",
    "request_context",
]
