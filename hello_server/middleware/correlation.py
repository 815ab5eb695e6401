"""Correlation ID middleware.

Assigns every request a fresh UUID, makes it visible to every log line emitted
while the request is handled and echoes it back in ``X-Correlation-ID``.
"""

import time
from typing import Any
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
import structlog

CORRELATION_HEADER = "X-Correlation-ID"

_logger = structlog.get_logger(__name__)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: binds the correlation ID for the lifetime of a request.

    Inbound ``X-Correlation-ID`` headers are ignored; the server always
    generates its own identifier.
    """

    def __init__(self, app: ASGIApp, logger: Any = None) -> None:
        super().__init__(app)
        self.logger = logger or _logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = generate_correlation_id()
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        start_time = time.perf_counter()
        try:
            self.logger.info(
                "Request initiated",
                correlation_id=correlation_id,
                method=request.method,
                url=str(request.url.path),
                user_agent=request.headers.get("user-agent"),
                remote_addr=request.client.host if request.client else None,
            )

            response = await call_next(request)

            process_time = (time.perf_counter() - start_time) * 1000
            response.headers[CORRELATION_HEADER] = correlation_id
            self.logger.info(
                "Request completed",
                correlation_id=correlation_id,
                method=request.method,
                url=str(request.url.path),
                status_code=response.status_code,
                processing_time_ms=round(process_time, 2),
                content_length=response.headers.get("content-length", "0"),
            )
            return response
        finally:
            structlog.contextvars.unbind_contextvars("correlation_id")
