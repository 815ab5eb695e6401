"""One access log line per request."""

from collections.abc import Iterable
import time
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
import structlog

_logger = structlog.get_logger("hello_server.access")


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Log method, url, status, timing and client details for each request.

    Paths in ``skip_paths`` are passed through without a log line (the
    health check path in production, where load balancers poll it).
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths: Iterable[str] = (),
        logger: Any = None,
    ) -> None:
        super().__init__(app)
        self.skip_paths = frozenset(skip_paths)
        self.logger = logger or _logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        response_time = (time.perf_counter() - start_time) * 1000

        url = str(request.url.path)
        if request.url.query:
            url = f"{url}?{request.url.query}"
        self.logger.info(
            "HTTP request",
            method=request.method,
            url=url,
            status=response.status_code,
            response_time_ms=round(response_time, 2),
            content_length=response.headers.get("content-length", "-"),
            remote_addr=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent", "-"),
            referrer=request.headers.get("referer", "-"),
        )
        return response
