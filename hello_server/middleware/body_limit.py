"""Reject request bodies whose declared size exceeds the configured limit."""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from hello_server.core.errors import PayloadTooLargeError, ValidationError


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Check ``Content-Length`` before the body is read.

    ``limit_for`` maps the request's Content-Type header to its byte limit.
    Raises instead of responding so the error handling layer renders the
    413 like any other failure. Bodies without a declared length are counted
    while the body dependency streams them.
    """

    def __init__(self, app: ASGIApp, limit_for: Callable[[str | None], int]) -> None:
        super().__init__(app)
        self.limit_for = limit_for

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                size = int(declared)
            except ValueError as exc:
                raise ValidationError("Invalid Content-Length header", code="INVALID_HEADER") from exc
            limit = self.limit_for(request.headers.get("content-type"))
            if size > limit:
                raise PayloadTooLargeError(
                    f"Request body of {size} bytes exceeds the {limit} byte limit",
                    max_bytes=limit,
                )
        return await call_next(request)
