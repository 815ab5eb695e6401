"""Request-scoped dependencies shared by the route handlers."""

import json
from typing import Any

from fastapi import Depends, Request
from starlette.types import Message

from hello_server.core.config import Settings, media_type
from hello_server.core.errors import PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError
from hello_server.services.health import HealthService

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
TEXT_CONTENT_TYPE = "text/plain"


def get_app_settings(request: Request) -> Settings:
    """The settings the application was created with."""
    return request.app.state.settings


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service


def get_correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


def _is_json(kind: str) -> bool:
    return kind == "application/json" or kind.endswith("+json")


def _charset(content_type: str | None) -> str:
    for param in (content_type or "").split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return "utf-8"


async def read_limited(request: Request, limit: int) -> bytes:
    """Read the body stream, giving up as soon as it grows past ``limit`` bytes."""
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLargeError(f"Request body exceeds the {limit} byte limit", max_bytes=limit)
        chunks.append(chunk)
    return b"".join(chunks)


async def _parse_form(request: Request, raw: bytes) -> dict[str, Any]:
    """Parse an already-read URL-encoded body; repeated keys become lists."""

    async def receive() -> Message:
        return {"type": "http.request", "body": raw, "more_body": False}

    form = await Request(request.scope, receive).form()
    fields: dict[str, Any] = {}
    for key in form.keys():
        values = form.getlist(key)
        fields[key] = values[0] if len(values) == 1 else values
    return fields


def _decode_text(raw: bytes, content_type: str | None) -> str:
    charset = _charset(content_type)
    try:
        return raw.decode(charset, errors="replace")
    except LookupError as exc:
        raise UnsupportedMediaTypeError(f"Unsupported charset {charset}") from exc


async def request_body(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Parse a JSON, URL-encoded or plain-text request body.

    Each content type has its own size limit, enforced while the body streams
    in. An empty body is ``{}``. A text body has no fields, so handlers see
    ``{}`` for it too. The parsed body is kept on ``request.state.body`` so
    error logs can include it.
    """
    content_type = request.headers.get("content-type")
    kind = media_type(content_type)
    raw = await read_limited(request, settings.body_limit(content_type))
    if not raw.strip():
        body: Any = {}
    elif _is_json(kind):
        try:
            body = json.loads(raw)
        except ValueError as exc:
            raise ValidationError("Malformed JSON in request body", code="INVALID_JSON") from exc
    elif kind == FORM_CONTENT_TYPE:
        body = await _parse_form(request, raw)
    elif kind == TEXT_CONTENT_TYPE:
        body = _decode_text(raw, content_type)
    else:
        raise UnsupportedMediaTypeError(
            f"Content type {kind or 'unknown'} not supported, "
            f"expected application/json, {FORM_CONTENT_TYPE} or {TEXT_CONTENT_TYPE}"
        )

    request.state.body = body
    return body if isinstance(body, dict) else {}


def parse_positive_int(value: str | None, default: int) -> int:
    """Parse a query parameter, falling back to ``default`` when absent, malformed or below 1."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 1 else default
