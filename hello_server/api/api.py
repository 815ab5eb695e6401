"""Mock REST endpoints under ``/api``.

Handlers validate their input and raise typed errors; rendering the failure is
left to the error handling layer.
"""

import asyncio
import platform
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status

from hello_server.api.deps import get_app_settings, parse_positive_int, request_body
from hello_server.core.config import Settings
from hello_server.core.errors import AppError, ForbiddenError, NotFoundError, ValidationError
from hello_server.schemas import (
    ApiInfo,
    ApiInfoResponse,
    ApiStatus,
    ApiStatusResponse,
    DeletedUser,
    DeletedUserResponse,
    MemoryUsage,
    Pagination,
    User,
    UserListResponse,
    UserResponse,
    utc_now_iso,
)
from hello_server.services import mock_data

router = APIRouter(prefix="/api", tags=["API"])

API_ENDPOINTS = {
    "base": "/api",
    "users": "/api/users",
    "data": "/api/data",
    "status": "/api/status",
}

AVAILABLE_ENDPOINTS = [
    "GET /api",
    "GET /api/status",
    "GET /api/users",
    "GET /api/users/{id}",
    "POST /api/users",
    "PUT /api/users/{id}",
    "DELETE /api/users/{id}",
    "GET /api/data",
    "POST /api/data",
    "GET /api/error",
]

ERROR_TYPES = ("validation", "notfound", "server", "async")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_DATA_LIMIT = 50


def _user_id(raw: str) -> int:
    try:
        user_id = int(raw)
    except ValueError:
        user_id = 0
    if user_id < 1:
        raise ValidationError(
            "Invalid user ID provided",
            code="INVALID_PARAMETER",
            details="User ID must be a positive integer",
        )
    return user_id


def _ensure_user_exists(user_id: int) -> None:
    if user_id > mock_data.MAX_USER_ID:
        raise NotFoundError(
            "User not found",
            code="USER_NOT_FOUND",
            details=f"No user exists with ID: {user_id}",
        )


def _user_fields(body: dict[str, Any], details: str) -> tuple[str, str, str | None]:
    name, email, role = body.get("name"), body.get("email"), body.get("role")
    if not name or not email or not isinstance(name, str) or not isinstance(email, str):
        raise ValidationError("Missing required fields", details=details)
    return name, email, str(role) if role else None


@router.get("", response_model=ApiInfoResponse, summary="API information")
async def api_info(settings: Settings = Depends(get_app_settings)) -> ApiInfoResponse:
    return ApiInfoResponse(
        data=ApiInfo(
            name=f"{settings.app_name} API",
            version=settings.app_version,
            description="REST endpoints serving generated mock data",
            endpoints=API_ENDPOINTS,
            uptime=mock_data.process_uptime(),
        )
    )


@router.get("/status", response_model=ApiStatusResponse, summary="API operational status")
async def api_status(settings: Settings = Depends(get_app_settings)) -> ApiStatusResponse:
    return ApiStatusResponse(
        data=ApiStatus(
            uptime=mock_data.process_uptime(),
            memory=MemoryUsage(**mock_data.memory_summary()),
            environment=settings.environment,
            python=platform.python_version(),
        )
    )


@router.get(
    "/users",
    response_model=UserListResponse,
    response_model_exclude_none=True,
    summary="List users",
)
async def list_users(
    page: str | None = None,
    limit: str | None = None,
    filter: str = "",  # noqa: A002
) -> UserListResponse:
    """Page through the fixed user list, optionally filtered by name or email."""
    result = mock_data.list_users(
        parse_positive_int(page, DEFAULT_PAGE),
        parse_positive_int(limit, DEFAULT_PAGE_SIZE),
        filter,
    )
    return UserListResponse(
        data=[User.model_validate(user) for user in result["data"]],
        pagination=Pagination(**result["pagination"]),
        filter=result["filter"],
    )


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    response_model_exclude_none=True,
    summary="Get a user",
)
async def get_user(user_id: str) -> UserResponse:
    uid = _user_id(user_id)
    _ensure_user_exists(uid)
    return UserResponse(data=User.model_validate(mock_data.user_by_id(uid)))


@router.post(
    "/users",
    response_model=UserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(body: dict[str, Any] = Depends(request_body)) -> UserResponse:
    name, email, role = _user_fields(body, "Name and email are required fields")
    if not mock_data.is_valid_email(email):
        raise ValidationError("Invalid email format", details="Please provide a valid email address")
    return UserResponse(
        message="User created successfully",
        data=User.model_validate(mock_data.new_user(name, email, role)),
    )


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    response_model_exclude_none=True,
    summary="Replace a user",
)
async def update_user(user_id: str, body: dict[str, Any] = Depends(request_body)) -> UserResponse:
    uid = _user_id(user_id)
    name, email, role = _user_fields(body, "Name and email are required for user update")
    _ensure_user_exists(uid)
    return UserResponse(
        message="User updated successfully",
        data=User.model_validate(mock_data.updated_user(uid, name, email, role)),
    )


@router.delete("/users/{user_id}", response_model=DeletedUserResponse, summary="Delete a user")
async def delete_user(user_id: str) -> DeletedUserResponse:
    uid = _user_id(user_id)
    _ensure_user_exists(uid)
    if uid in mock_data.PROTECTED_USER_IDS:
        raise ForbiddenError(
            "Cannot delete admin user",
            code="FORBIDDEN_OPERATION",
            details="Admin users cannot be deleted",
        )
    return DeletedUserResponse(data=DeletedUser(id=uid))


@router.get("/data", summary="Generated metrics and events", response_model=None)
async def get_data(
    format: str = "json",  # noqa: A002
    limit: str | None = None,
    type: str = "all",  # noqa: A002
) -> dict[str, Any] | Response:
    """Metrics, recent events and process information, narrowed by ``type``.

    ``format=xml`` returns a short placeholder document instead.
    """
    if format == "xml":
        return Response(content=mock_data.XML_PLACEHOLDER, media_type="application/xml")

    event_limit = parse_positive_int(limit, DEFAULT_DATA_LIMIT)
    snapshot = mock_data.metrics_snapshot(event_limit)
    return {
        "success": True,
        "data": mock_data.select_section(snapshot, type),
        "meta": {
            "format": format,
            "type": type,
            "limit": event_limit,
            "timestamp": utc_now_iso(),
        },
    }


@router.post("/data", status_code=status.HTTP_201_CREATED, summary="Submit data for processing")
async def submit_data(body: dict[str, Any] = Depends(request_body)) -> dict[str, Any]:
    data = body.get("data")
    if not data:
        raise ValidationError("Missing data payload", details="Request must include a data field")
    return {
        "success": True,
        "message": "Data processed successfully",
        "data": mock_data.process_submission(data, body.get("type"), body.get("metadata")),
    }


def _raise_async_error() -> None:
    raise RuntimeError("Simulated async error")


@router.get("/error", summary="Simulate a failure")
async def simulate_error(type: str = "generic") -> None:  # noqa: A002
    if type == "validation":
        raise ValidationError(
            "Validation error simulation", details="This is a simulated validation error"
        )
    if type == "notfound":
        raise NotFoundError(
            "Resource not found simulation", details="This is a simulated not found error"
        )
    if type == "server":
        raise RuntimeError("Simulated server error for testing error handling middleware")
    if type == "async":
        asyncio.get_running_loop().call_later(0.1, _raise_async_error)
        raise AppError(
            "Async error initiated",
            code="ASYNC_ERROR",
            details="An async error has been triggered",
        )
    raise ValidationError(
        "Unknown error type",
        code="INVALID_PARAMETER",
        details=f"Supported error types: {', '.join(ERROR_TYPES)}",
    )


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False,
)
async def endpoint_not_found(request: Request, path: str) -> None:  # noqa: ARG001
    raise NotFoundError(
        "API endpoint not found",
        code="ENDPOINT_NOT_FOUND",
        details={
            "path": request.url.path,
            "availableEndpoints": AVAILABLE_ENDPOINTS,
        },
    )
