"""Application data models and schemas.

Re-exports all schemas so `from hello_server.schemas import ...` works for every model.
"""

from hello_server.schemas.api import (
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
)
from hello_server.schemas.common import CamelModel, ErrorResponse, utc_now_iso
from hello_server.schemas.health import (
    CheckResult,
    HealthReport,
    PingResponse,
    ReadinessReport,
    ServerInfo,
    StatusResponse,
)

__all__ = [
    "ApiInfo",
    "ApiInfoResponse",
    "ApiStatus",
    "ApiStatusResponse",
    "CamelModel",
    "CheckResult",
    "DeletedUser",
    "DeletedUserResponse",
    "ErrorResponse",
    "HealthReport",
    "MemoryUsage",
    "Pagination",
    "PingResponse",
    "ReadinessReport",
    "ServerInfo",
    "StatusResponse",
    "User",
    "UserListResponse",
    "UserResponse",
    "utc_now_iso",
]
