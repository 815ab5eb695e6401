"""Mock API response schemas."""

from typing import Literal

from pydantic import Field

from hello_server.schemas.common import CamelModel, utc_now_iso


class ApiInfo(CamelModel):
    name: str
    version: str
    description: str
    endpoints: dict[str, str]
    timestamp: str = Field(default_factory=utc_now_iso)
    uptime: float


class ApiInfoResponse(CamelModel):
    success: Literal[True] = True
    data: ApiInfo


class MemoryUsage(CamelModel):
    used: int
    total: int
    unit: str = "MB"


class ApiStatus(CamelModel):
    status: str = "operational"
    timestamp: str = Field(default_factory=utc_now_iso)
    uptime: float
    memory: MemoryUsage
    environment: str
    python: str = Field(..., description="Interpreter version")


class ApiStatusResponse(CamelModel):
    success: Literal[True] = True
    data: ApiStatus


class User(CamelModel):
    """A fabricated user record."""

    id: int
    name: str
    email: str
    role: str = "user"
    created_at: str | None = None
    updated_at: str | None = None
    last_login: str | None = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class UserListResponse(CamelModel):
    success: Literal[True] = True
    data: list[User]
    pagination: Pagination
    filter: str | None = None


class UserResponse(CamelModel):
    success: Literal[True] = True
    message: str | None = None
    data: User


class DeletedUser(CamelModel):
    id: int
    deleted_at: str = Field(default_factory=utc_now_iso)


class DeletedUserResponse(CamelModel):
    success: Literal[True] = True
    message: str = "User deleted successfully"
    data: DeletedUser
