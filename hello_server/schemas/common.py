"""Common schema base, timestamps and the error response."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string in UTC."""
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys, populated by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(CamelModel):
    """Response model for API errors.

    The schema is the same for every failure; ``error_id`` only appears on
    server errors and ``code``/``details`` only on client errors raised by
    the application itself.
    """

    error: bool = Field(default=True, description="Always true for error responses")
    status: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Client-safe error message")
    timestamp: str = Field(default_factory=utc_now_iso)
    correlation_id: str | None = Field(default=None, description="Request correlation ID")
    code: str | None = Field(default=None, description="Application error code")
    details: Any = Field(default=None, description="Additional error details")
    error_id: str | None = Field(default=None, description="Server error reference")
    retry_after: str | None = None
    max_size: str | None = None
