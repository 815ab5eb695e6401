"""Health, readiness and ping response schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from hello_server.schemas.common import CamelModel, utc_now_iso


class CheckResult(BaseModel):
    """Outcome of one health or readiness check.

    Extra keyword arguments are kept and serialized next to ``healthy`` and
    ``message``, so each check can report its own measurements.
    """

    model_config = ConfigDict(extra="allow")

    healthy: bool
    message: str


class ServerInfo(BaseModel):
    host: str
    port: int
    python: str


class HealthReport(CamelModel):
    """Response model for the health check endpoint."""

    model_config = ConfigDict(title="Health status (checks, process and server details)")

    status: Literal["ok", "error"] = Field(..., description="Overall health status of the service")
    timestamp: str = Field(default_factory=utc_now_iso)
    service: str
    version: str | None = None
    uptime: float | None = None
    environment: str
    server: ServerInfo | None = None
    message: str | None = None
    error: str | None = Field(default=None, description="Combined failure message")
    failed_checks: list[str] | None = None
    checks: dict[str, CheckResult] = Field(default_factory=dict)
    correlation_id: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status == "ok"


class ReadinessReport(CamelModel):
    """Response model for the readiness endpoint."""

    status: Literal["ready", "not ready"]
    timestamp: str = Field(default_factory=utc_now_iso)
    service: str
    message: str | None = None
    failure_reason: str | None = None
    checks: dict[str, CheckResult] = Field(default_factory=dict)
    correlation_id: str | None = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"


class PingResponse(CamelModel):
    """Minimal liveness acknowledgement."""

    status: Literal["ok"] = "ok"
    message: str = "pong"
    timestamp: str = Field(default_factory=utc_now_iso)
    service: str
    correlation_id: str | None = None


class StatusResponse(CamelModel):
    """Response model for ``GET /status``."""

    status: str = "operational"
    message: str
    timestamp: str = Field(default_factory=utc_now_iso)
    uptime: float
    environment: str
