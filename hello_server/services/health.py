"""Health and readiness checks.

Each check is a synchronous, in-memory self-assessment returning a
:class:`CheckResult`. Checks never raise past their own boundary: a failure
inside a check is reported as an unhealthy result. A report is healthy only
when every one of its checks is.
"""

from collections.abc import Callable
import importlib.util
import platform
import socket
import time
from typing import Any

import psutil
import structlog

from hello_server.core.config import Settings
from hello_server.schemas.health import CheckResult, HealthReport, ReadinessReport, ServerInfo

MIN_PYTHON_VERSION = (3, 10)
REQUIRED_SETTINGS = ("environment", "host", "port")
HEALTH_DEPENDENCIES = (
    "fastapi",
    "starlette",
    "pydantic",
    "pydantic_settings",
    "structlog",
    "psutil",
    "uvicorn",
)
READINESS_DEPENDENCIES = ("fastapi", "structlog")

_MB = 1024 * 1024

Check = Callable[[], CheckResult]


def failure_summary(results: dict[str, CheckResult]) -> str:
    """``"name: message, name: message"`` for every failing check."""
    return ", ".join(f"{name}: {result.message}" for name, result in results.items() if not result.healthy)


class HealthService:
    """Runs the health and readiness checks for one process."""

    def __init__(
        self,
        settings: Settings,
        logger: Any = None,
        *,
        process: psutil.Process | None = None,
        dependencies: tuple[str, ...] = HEALTH_DEPENDENCIES,
        readiness_dependencies: tuple[str, ...] = READINESS_DEPENDENCIES,
    ) -> None:
        self.settings = settings
        self.logger = logger or structlog.get_logger(__name__)
        self.process = process or psutil.Process()
        self.dependencies = dependencies
        self.readiness_dependencies = readiness_dependencies

    def uptime(self) -> float:
        return round(time.time() - self.process.create_time(), 3)

    def report_uptime(self, results: dict[str, CheckResult]) -> float | None:
        """Uptime measured by the process check, or measured again when that check failed."""
        process = results.get("process")
        if process is not None and process.model_extra and "uptime" in process.model_extra:
            return process.model_extra["uptime"]
        try:
            return self.uptime()
        except psutil.Error as exc:
            self.logger.warning("Uptime unavailable", error=str(exc))
            return None

    # Health checks

    def check_process(self) -> CheckResult:
        return CheckResult(
            healthy=True,
            message="Process healthy",
            pid=self.process.pid,
            uptime=self.uptime(),
            python=platform.python_version(),
        )

    def check_memory(self) -> CheckResult:
        memory = self.process.memory_info()
        rss_mb = round(memory.rss / _MB)
        threshold = self.settings.memory_threshold
        healthy = rss_mb < threshold
        return CheckResult(
            healthy=healthy,
            message=(
                "Memory usage within limits"
                if healthy
                else f"Memory usage exceeded threshold: {rss_mb}MB > {threshold}MB"
            ),
            rss=f"{rss_mb}MB",
            vms=f"{round(memory.vms / _MB)}MB",
            threshold=f"{threshold}MB",
        )

    def check_configuration(self) -> CheckResult:
        missing = [key for key in REQUIRED_SETTINGS if not getattr(self.settings, key, None)]
        if missing:
            return CheckResult(
                healthy=False,
                message=f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            )
        return CheckResult(
            healthy=True,
            message="Configuration validated",
            environment=self.settings.environment,
            host=self.settings.host,
            port=self.settings.port,
        )

    def check_environment(self) -> CheckResult:
        version = platform.python_version_tuple()
        current = (int(version[0]), int(version[1]))
        details = {
            "python": platform.python_version(),
            "platform": platform.system().lower(),
            "arch": platform.machine(),
        }
        if current < MIN_PYTHON_VERSION:
            minimum = ".".join(str(part) for part in MIN_PYTHON_VERSION)
            return CheckResult(
                healthy=False,
                message=f"Python {details['python']} below minimum required {minimum}",
                **details,
            )
        return CheckResult(healthy=True, message="Environment validated", **details)

    def check_dependencies(self) -> CheckResult:
        availability = {name: importlib.util.find_spec(name) is not None for name in self.dependencies}
        missing = [name for name, available in availability.items() if not available]
        if missing:
            return CheckResult(
                healthy=False,
                message=f"Dependency failures: {', '.join(f'{name}: not installed' for name in missing)}",
                dependencies=availability,
            )
        return CheckResult(healthy=True, message="All dependencies available", dependencies=availability)

    # Readiness checks

    def check_server_readiness(self) -> CheckResult:
        socket.getaddrinfo(self.settings.host, self.settings.port, type=socket.SOCK_STREAM)
        return CheckResult(
            healthy=True,
            message="Server ready",
            host=self.settings.host,
            port=self.settings.port,
        )

    def check_configuration_readiness(self) -> CheckResult:
        ready = all(getattr(self.settings, key, None) for key in REQUIRED_SETTINGS)
        return CheckResult(
            healthy=ready,
            message="Configuration ready" if ready else "Configuration incomplete",
            environment=self.settings.environment,
        )

    def check_dependency_readiness(self) -> CheckResult:
        availability = {
            name: importlib.util.find_spec(name) is not None for name in self.readiness_dependencies
        }
        ready = all(availability.values())
        return CheckResult(
            healthy=ready,
            message="Dependencies ready" if ready else "Dependencies not ready",
            **availability,
        )

    # Reports

    def health_checks(self) -> dict[str, Check]:
        return {
            "process": self.check_process,
            "memory": self.check_memory,
            "configuration": self.check_configuration,
            "environment": self.check_environment,
            "dependencies": self.check_dependencies,
        }

    def readiness_checks(self) -> dict[str, Check]:
        return {
            "server": self.check_server_readiness,
            "configuration": self.check_configuration_readiness,
            "dependencies": self.check_dependency_readiness,
        }

    def run_checks(self, checks: dict[str, Check]) -> dict[str, CheckResult]:
        """Run every check, converting an exception into an unhealthy result."""
        results: dict[str, CheckResult] = {}
        for name, check in checks.items():
            try:
                results[name] = check()
            except Exception as exc:
                self.logger.warning("Check raised", check=name, error=str(exc), exc_info=exc)
                results[name] = CheckResult(
                    healthy=False,
                    message=f"{name} check failed: {exc}",
                    error=type(exc).__name__,
                )
        return results

    def health(self, correlation_id: str | None = None) -> HealthReport:
        results = self.run_checks(self.health_checks())
        healthy = all(result.healthy for result in results.values())
        report = HealthReport(
            status="ok" if healthy else "error",
            service=self.settings.app_name,
            version=self.settings.app_version,
            uptime=self.report_uptime(results),
            environment=self.settings.environment,
            server=ServerInfo(
                host=self.settings.host,
                port=self.settings.port,
                python=platform.python_version(),
            ),
            checks=results,
            correlation_id=correlation_id,
        )
        if healthy:
            return report
        return report.model_copy(
            update={
                "message": "Health check failed",
                "error": f"Health check failures: {failure_summary(results)}",
                "failed_checks": [name for name, result in results.items() if not result.healthy],
            }
        )

    def readiness(self, correlation_id: str | None = None) -> ReadinessReport:
        results = self.run_checks(self.readiness_checks())
        if all(result.healthy for result in results.values()):
            return ReadinessReport(
                status="ready",
                service=self.settings.app_name,
                message="Service ready for traffic",
                checks=results,
                correlation_id=correlation_id,
            )
        return ReadinessReport(
            status="not ready",
            service=self.settings.app_name,
            message="Service not ready",
            failure_reason=failure_summary(results),
            checks=results,
            correlation_id=correlation_id,
        )


__all__ = [
    "HEALTH_DEPENDENCIES",
    "MIN_PYTHON_VERSION",
    "READINESS_DEPENDENCIES",
    "REQUIRED_SETTINGS",
    "HealthService",
    "failure_summary",
]
