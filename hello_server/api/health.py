"""Health, readiness and ping endpoints."""

import time
from typing import Any

from fastapi import APIRouter, Depends, Response, status
import structlog

from hello_server.api.deps import get_app_settings, get_correlation_id, get_health_service
from hello_server.core.config import Settings
from hello_server.schemas import HealthReport, PingResponse, ReadinessReport
from hello_server.services.health import HealthService

logger = structlog.get_logger(__name__)


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


def create_health_router(health_path: str = "/health", log: Any = None) -> APIRouter:
    """Build the router; the health check path is configurable, ``/ready`` and ``/ping`` are not."""
    log = log or logger
    router = APIRouter(tags=["Health"])

    @router.get(
        health_path,
        response_model=HealthReport,
        response_model_exclude_none=True,
        summary="Health Check",
        description="Runs every health check; 503 when any of them fails",
        responses={503: {"model": HealthReport}},
    )
    def health_check(
        response: Response,
        service: HealthService = Depends(get_health_service),
        correlation_id: str | None = Depends(get_correlation_id),
    ) -> HealthReport:
        start_time = time.perf_counter()
        report = service.health(correlation_id)
        if report.healthy:
            log.info(
                "Health check successful",
                status=report.status,
                uptime=report.uptime,
                response_time_ms=_elapsed_ms(start_time),
                correlation_id=correlation_id,
            )
        else:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            log.error(
                "Health check failed",
                error=report.error,
                failed_checks=report.failed_checks,
                response_time_ms=_elapsed_ms(start_time),
                correlation_id=correlation_id,
            )
        return report

    @router.get(
        "/ready",
        response_model=ReadinessReport,
        response_model_exclude_none=True,
        summary="Readiness Check",
        description="Verifies the service can accept traffic; 503 when it cannot",
        responses={503: {"model": ReadinessReport}},
    )
    def readiness_check(
        response: Response,
        service: HealthService = Depends(get_health_service),
        correlation_id: str | None = Depends(get_correlation_id),
    ) -> ReadinessReport:
        start_time = time.perf_counter()
        report = service.readiness(correlation_id)
        if report.ready:
            log.info(
                "Service readiness check passed",
                response_time_ms=_elapsed_ms(start_time),
                correlation_id=correlation_id,
            )
        else:
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            log.error(
                "Service readiness check failed",
                failure_reason=report.failure_reason,
                response_time_ms=_elapsed_ms(start_time),
                correlation_id=correlation_id,
            )
        return report

    @router.get(
        "/ping",
        response_model=PingResponse,
        response_model_exclude_none=True,
        summary="Ping",
        description="Liveness acknowledgement; runs no checks",
    )
    async def ping(
        settings: Settings = Depends(get_app_settings),
        correlation_id: str | None = Depends(get_correlation_id),
    ) -> PingResponse:
        start_time = time.perf_counter()
        pong = PingResponse(service=settings.app_name, correlation_id=correlation_id)
        log.debug(
            "Ping health check",
            response_time_ms=_elapsed_ms(start_time),
            correlation_id=correlation_id,
        )
        return pong

    return router
