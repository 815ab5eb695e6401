"""Application factory: builds the FastAPI app with middlewares, handlers, and routes."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from hello_server.api import build_router
from hello_server.core import Settings, get_settings
from hello_server.middleware import (
    CORRELATION_HEADER,
    AccessLogMiddleware,
    BodySizeLimitMiddleware,
    CorrelationIdMiddleware,
    ErrorHandler,
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
    install_error_handlers,
)
from hello_server.services import HealthService

logger = structlog.get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD", "PATCH"]
CORS_MAX_AGE = 86400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting application",
        pid=os.getpid(),
        address=f"http://{settings.host}:{settings.port}",
        config=settings.summary(),
    )
    yield
    logger.info("Shutting down application", pid=os.getpid())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are read from the environment when not given. Logging is not
    configured here; the process entry point does that once.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Hello World service with mock REST endpoints and health checks.",
        debug=False,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    error_handler = ErrorHandler(settings)
    app.state.settings = settings
    app.state.health_service = HealthService(settings)
    app.state.error_handler = error_handler

    install_error_handlers(app, error_handler)

    # Middleware order: last added runs first (outermost). So add in reverse order of execution.
    app.add_middleware(BodySizeLimitMiddleware, limit_for=settings.body_limit)
    app.add_middleware(ErrorHandlingMiddleware, handler=error_handler)
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_credentials,
            allow_methods=CORS_METHODS,
            allow_headers=["*"],
            expose_headers=[CORRELATION_HEADER],
            max_age=CORS_MAX_AGE,
        )
    if settings.security_headers_enabled:
        app.add_middleware(
            SecurityHeadersMiddleware,
            csp=settings.csp_enabled,
            hsts=settings.is_production,
        )
    if settings.access_log_enabled:
        app.add_middleware(
            AccessLogMiddleware,
            skip_paths=[settings.health_check_path] if settings.is_production else [],
        )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(build_router(settings))

    return app
