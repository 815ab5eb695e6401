"""HTTP routes."""

from fastapi import APIRouter

from hello_server.api import api, index
from hello_server.api.health import create_health_router
from hello_server.core.config import Settings


def build_router(settings: Settings) -> APIRouter:
    """All routes; the ``/api`` catch-all is registered last."""
    router = APIRouter()
    router.include_router(index.router)
    router.include_router(create_health_router(settings.health_check_path))
    router.include_router(api.router)
    return router


__all__ = ["build_router"]
