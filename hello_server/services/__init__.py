"""Services module."""

from hello_server.services.health import HealthService

__all__ = ["HealthService"]
