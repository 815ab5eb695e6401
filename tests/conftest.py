"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Callable, Generator
import io
import json
import logging
from typing import Any

from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
import pytest
import structlog

from hello_server.core import Settings, configure_logging
from hello_server.factory import create_app


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: no .env file, no file logging, generous memory threshold."""
    values: dict[str, Any] = {
        "environment": "test",
        "log_file_enabled": False,
        "memory_threshold_mb": 4096,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return make_settings()


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for the FastAPI app."""
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def log_stream() -> Generator[io.StringIO, None, None]:
    """Route all logging as JSON lines into a buffer; restore the previous setup afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    configure_logging("DEBUG", environment="production", stream=stream)
    yield stream
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def log_records(log_stream: io.StringIO) -> Callable[[], list[dict[str, Any]]]:
    """Parsed JSON log records written so far."""

    def read() -> list[dict[str, Any]]:
        return [json.loads(line) for line in log_stream.getvalue().splitlines() if line.strip()]

    return read
