"""Root endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from hello_server.api.deps import get_app_settings
from hello_server.core.config import Settings
from hello_server.schemas import StatusResponse
from hello_server.services.mock_data import process_uptime

router = APIRouter(tags=["Index"])

GREETING = "Hello, World!\n"


@router.get("/", response_class=PlainTextResponse, summary="Greeting")
async def hello() -> str:
    return GREETING


@router.get("/status", response_model=StatusResponse, summary="Server status")
async def server_status(settings: Settings = Depends(get_app_settings)) -> StatusResponse:
    return StatusResponse(
        message=f"{settings.app_name} is running",
        uptime=process_uptime(),
        environment=settings.environment,
    )
