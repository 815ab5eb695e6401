"""Process entry point: ``python -m hello_server`` or the ``hello-server`` script.

With ``WORKERS=1`` the app is served by a single :class:`GracefulServer`.
With more workers uvicorn's supervisor spawns that many processes, each
building its own app through :func:`create_worker_app`.
"""

import asyncio
import os
import signal
import sys
import threading
from types import FrameType, TracebackType
from typing import Any

from pydantic import ValidationError
import structlog
import uvicorn

from hello_server.core import Settings, configure_logging, get_settings
from hello_server.factory import create_app

logger = structlog.get_logger(__name__)


class GracefulServer(uvicorn.Server):
    """uvicorn server that can be stopped from inside the process.

    Signals, uncaught exceptions and unhandled event-loop errors all end in
    the same shutdown: stop accepting connections, let in-flight requests
    drain for ``timeout_graceful_shutdown`` seconds, cancel the rest.
    Faults set a non-zero :attr:`exit_code`.
    """

    def __init__(self, config: uvicorn.Config) -> None:
        super().__init__(config)
        self.exit_code = 0

    def request_shutdown(self, exit_code: int = 0) -> None:
        self.exit_code = max(self.exit_code, exit_code)
        self.should_exit = True

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        logger.info(
            "Shutdown signal received",
            signal=signal.Signals(sig).name,
            open_connections=len(self.server_state.connections),
        )
        super().handle_exit(sig, frame)

    def handle_loop_error(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.critical(
            "Unhandled error in event loop",
            error=context.get("message"),
            exc_info=exc,
        )
        self.request_shutdown(1)

    async def startup(self, sockets: Any = None) -> None:
        asyncio.get_running_loop().set_exception_handler(self.handle_loop_error)
        try:
            await super().startup(sockets=sockets)
        except SystemExit:
            logger.critical(
                "Failed to start server",
                host=self.config.host,
                port=self.config.port,
            )
            raise
        logger.info(
            "Server listening",
            address=f"http://{self.config.host}:{self.config.port}",
            pid=os.getpid(),
            workers=1,
        )

    async def shutdown(self, sockets: Any = None) -> None:
        logger.info(
            "Closing server",
            open_connections=len(self.server_state.connections),
            timeout=self.config.timeout_graceful_shutdown,
        )
        await super().shutdown(sockets=sockets)
        logger.info("Server closed", exit_code=self.exit_code)


def install_excepthooks(server: GracefulServer) -> None:
    """Log uncaught exceptions in full, then shut the server down with status 1."""

    def excepthook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        logger.critical("Uncaught exception", exc_info=(exc_type, exc, tb))
        server.request_shutdown(1)

    def thread_excepthook(args: threading.ExceptHookArgs) -> None:
        if args.exc_value is None:
            return
        excepthook(args.exc_type, args.exc_value, args.exc_traceback)

    sys.excepthook = excepthook
    threading.excepthook = thread_excepthook


def uvicorn_options(settings: Settings) -> dict[str, Any]:
    # Logging is ours; uvicorn must not install its own handlers or access log.
    return {
        "host": settings.host,
        "port": settings.port,
        "timeout_keep_alive": int(settings.keep_alive_timeout),
        "timeout_graceful_shutdown": int(settings.shutdown_timeout),
        "log_config": None,
        "access_log": False,
    }


def create_worker_app() -> Any:
    """App factory for worker processes, which start without logging configured."""
    settings = get_settings()
    configure_logging(settings)
    return create_app(settings)


def run() -> None:
    try:
        settings = get_settings()
    except ValidationError as exc:
        configure_logging("ERROR")
        logger.critical("Invalid configuration", error=str(exc))
        sys.exit(1)

    configure_logging(settings)

    if settings.workers > 1:
        logger.info(
            "Starting worker processes",
            address=f"http://{settings.host}:{settings.port}",
            pid=os.getpid(),
            environment=settings.environment,
            workers=settings.workers,
        )
        uvicorn.run(
            "hello_server.main:create_worker_app",
            factory=True,
            workers=settings.workers,
            **uvicorn_options(settings),
        )
        return

    logger.info(
        "Starting server",
        pid=os.getpid(),
        environment=settings.environment,
        workers=1,
    )
    server = GracefulServer(uvicorn.Config(create_app(settings), **uvicorn_options(settings)))
    install_excepthooks(server)
    server.run()
    sys.exit(server.exit_code)


if __name__ == "__main__":
    run()
