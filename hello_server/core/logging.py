"""Log output for the service: readable lines in development, JSON lines everywhere else.

Configure once at application startup. Both logging styles used in the code
base end up in the same handlers:

    logging.getLogger(__name__).info("message", extra={"key": value})
    structlog.get_logger(__name__).info("message", key=value)

The request correlation ID is bound into structlog's contextvars by the
correlation middleware and attached to every record emitted while a request
is being served.
"""

from datetime import datetime, timezone
import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from hello_server.core.config import Settings

# Server and reloader loggers stay at WARNING whatever the application level is.
THIRD_PARTY_LOGGER_LEVELS: dict[str, str] = {
    "uvicorn": "WARNING",
    "uvicorn.error": "WARNING",
    "uvicorn.access": "WARNING",
    "watchfiles": "WARNING",
}

APPLICATION_LOG_FILE = "application.log"
ERROR_LOG_FILE = "error.log"

# Attributes every LogRecord carries; anything else on a record is an extra field.
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "message",
        "thread",
        "threadName",
        "taskName",
        "getMessage",
    }
)

# Attributes added by uvicorn and structlog that are never rendered.
_EXCLUDE_EXTRAS = frozenset({"color_message", "_from_structlog", "_record"})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed via ``extra=`` or structlog keyword arguments."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and key not in _EXCLUDE_EXTRAS and value is not None
    }


class CorrelationIdFilter(logging.Filter):
    """Attach the current request's correlation ID to records that lack one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            correlation_id = structlog.contextvars.get_contextvars().get("correlation_id")
            if correlation_id is not None:
                record.correlation_id = correlation_id
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for the console in deployed environments and for log files."""

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service:
            payload["service"] = self.service
            payload["pid"] = record.process
        payload.update(_extra_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class DevFormatter(logging.Formatter):
    """Pipe-delimited lines with the correlation ID up front and extras as key=value.

    Output example:
        2025-01-15 10:23:45 | INFO     | hello_server.factory | [3f2a…] Request completed  status_code=200
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)
        message = record.getMessage()

        extras = _extra_fields(record)
        correlation_id = extras.pop("correlation_id", None)
        correlation = f"[{correlation_id}] " if correlation_id else ""
        extras_str = "  " + " ".join(f"{k}={v}" for k, v in extras.items()) if extras else ""

        line = f"{ts} | {level} | {record.name} | {correlation}{message}{extras_str}"

        if record.exc_info:
            exc_text = self.formatException(record.exc_info)
            indented = "\n".join(f"  {line_text}" for line_text in exc_text.splitlines())
            line = f"{line}\n{indented}"

        return line


def _to_level(level: str | int) -> int:
    return level if isinstance(level, int) else getattr(logging, level.upper())


def _file_handlers(
    directory: str | Path, max_bytes: int, backup_count: int, service: str | None
) -> list[logging.Handler]:
    """Rotating JSON sinks: everything to application.log, errors also to error.log."""
    log_dir = Path(directory)
    log_dir.mkdir(parents=True, exist_ok=True)

    application = RotatingFileHandler(
        log_dir / APPLICATION_LOG_FILE,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    errors = RotatingFileHandler(
        log_dir / ERROR_LOG_FILE,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    errors.setLevel(logging.ERROR)
    for handler in (application, errors):
        handler.setFormatter(JsonFormatter(service=service))
    return [application, errors]


def configure_structlog() -> None:
    """Route structlog loggers through the stdlib handlers configured below."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.render_to_log_kwargs,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def configure_logging(
    level: "str | int | Settings" = "INFO",
    *,
    environment: str = "production",
    log_format: str | None = None,
    stream: Any = None,
    log_directory: str | Path | None = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 14,
    service: str | None = None,
    logger_levels: dict[str, str | int] | None = None,
) -> None:
    """Install console and optional file handlers on the root logger, shared with structlog.

    Args:
        level: Root logger level (e.g. "INFO", logging.INFO), or a Settings
            instance to take every option from.
        environment: "development" for human-readable output, anything else for JSON.
        log_format: "text" or "json"; overrides the choice made from environment.
        stream: Output stream; defaults to sys.stdout.
        log_directory: When set, also write rotating JSON log files there.
        max_bytes: Size at which a log file is rotated.
        backup_count: Number of rotated files to keep.
        service: Service name stamped on every JSON record.
        logger_levels: Optional mapping of logger names to levels.
    """
    if not isinstance(level, (str, int)):
        settings = level
        level = settings.log_level
        environment = settings.environment
        log_format = settings.log_format
        service = settings.app_name
        max_bytes = settings.log_max_bytes
        backup_count = settings.log_backup_count
        if settings.log_file_enabled:
            log_directory = settings.log_directory

    if stream is None:
        stream = sys.stdout
    if log_format is None:
        log_format = "text" if environment == "development" else "json"

    root = logging.getLogger()
    root.setLevel(_to_level(level))
    for existing in root.handlers:
        existing.close()
    root.handlers.clear()

    console = logging.StreamHandler(stream)
    console.setFormatter(DevFormatter() if log_format == "text" else JsonFormatter(service=service))
    handlers: list[logging.Handler] = [console]
    if log_directory is not None:
        handlers.extend(_file_handlers(log_directory, max_bytes, backup_count, service))

    correlation_filter = CorrelationIdFilter()
    for handler in handlers:
        if handler.level == logging.NOTSET:
            handler.setLevel(root.level)
        handler.addFilter(correlation_filter)
        root.addHandler(handler)

    levels = {**THIRD_PARTY_LOGGER_LEVELS, **(logger_levels or {})}
    for name, lvl in levels.items():
        logging.getLogger(name).setLevel(_to_level(lvl))

    configure_structlog()


__all__ = [
    "APPLICATION_LOG_FILE",
    "ERROR_LOG_FILE",
    "THIRD_PARTY_LOGGER_LEVELS",
    "CorrelationIdFilter",
    "DevFormatter",
    "JsonFormatter",
    "configure_logging",
    "configure_structlog",
]
