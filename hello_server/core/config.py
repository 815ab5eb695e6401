"""Application configuration settings."""

from functools import lru_cache
import logging
import os
import re
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BeforeValidator,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

Environment = Literal["development", "staging", "production", "test"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "text"]

# Origins allowed outside development when CORS_ORIGIN is not set.
LOCAL_ORIGINS = "http://127.0.0.1:3000,http://localhost:3000"

_MAX_WORKERS = (os.cpu_count() or 1) * 2

_HOST_PATTERN = re.compile(
    r"^(localhost|(\d{1,3}\.){3}\d{1,3}"
    r"|[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*)$"
)
_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"b": 1, "kb": 1024, "mb": 1024**2, "gb": 1024**3}


def _check_host(value: str) -> str:
    value = value.strip()
    if not _HOST_PATTERN.match(value):
        raise ValueError(f"invalid host {value!r}")
    return value


def parse_size(value: Any) -> Any:
    """Convert a size string such as ``"10mb"`` or ``"512kb"`` into bytes.

    Non-string values are returned unchanged for pydantic to validate.
    """
    if isinstance(value, str):
        match = _SIZE_PATTERN.match(value)
        if not match:
            raise ValueError(f"invalid size {value!r}")
        number, unit = match.groups()
        return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])
    return value


def environment_defaults(environment: str) -> dict[str, Any]:
    """Defaults that depend on the environment, used when a value is unset or invalid."""
    production = environment == "production"
    deployed = environment in ("production", "staging")
    return {
        "debug": not production,
        "log_level": "INFO" if production else "DEBUG",
        "log_format": "json" if deployed else "text",
        "log_file_enabled": deployed,
        "csp_enabled": production,
        "cors_origin": "*" if environment == "development" else LOCAL_ORIGINS,
    }


def media_type(content_type: str | None) -> str:
    """``"application/json; charset=utf-8"`` -> ``"application/json"``."""
    return (content_type or "").split(";", 1)[0].strip().lower()


Host = Annotated[str, AfterValidator(_check_host)]
SizeInBytes = Annotated[int, BeforeValidator(parse_size)]


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be overridden via environment variables. Invalid values
    are reported with a warning and replaced by their default, so a typo in
    the environment never prevents the server from booting. Defaults that
    depend on the environment (debug, log level, log format, file logging,
    CSP, CORS origins) are filled in before validation and also serve as the
    fallback for those settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = Field(default="hello-server", min_length=1)
    app_version: str = "1.0.0"
    environment: Environment = Field(
        default="development", description="The environment the application is running in"
    )
    debug: bool = Field(default=False, description="Whether to run the application in debug mode")

    # Server
    host: Host = Field(default="127.0.0.1", description="The host to bind the server to")
    port: int = Field(default=3000, ge=1024, le=65535, description="The port to bind the server to")
    server_timeout: float = Field(default=30.0, ge=1, le=300, description="Request timeout in seconds")
    keep_alive_timeout: float = Field(default=5.0, ge=1, le=60)
    shutdown_timeout: float = Field(
        default=10.0, ge=5, le=30, description="Seconds to wait for open connections on shutdown"
    )
    workers: int = Field(default=1, ge=1, le=_MAX_WORKERS)

    # Logging
    log_level: LogLevel = Field(default="INFO", description="The log level to use")
    log_format: LogFormat = "json"
    log_file_enabled: bool = False
    log_directory: str = "logs"
    log_max_bytes: SizeInBytes = Field(default=20 * 1024 * 1024, ge=1024)
    log_backup_count: int = Field(default=14, ge=1, le=365)

    # HTTP middleware
    cors_enabled: bool = True
    cors_origin: str = Field(default="*", description="Comma-separated list of allowed origins")
    cors_credentials: bool = False
    security_headers_enabled: bool = True
    csp_enabled: bool = False
    json_body_limit: SizeInBytes = Field(default=10 * 1024 * 1024, gt=0)
    urlencoded_limit: SizeInBytes = Field(default=10 * 1024 * 1024, gt=0)
    text_limit: SizeInBytes = Field(default=1024 * 1024, gt=0)
    access_log_enabled: bool = True

    # Monitoring
    health_check_path: str = Field(default="/health", pattern=r"^/\S*$")
    memory_threshold_mb: int | None = Field(
        default=None, gt=0, description="RSS limit for the memory health check"
    )

    @model_validator(mode="before")
    @classmethod
    def _apply_environment_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        environment = str(data.get("environment") or "development").strip().lower()
        if "environment" in data:
            data["environment"] = environment
        for key, value in environment_defaults(environment).items():
            data.setdefault(key, value)
        for key in ("log_level", "log_format"):
            if isinstance(data[key], str):
                data[key] = data[key].strip()
        if isinstance(data["log_level"], str):
            data["log_level"] = data["log_level"].upper()
        return data

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError as exc:
            # environment is declared first, so it is already validated here
            defaults = environment_defaults(info.data.get("environment", "development"))
            if info.field_name in defaults:
                default = defaults[info.field_name]
            else:
                default = cls.model_fields[info.field_name].get_default(call_default_factory=True)
            logger.warning(
                "Invalid configuration value, using default",
                extra={
                    "setting": info.field_name,
                    "value": value,
                    "default": default,
                    "reason": exc.errors()[0]["msg"],
                },
            )
            return default

    @model_validator(mode="after")
    def _check_required_at_boot(self) -> "Settings":
        if self.log_file_enabled and not self.log_directory.strip():
            raise ValueError("LOG_DIRECTORY must be set when file logging is enabled")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    def body_limit(self, content_type: str | None) -> int:
        """Largest request body accepted for a content type, in bytes."""
        kind = media_type(content_type)
        if kind == "application/x-www-form-urlencoded":
            return self.urlencoded_limit
        if kind == "text/plain":
            return self.text_limit
        return self.json_body_limit

    @property
    def memory_threshold(self) -> int:
        """Resident set size limit in MB used by the memory health check."""
        if self.memory_threshold_mb is not None:
            return self.memory_threshold_mb
        return 150 if self.is_production else 100

    def summary(self) -> dict[str, Any]:
        """Settings worth logging at startup."""
        return {
            "server": {
                "host": self.host,
                "port": self.port,
                "timeout": self.server_timeout,
                "workers": self.workers,
            },
            "app": {
                "env": self.environment,
                "name": self.app_name,
                "version": self.app_version,
                "debug": self.debug,
            },
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "file": self.log_file_enabled,
            },
            "health_check_path": self.health_check_path,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


__all__ = ["LOCAL_ORIGINS", "Settings", "environment_defaults", "get_settings", "media_type", "parse_size"]
