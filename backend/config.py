"""
Configuration for the Task Board API.

Supports multiple environments (development, staging, production) with
appropriate defaults. Environment variables (and a `.env` file) override
the defaults below.
"""

from enum import Enum
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

load_dotenv()


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class StorageBackend(str, Enum):
    """Where the task collection is persisted."""

    JSON = "json"
    MEMORY = "memory"


class Settings(BaseSettings):
    """
    Application settings with environment-specific defaults.

    Uses Pydantic for validation and type safety.
    Environment variables override defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )

    # API Configuration
    api_title: str = Field(default="Task Board API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=True, description="Enable debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, ge=1, le=65535, description="Server port")
    reload: bool = Field(
        default=False, description="Enable auto-reload (development only)"
    )

    # Task lifecycle
    task_timeout_minutes: int = Field(
        default=4320,
        ge=1,
        description="Age or duration (minutes) after which open tasks expire",
    )

    # Persistence
    storage_backend: StorageBackend = Field(
        default=StorageBackend.JSON, description="json (durable) or memory"
    )
    data_dir: str = Field(
        default="./data", description="Directory holding tasks.json"
    )
    seed_sample_tasks: bool = Field(
        default=True, description="Seed sample tasks when no data exists yet"
    )

    # Streaming feed
    streaming_delay_seconds: float = Field(
        default=1.5, ge=0.0, le=30.0, description="Simulated upstream latency"
    )
    streaming_failure_rate: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Injected upstream failure rate"
    )

    # CORS Configuration
    cors_origins: str = Field(
        default="*", description="Allowed CORS origins (comma-separated)"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Enable JSON logging")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        return v.upper()

    @model_validator(mode="after")
    def restrict_dev_flags(self) -> "Settings":
        """Disable debug in production and reload outside development."""
        if self.environment == Environment.PRODUCTION:
            self.debug = False
        if self.environment != Environment.DEVELOPMENT:
            self.reload = False
        return self

    def get_environment_display(self) -> str:
        """Get human-readable environment name."""
        return self.environment.value.title()

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION

    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_cors_config(self) -> dict[str, Any]:
        """Get CORS configuration."""
        origins = self.cors_origin_list()
        if self.is_production():
            origins = [origin for origin in origins if origin != "*"]
        return {
            "allow_origins": origins,
            "allow_credentials": "*" not in origins,
            "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["*"],
        }


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


def configure_structlog(settings: Settings | None = None) -> None:
    """Initialize structlog with readable console output (or JSON lines)."""
    import logging
    import sys

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        stream=sys.stdout,
        force=True,
        format="%(message)s",  # structlog renders the whole line
    )
    logging.root.setLevel(level)

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
    ]
    if settings.log_json:
        processors += [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True, pad_event=20),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
