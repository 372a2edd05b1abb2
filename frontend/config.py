"""Client settings for the board."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.lifecycle import DEFAULT_TIMEOUT_MINUTES


class ClientSettings(BaseSettings):
    """Board client configuration; environment variables override defaults."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    backend_url: str = Field(default="http://localhost:5000")
    task_timeout_minutes: int = Field(default=DEFAULT_TIMEOUT_MINUTES, ge=1)
    poll_interval_seconds: float = Field(default=60.0, gt=0)
    evaluation_interval_seconds: float = Field(default=60.0, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    max_retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_max_wait_seconds: float = Field(default=10.0, ge=0)
