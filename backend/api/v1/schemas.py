"""Pydantic schemas for API v1 - request and response DTOs."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.lifecycle import ExpiryReason, TaskPriority, TaskStatus, ensure_utc, utcnow


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown fields ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        from_attributes=True,
    )


class ErrorDetail(BaseModel):
    """Error information."""

    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    """Standard error body."""

    message: str
    error: ErrorDetail


class _TaskFields(CamelModel):
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    duration: float | None = Field(default=None, gt=0, description="Minutes")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        """Accept legacy labels such as "Timeout" or "To Do"."""
        if v is None or v == "":
            return None
        return TaskStatus.from_raw(v)

    @field_validator("priority", mode="before")
    @classmethod
    def parse_priority(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        return TaskPriority.from_raw(v)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class TaskCreate(_TaskFields):
    """Body of POST /tasks."""

    # Optional here so a missing title reaches the store's own check
    title: str | None = None


class TaskUpdate(_TaskFields):
    """Body of PUT /tasks/{id}; only the fields sent are changed."""

    title: str | None = None


class TaskResponse(CamelModel):
    """A task as returned by the API."""

    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None
    duration: float | None = None
    expiry_reason: ExpiryReason | None = None
    streaming_data: list[dict[str, Any]] | None = None


class StreamItem(BaseModel):
    """One stream from the streaming feed."""

    id: str
    title: str
    author: str
    viewers: int
    category: str
    tags: list[str] = []


class TaskSummary(BaseModel):
    """Task counts per status."""

    todo: int = Field(alias="Todo")
    in_progress: int = Field(alias="InProgress")
    done: int = Field(alias="Done")
    expired: int = Field(alias="Expired")
    total: int


class MessageResponse(BaseModel):
    message: str


class HealthStatus(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    timestamp: datetime = Field(default_factory=utcnow)
    uptime_seconds: float
    tasks_in_memory: int
    timeout_minutes: int
    dependencies: dict[str, str] = {}
