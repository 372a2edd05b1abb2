"""Task data model shared by the server and the client."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from shared.lifecycle import (
    ExpiryReason,
    TaskPriority,
    TaskStatus,
    format_timestamp,
    parse_timestamp,
)

# Reasons implied by the labels older files used for the terminal state
_LEGACY_EXPIRY_REASONS = {
    "timeout": ExpiryReason.AGE_EXCEEDED,
    "overdue": ExpiryReason.PAST_DUE,
}


@dataclass
class Task:
    """
    A card on the board.

    Attributes:
        id: Unique identifier, assigned at creation
        title: Non-empty title
        description: Free text, may be empty
        status: Current column
        priority: Low / Medium / High
        created_at: Creation time (UTC), never changes
        updated_at: Last mutation time (UTC), including automatic expiry
        due_date: When the task is due
        duration: Planned duration in minutes
        expiry_reason: Why the task is Expired; None for any other status
        streaming_data: Stream items attached from the streaming feed
    """

    id: str
    title: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None = None
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    duration: float | None = None
    expiry_reason: ExpiryReason | None = None
    streaming_data: list[dict[str, Any]] | None = field(default=None)

    def copy(self) -> Task:
        """Shallow copy, so callers can't mutate stored state."""
        return replace(
            self,
            streaming_data=list(self.streaming_data)
            if self.streaming_data is not None
            else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON form used on the wire and on disk."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "priority": self.priority.value,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "dueDate": format_timestamp(self.due_date) if self.due_date else None,
            "duration": self.duration,
            "expiryReason": self.expiry_reason.value if self.expiry_reason else None,
        }
        if self.streaming_data is not None:
            data["streamingData"] = self.streaming_data
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """
        Build a task from its JSON form.

        Accepts camelCase or snake_case keys and the legacy status labels
        ("Timeout", "Overdue", "To Do", "In Progress").

        Raises:
            ValueError: If a required field is missing or malformed
        """

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        if not isinstance(data, dict):
            raise ValueError(f"Task record must be an object, got {type(data).__name__}")
        if not data.get("id"):
            raise ValueError("Task record has no id")
        raw_created = pick("createdAt", "created_at")
        if not raw_created:
            raise ValueError(f"Task {data['id']} has no creation time")

        raw_status = data.get("status")
        status = TaskStatus.from_raw(raw_status or TaskStatus.TODO)

        raw_reason = pick("expiryReason", "expiry_reason")
        reason = ExpiryReason(raw_reason) if raw_reason else None
        if status is TaskStatus.EXPIRED and reason is None:
            label = raw_status.strip().lower() if isinstance(raw_status, str) else ""
            reason = _LEGACY_EXPIRY_REASONS.get(label, ExpiryReason.MANUAL)
        elif status is not TaskStatus.EXPIRED:
            reason = None

        created_at = parse_timestamp(raw_created)
        raw_updated = pick("updatedAt", "updated_at")
        raw_due = pick("dueDate", "due_date")
        raw_duration = data.get("duration")

        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            description=data.get("description") or "",
            status=status,
            priority=TaskPriority.from_raw(data.get("priority")),
            created_at=created_at,
            updated_at=parse_timestamp(raw_updated) if raw_updated else created_at,
            due_date=parse_timestamp(raw_due) if raw_due else None,
            duration=float(raw_duration) if raw_duration is not None else None,
            expiry_reason=reason,
            streaming_data=pick("streamingData", "streaming_data"),
        )
