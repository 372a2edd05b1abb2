"""
Task lifecycle rules shared by the API server and the board client.

The expiry predicate lives here once. The server sweep and the client's local
re-evaluation both call `expiry_reason`, so the two sides cannot drift apart.

Example:
    >>> now = datetime(2025, 1, 10, tzinfo=timezone.utc)
    >>> expiry_reason(
    ...     TaskStatus.TODO,
    ...     due_date=datetime(2025, 1, 9, tzinfo=timezone.utc),
    ...     created_at=datetime(2025, 1, 8, tzinfo=timezone.utc),
    ...     duration=None,
    ...     now=now,
    ...     threshold_minutes=4320,
    ... )
    <ExpiryReason.PAST_DUE: 'past_due'>
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Protocol

DEFAULT_TIMEOUT_MINUTES = 4320  # 3 days


class TaskStatus(str, Enum):
    """Board column a task sits in."""

    TODO = "Todo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    EXPIRED = "Expired"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskStatus:
        """Parse a status, accepting the labels older data was written with."""
        if isinstance(raw, TaskStatus):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"Invalid task status: {raw!r}")
        value = _LEGACY_STATUS_LABELS.get(raw.strip().lower())
        if value is None:
            raise ValueError(f"Invalid task status: {raw!r}")
        return value

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses are never moved by the sweep."""
        return self in (TaskStatus.DONE, TaskStatus.EXPIRED)


_LEGACY_STATUS_LABELS: dict[str, TaskStatus] = {
    "todo": TaskStatus.TODO,
    "to do": TaskStatus.TODO,
    "inprogress": TaskStatus.IN_PROGRESS,
    "in progress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
    "expired": TaskStatus.EXPIRED,
    "timeout": TaskStatus.EXPIRED,
    "overdue": TaskStatus.EXPIRED,
}


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskPriority:
        if isinstance(raw, TaskPriority):
            return raw
        if raw is None or raw == "":
            return cls.MEDIUM
        for priority in cls:
            if isinstance(raw, str) and priority.value.lower() == raw.strip().lower():
                return priority
        raise ValueError(f"Invalid task priority: {raw!r}")


class ExpiryReason(str, Enum):
    """Why a task ended up in the Expired column."""

    PAST_DUE = "past_due"
    AGE_EXCEEDED = "age_exceeded"
    DURATION_EXCEEDED = "duration_exceeded"
    MANUAL = "manual"


class ExpirableTask(Protocol):
    """Anything carrying the fields the predicate reads and writes."""

    status: TaskStatus
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime
    duration: float | None
    expiry_reason: ExpiryReason | None


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing ``Z`` is accepted)."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime) -> str:
    """Serialise a timestamp as ISO-8601 in UTC."""
    return ensure_utc(value).isoformat()


def age_in_minutes(created_at: datetime, now: datetime) -> float:
    return (ensure_utc(now) - ensure_utc(created_at)) / timedelta(minutes=1)


def is_past_due(due_date: datetime | None, now: datetime) -> bool:
    return due_date is not None and ensure_utc(due_date) < ensure_utc(now)


def expiry_reason(
    status: TaskStatus,
    due_date: datetime | None,
    created_at: datetime,
    duration: float | None,
    now: datetime,
    threshold_minutes: float = DEFAULT_TIMEOUT_MINUTES,
) -> ExpiryReason | None:
    """
    Decide whether a task must be forced into Expired.

    Args:
        status: Current status; Done and Expired tasks are never expired again
        due_date: When the task is due, if known
        created_at: Creation timestamp, drives the age trigger
        duration: Planned duration in minutes, if any
        now: Evaluation time
        threshold_minutes: Age/duration limit in minutes

    Returns:
        The trigger that fired, or None if the task stays where it is.
        When several triggers fire, past-due wins over age, age over duration.
    """
    if status.is_terminal:
        return None
    if is_past_due(due_date, now):
        return ExpiryReason.PAST_DUE
    if age_in_minutes(created_at, now) > threshold_minutes:
        return ExpiryReason.AGE_EXCEEDED
    if duration is not None and duration > threshold_minutes:
        return ExpiryReason.DURATION_EXCEEDED
    return None


def evaluate_status(
    status: TaskStatus,
    due_date: datetime | None,
    created_at: datetime,
    duration: float | None,
    now: datetime,
    threshold_minutes: float = DEFAULT_TIMEOUT_MINUTES,
) -> tuple[TaskStatus, ExpiryReason | None]:
    """Return the status a task should have at `now`, with the reason if it expired."""
    reason = expiry_reason(status, due_date, created_at, duration, now, threshold_minutes)
    if reason is None:
        return status, None
    return TaskStatus.EXPIRED, reason


def apply_expiry(
    task: ExpirableTask,
    now: datetime,
    threshold_minutes: float = DEFAULT_TIMEOUT_MINUTES,
) -> bool:
    """Expire `task` in place if the predicate fires. Returns True if it changed."""
    reason = expiry_reason(
        task.status,
        task.due_date,
        task.created_at,
        task.duration,
        now,
        threshold_minutes,
    )
    if reason is None:
        return False
    task.status = TaskStatus.EXPIRED
    task.expiry_reason = reason
    task.updated_at = ensure_utc(now)
    return True
