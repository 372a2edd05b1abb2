"""Code shared by the API server and the board client."""

from .lifecycle import (
    DEFAULT_TIMEOUT_MINUTES,
    ExpiryReason,
    TaskPriority,
    TaskStatus,
    apply_expiry,
    evaluate_status,
    expiry_reason,
)
from .models import Task

__all__ = [
    "DEFAULT_TIMEOUT_MINUTES",
    "ExpiryReason",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "apply_expiry",
    "evaluate_status",
    "expiry_reason",
]
