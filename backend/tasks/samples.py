"""Sample tasks written on first run so a fresh board isn't empty."""

from collections.abc import Callable
from datetime import datetime, timedelta

from shared.lifecycle import TaskPriority, TaskStatus
from shared.models import Task


def build_sample_tasks(now: datetime, id_factory: Callable[[], str]) -> list[Task]:
    """Two starter tasks: one finished, one in progress and due next week."""
    return [
        Task(
            id=id_factory(),
            title="Complete project setup",
            description="Initialize repository and create project structure",
            status=TaskStatus.DONE,
            priority=TaskPriority.MEDIUM,
            created_at=now - timedelta(days=3),
            updated_at=now - timedelta(days=2),
            due_date=now + timedelta(days=1),
            duration=120,
        ),
        Task(
            id=id_factory(),
            title="Implement user authentication",
            description="Add login and registration functionality",
            status=TaskStatus.IN_PROGRESS,
            priority=TaskPriority.HIGH,
            created_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=1),
            due_date=now + timedelta(days=7),
            duration=180,
        ),
    ]
