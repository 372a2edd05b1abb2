"""Non-durable repository for ephemeral hosting and tests."""

from typing import Any

import structlog

from backend.repositories.base import TaskRepository
from shared.models import Task

logger = structlog.get_logger(__name__)


class InMemoryTaskRepository(TaskRepository):
    """Keeps the last saved snapshot in process memory only."""

    durable = False

    def __init__(self, tasks: list[Task] | None = None):
        self._snapshot: list[Task] | None = (
            [task.copy() for task in tasks] if tasks is not None else None
        )
        self.save_count = 0
        logger.info("In-memory task repository initialized")

    async def load(self) -> list[Task] | None:
        if self._snapshot is None:
            return None
        return [task.copy() for task in self._snapshot]

    async def save(self, tasks: list[Task]) -> None:
        self._snapshot = [task.copy() for task in tasks]
        self.save_count += 1

    async def health_check(self) -> dict[str, Any]:
        return {
            "storage": "healthy",
            "backend": "memory",
            "durable": False,
            "stored_tasks": len(self._snapshot or []),
        }
