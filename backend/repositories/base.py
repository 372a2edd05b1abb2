"""
Abstract repository interface for task persistence.

The task store keeps the working set in memory; a repository only loads the
whole collection at start-up and writes it back after each mutation.
"""

from abc import ABC, abstractmethod
from typing import Any

from shared.models import Task


class TaskRepository(ABC):
    """Abstract repository for the task collection."""

    #: False for backends that lose everything on restart
    durable: bool = True

    @abstractmethod
    async def load(self) -> list[Task] | None:
        """
        Load every stored task.

        Returns:
            The stored tasks, or None if nothing has been stored yet

        Raises:
            PersistenceError: If stored data exists but cannot be read
        """
        pass

    @abstractmethod
    async def save(self, tasks: list[Task]) -> None:
        """
        Replace the stored collection with `tasks`.

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """Check repository health."""
        pass
