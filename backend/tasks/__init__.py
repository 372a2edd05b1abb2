"""Task store and its start-up data."""

from backend.tasks.store import TaskStore

__all__ = ["TaskStore"]
