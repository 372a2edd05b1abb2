"""
Repository pattern implementation for task persistence.

Provides an abstract interface and two backends: a JSON file (durable) and
process memory (non-durable), selected by configuration.
"""

from backend.repositories.base import TaskRepository
from backend.repositories.factory import RepositoryFactory
from backend.repositories.json_file import JsonFileTaskRepository
from backend.repositories.memory import InMemoryTaskRepository

__all__ = [
    "InMemoryTaskRepository",
    "JsonFileTaskRepository",
    "RepositoryFactory",
    "TaskRepository",
]
