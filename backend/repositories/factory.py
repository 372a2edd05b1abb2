"""
Repository factory.

Picks the persistence backend from configuration: a JSON file for durable
deployments, process memory for ephemeral hosting where the filesystem
can't be relied on.
"""

import structlog

from backend.config import Settings, StorageBackend
from backend.repositories.base import TaskRepository
from backend.repositories.json_file import JsonFileTaskRepository
from backend.repositories.memory import InMemoryTaskRepository

logger = structlog.get_logger(__name__)


class RepositoryFactory:
    """Factory for creating repository instances."""

    @staticmethod
    def create_task_repository(settings: Settings) -> TaskRepository:
        """
        Create the task repository selected by `settings.storage_backend`.

        Returns:
            A JSON file repository or an in-memory repository
        """
        if settings.storage_backend == StorageBackend.MEMORY:
            return RepositoryFactory._create_memory_repository()
        return RepositoryFactory._create_json_repository(settings)

    @staticmethod
    def _create_json_repository(settings: Settings) -> TaskRepository:
        logger.info("Creating JSON file repository", data_dir=settings.data_dir)
        return JsonFileTaskRepository(settings.data_dir)

    @staticmethod
    def _create_memory_repository() -> TaskRepository:
        logger.info("Creating in-memory repository (tasks are not durable)")
        return InMemoryTaskRepository()
