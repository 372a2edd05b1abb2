"""
JSON file implementation of the task repository.

The whole collection is stored as one JSON array in ``<data_dir>/tasks.json``
and rewritten on every save. Writes go to a temporary file first and are
moved into place, so a crash mid-write leaves the previous file intact.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any

import structlog

from backend.core.errors import PersistenceError
from backend.repositories.base import TaskRepository
from shared.models import Task

logger = structlog.get_logger(__name__)

TASKS_FILENAME = "tasks.json"


class JsonFileTaskRepository(TaskRepository):
    """File-backed TaskRepository."""

    def __init__(self, data_dir: str | Path = "data"):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / TASKS_FILENAME
        self._io_lock = asyncio.Lock()
        self._last_error: str | None = None
        logger.info("JSON task repository initialized", path=str(self.path))

    async def load(self) -> list[Task] | None:
        async with self._io_lock:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, self._read)

    async def save(self, tasks: list[Task]) -> None:
        payload = [task.to_dict() for task in tasks]
        async with self._io_lock:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._write, payload)

    async def health_check(self) -> dict[str, Any]:
        return {
            "storage": "degraded" if self._last_error else "healthy",
            "backend": "json",
            "durable": True,
            "path": str(self.path),
            "last_error": self._last_error,
        }

    def _read(self) -> list[Task] | None:
        if not self.path.exists():
            logger.info("No task file found, first run", path=str(self.path))
            return None

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            self._last_error = str(e)
            raise PersistenceError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(raw, list):
            self._last_error = "task file is not a JSON array"
            raise PersistenceError(f"Task file {self.path} is not a JSON array")

        tasks = []
        for index, record in enumerate(raw):
            try:
                tasks.append(Task.from_dict(record))
            except (TypeError, ValueError) as e:
                logger.warning(
                    "Skipping unreadable task record", index=index, error=str(e)
                )

        logger.debug("Tasks loaded from file", count=len(tasks), path=str(self.path))
        return tasks

    def _write(self, payload: list[dict[str, Any]]) -> None:
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            self._last_error = str(e)
            raise PersistenceError(f"Failed to write {self.path}: {e}") from e

        self._last_error = None
        logger.debug("Tasks saved to file", count=len(payload), path=str(self.path))
