"""
Client-side board state.

Holds the task list shown in the columns and keeps it in step with the
server. Expiry is re-evaluated locally with the same predicate the server
sweep uses, so a task moves to Expired on screen as soon as it runs out,
without waiting for the next poll. Local expiry is never written back; the
next poll replaces the whole list with the server's view.
"""

from collections import Counter
from collections.abc import Callable
from datetime import datetime
import threading
from typing import Any

import structlog

from frontend.api_client import APIError, TaskAPIClient
from shared.lifecycle import DEFAULT_TIMEOUT_MINUTES, TaskStatus, apply_expiry, utcnow
from shared.models import Task

logger = structlog.get_logger(__name__)

ALL_CATEGORIES = "ALL"


class TaskBoard:
    """
    Task list, loading/error flags and the selected column filter.

    Every change to the task list (poll, create, update, delete, move) is
    followed by a local expiry pass.
    """

    def __init__(
        self,
        client: TaskAPIClient,
        timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.timeout_minutes = timeout_minutes
        self._clock = clock
        self._lock = threading.RLock()
        self._tasks: list[Task] = []
        self.loading = False
        self.error: str | None = None
        self.selected_category: str | TaskStatus = ALL_CATEGORIES

    @property
    def tasks(self) -> list[Task]:
        with self._lock:
            return [task.copy() for task in self._tasks]

    def refresh(self) -> bool:
        """
        Replace the task list with the server's.

        Returns:
            True on success. On failure the previous list is kept and
            `error` holds a message for the user.
        """
        with self._lock:
            self.loading = True
        try:
            tasks = self.client.list_tasks()
        except APIError as e:
            with self._lock:
                self.error = e.message
            logger.warning("Task refresh failed", error=e.message)
            return False
        finally:
            with self._lock:
                self.loading = False

        with self._lock:
            self._tasks = tasks
            self.error = None
            self.evaluate()
        logger.debug("Tasks refreshed", count=len(tasks))
        return True

    def evaluate(self, now: datetime | None = None) -> list[str]:
        """
        Expire open tasks locally.

        Returns:
            Ids of the tasks this pass moved to Expired
        """
        now = now or self._clock()
        with self._lock:
            changed = [
                task.id
                for task in self._tasks
                if apply_expiry(task, now, self.timeout_minutes)
            ]
        if changed:
            logger.info("Tasks expired locally", task_ids=changed)
        return changed

    def create_task(self, fields: dict[str, Any]) -> Task | None:
        return self._mutate(lambda: self.client.create_task(fields), self._add)

    def update_task(self, task_id: str, fields: dict[str, Any]) -> Task | None:
        return self._mutate(lambda: self.client.update_task(task_id, fields), self._replace)

    def move_task(self, task_id: str, status: TaskStatus) -> Task | None:
        """Drop a card into another column."""
        return self.update_task(task_id, {"status": status})

    def delete_task(self, task_id: str) -> bool:
        try:
            self.client.delete_task(task_id)
        except APIError as e:
            with self._lock:
                self.error = e.message
            return False

        with self._lock:
            self._tasks = [task for task in self._tasks if task.id != task_id]
            self.error = None
            self.evaluate()
        return True

    def set_category(self, category: str | TaskStatus) -> None:
        if category != ALL_CATEGORIES:
            category = TaskStatus.from_raw(category)
        self.selected_category = category

    def visible_tasks(self) -> list[Task]:
        """Tasks in the selected column (all tasks for ALL)."""
        tasks = self.tasks
        if self.selected_category == ALL_CATEGORIES:
            return tasks
        return [task for task in tasks if task.status is self.selected_category]

    def summary(self) -> dict[str, int]:
        """Counts per status plus the total, for the summary cards."""
        with self._lock:
            counts = Counter(task.status for task in self._tasks)
            result = {status.value: counts.get(status, 0) for status in TaskStatus}
            result["total"] = len(self._tasks)
        return result

    def _mutate(
        self, call: Callable[[], Task], apply: Callable[[Task], None]
    ) -> Task | None:
        try:
            task = call()
        except APIError as e:
            with self._lock:
                self.error = e.message
            return None

        with self._lock:
            apply(task)
            self.error = None
            self.evaluate()
        return task.copy()

    def _add(self, task: Task) -> None:
        self._tasks.append(task)

    def _replace(self, task: Task) -> None:
        self._tasks = [task if existing.id == task.id else existing for existing in self._tasks]
