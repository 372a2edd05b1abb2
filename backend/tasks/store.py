"""
Task store: the in-memory task collection plus its authoritative expiry sweep.

The in-memory mapping is the source of truth for the life of the process.
Every mutation is written back through a TaskRepository; write failures are
logged and otherwise ignored, so durability is best-effort.
"""

import asyncio
from collections import Counter
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
import uuid

import structlog

from backend.core.errors import NotFoundError, PersistenceError, ValidationError
from backend.repositories.base import TaskRepository
from backend.tasks.samples import build_sample_tasks
from shared.lifecycle import (
    DEFAULT_TIMEOUT_MINUTES,
    ExpiryReason,
    TaskPriority,
    TaskStatus,
    apply_expiry,
    ensure_utc,
    is_past_due,
    utcnow,
)
from shared.models import Task

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

# Fields a caller may change through update(); id and created_at are fixed
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "duration",
        "streaming_data",
    }
)
# Fields that may be omitted but never explicitly cleared
NON_NULLABLE_FIELDS = frozenset({"title", "status", "priority", "due_date"})


def _new_task_id() -> str:
    return str(uuid.uuid4())


def _parse_status(raw: Any) -> TaskStatus:
    try:
        return TaskStatus.from_raw(raw)
    except ValueError as e:
        raise ValidationError(str(e), field="status") from e


def _parse_priority(raw: Any) -> TaskPriority:
    try:
        return TaskPriority.from_raw(raw)
    except ValueError as e:
        raise ValidationError(str(e), field="priority") from e


def _parse_title(raw: Any) -> str:
    title = raw.strip() if isinstance(raw, str) else ""
    if not title:
        raise ValidationError("Title is required", field="title")
    return title


def _parse_duration(raw: Any) -> float | None:
    if raw is None:
        return None
    try:
        duration = float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError("Duration must be a number of minutes", field="duration") from e
    if duration <= 0:
        raise ValidationError("Duration must be positive", field="duration")
    return duration


class TaskStore:
    """
    CRUD over the task collection with an expiry sweep before every read.

    Methods are serialised by a single asyncio lock, so each request's
    mutation and its repository write finish before the next one starts.

    Example:
        >>> store = TaskStore(InMemoryTaskRepository(), timeout_minutes=4320)
        >>> await store.initialize(seed_samples=False)
        >>> task = await store.create({"title": "Write report"})
        >>> task.status
        <TaskStatus.TODO: 'Todo'>
    """

    def __init__(
        self,
        repository: TaskRepository,
        timeout_minutes: int = DEFAULT_TIMEOUT_MINUTES,
        clock: Clock = utcnow,
        id_factory: Callable[[], str] = _new_task_id,
    ):
        """
        Args:
            repository: Where the collection is persisted
            timeout_minutes: Default expiry threshold for sweeps
            clock: Returns the current time; injectable for tests
            id_factory: Produces new task ids
        """
        self.repository = repository
        self.timeout_minutes = timeout_minutes
        self._clock = clock
        self._id_factory = id_factory
        self._tasks: dict[str, Task] = {}
        self._lock = asyncio.Lock()

    def now(self) -> datetime:
        return ensure_utc(self._clock())

    async def initialize(self, seed_samples: bool = True) -> None:
        """
        Load the stored collection.

        On first run (nothing stored yet) the store is seeded with sample
        tasks when `seed_samples` is set. Unreadable stored data is logged
        and the store starts empty.
        """
        async with self._lock:
            try:
                stored = await self.repository.load()
            except PersistenceError as e:
                logger.error("Failed to load tasks, starting empty", error=str(e))
                stored = []

            if stored is None:
                stored = []
                if seed_samples:
                    stored = build_sample_tasks(self.now(), self._id_factory)
                    logger.info("Seeding sample tasks", count=len(stored))
                self._tasks = {task.id: task for task in stored}
                await self._persist()
            else:
                self._tasks = {task.id: task for task in stored}

            logger.info(
                "Task store initialized",
                tasks=len(self._tasks),
                timeout_minutes=self.timeout_minutes,
                repository=type(self.repository).__name__,
            )

    async def create(self, fields: dict[str, Any]) -> Task:
        """
        Create a task.

        Args:
            fields: title (required), description, status, priority,
                due_date, duration

        Returns:
            The new task. A due date already in the past starts it as Expired
            whatever status was requested.

        Raises:
            ValidationError: If the title is missing or a value is invalid
        """
        title = _parse_title(fields.get("title"))
        raw_status = fields.get("status")
        status = _parse_status(raw_status) if raw_status else TaskStatus.TODO
        priority = _parse_priority(fields.get("priority"))
        duration = _parse_duration(fields.get("duration"))

        async with self._lock:
            now = self.now()
            raw_due = fields.get("due_date")
            due_date = (
                ensure_utc(raw_due)
                if raw_due is not None
                else now + timedelta(minutes=self.timeout_minutes)
            )

            reason = None
            if is_past_due(due_date, now):
                status = TaskStatus.EXPIRED
                reason = ExpiryReason.PAST_DUE
            elif status is TaskStatus.EXPIRED:
                reason = ExpiryReason.MANUAL

            task_id = self._id_factory()
            while task_id in self._tasks:
                task_id = self._id_factory()

            task = Task(
                id=task_id,
                title=title,
                description=fields.get("description") or "",
                status=status,
                priority=priority,
                created_at=now,
                updated_at=now,
                due_date=due_date,
                duration=duration,
                expiry_reason=reason,
            )
            self._tasks[task.id] = task
            await self._persist()

            logger.info(
                "Task created",
                task_id=task.id,
                status=task.status.value,
                due_date=task.due_date.isoformat(),
            )
            return task.copy()

    async def find_all(self) -> list[Task]:
        """Sweep, then return every task ordered by creation time."""
        async with self._lock:
            await self._sweep_locked(self.timeout_minutes)
            tasks = sorted(self._tasks.values(), key=lambda t: t.created_at)
            return [task.copy() for task in tasks]

    async def find_by_id(self, task_id: str) -> Task:
        """
        Sweep, then return one task.

        Raises:
            NotFoundError: If no task has this id
        """
        async with self._lock:
            await self._sweep_locked(self.timeout_minutes)
            return self._get_or_raise(task_id).copy()

    async def update(self, task_id: str, changes: dict[str, Any]) -> Task:
        """
        Merge `changes` into a task.

        An explicit status change is honoured as-is, including moving a task
        out of Expired (re-activation); it is not re-evaluated here. Setting
        the due date into the past forces Expired unless the task ends up Done.

        Raises:
            NotFoundError: If no task has this id
            ValidationError: If a value is invalid
        """
        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}
        for name in NON_NULLABLE_FIELDS & changes.keys():
            if changes[name] is None:
                raise ValidationError(f"{name} cannot be null", field=name)

        async with self._lock:
            current = self._get_or_raise(task_id)
            task = current.copy()
            now = self.now()

            if "title" in changes:
                task.title = _parse_title(changes["title"])
            if "description" in changes:
                task.description = changes["description"] or ""
            if "priority" in changes:
                task.priority = _parse_priority(changes["priority"])
            if "duration" in changes:
                task.duration = _parse_duration(changes["duration"])
            if "due_date" in changes:
                task.due_date = ensure_utc(changes["due_date"])
            if "streaming_data" in changes:
                task.streaming_data = changes["streaming_data"]

            if "status" in changes:
                task.status = _parse_status(changes["status"])
                if task.status is not TaskStatus.EXPIRED:
                    task.expiry_reason = None
                elif current.status is not TaskStatus.EXPIRED:
                    task.expiry_reason = ExpiryReason.MANUAL

            # A past due date outranks a manual expiry set in the same update
            expired_here = (
                task.status is TaskStatus.EXPIRED
                and current.status is not TaskStatus.EXPIRED
            )
            if (
                "due_date" in changes
                and is_past_due(task.due_date, now)
                and task.status is not TaskStatus.DONE
                and (task.status is not TaskStatus.EXPIRED or expired_here)
            ):
                task.status = TaskStatus.EXPIRED
                task.expiry_reason = ExpiryReason.PAST_DUE

            task.updated_at = max(now, task.created_at)
            self._tasks[task_id] = task
            await self._persist()

            if task.status is not current.status:
                logger.info(
                    "Task status changed",
                    task_id=task_id,
                    old_status=current.status.value,
                    new_status=task.status.value,
                )
            else:
                logger.debug("Task updated", task_id=task_id, fields=sorted(changes))
            return task.copy()

    async def delete(self, task_id: str) -> bool:
        """
        Delete a task.

        Returns:
            True if task was deleted, False if not found
        """
        async with self._lock:
            if task_id not in self._tasks:
                return False
            del self._tasks[task_id]
            await self._persist()
            logger.info("Task deleted", task_id=task_id)
            return True

    async def sweep(self, threshold_minutes: float | None = None) -> list[Task]:
        """
        Expire every open task whose deadline, age or duration has run out.

        Args:
            threshold_minutes: Age/duration limit; defaults to the store's

        Returns:
            The tasks moved to Expired by this pass
        """
        async with self._lock:
            threshold = (
                self.timeout_minutes if threshold_minutes is None else threshold_minutes
            )
            return [task.copy() for task in await self._sweep_locked(threshold)]

    async def summary(self) -> dict[str, int]:
        """Count tasks per status after a sweep."""
        async with self._lock:
            await self._sweep_locked(self.timeout_minutes)
            counts = Counter(task.status for task in self._tasks.values())
            result = {status.value: counts.get(status, 0) for status in TaskStatus}
            result["total"] = len(self._tasks)
            return result

    async def count(self) -> int:
        async with self._lock:
            return len(self._tasks)

    async def _sweep_locked(self, threshold_minutes: float) -> list[Task]:
        now = self.now()
        expired = [
            task
            for task in self._tasks.values()
            if apply_expiry(task, now, threshold_minutes)
        ]
        if expired:
            logger.info(
                "Tasks expired by sweep",
                count=len(expired),
                task_ids=[task.id for task in expired],
                threshold_minutes=threshold_minutes,
            )
            await self._persist()
        return expired

    def _get_or_raise(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    async def _persist(self) -> None:
        try:
            await self.repository.save(list(self._tasks.values()))
        except PersistenceError as e:
            # In-memory state stays authoritative
            logger.error("Failed to persist tasks", error=str(e), tasks=len(self._tasks))
