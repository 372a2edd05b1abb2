"""Tests for the JSON file and in-memory repositories and the factory."""

from datetime import datetime, timedelta, timezone
import json

import pytest

from backend.config import Settings
from backend.core.errors import PersistenceError
from backend.repositories import (
    InMemoryTaskRepository,
    JsonFileTaskRepository,
    RepositoryFactory,
)
from backend.tasks.store import TaskStore
from shared.lifecycle import ExpiryReason, TaskPriority, TaskStatus
from shared.models import Task

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _task(task_id: str = "t1", **overrides) -> Task:
    fields = dict(
        id=task_id,
        title="Task",
        description="",
        status=TaskStatus.TODO,
        priority=TaskPriority.MEDIUM,
        created_at=NOW,
        updated_at=NOW,
        due_date=NOW + timedelta(days=1),
    )
    fields.update(overrides)
    return Task(**fields)


class TestJsonFileTaskRepository:
    @pytest.mark.asyncio
    async def test_missing_file_is_first_run(self, tmp_path):
        repo = JsonFileTaskRepository(tmp_path / "data")

        assert await repo.load() is None

    @pytest.mark.asyncio
    async def test_save_creates_directory_and_writes_array(self, tmp_path):
        repo = JsonFileTaskRepository(tmp_path / "nested" / "data")

        await repo.save([_task("a"), _task("b")])

        raw = json.loads(repo.path.read_text())
        assert [item["id"] for item in raw] == ["a", "b"]
        assert raw[0]["createdAt"] == "2025-03-10T12:00:00+00:00"
        assert not repo.path.with_suffix(".json.tmp").exists()

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        repo = JsonFileTaskRepository(tmp_path)
        tasks = [
            _task("a", duration=30.0),
            _task(
                "b",
                status=TaskStatus.EXPIRED,
                expiry_reason=ExpiryReason.DURATION_EXCEEDED,
                priority=TaskPriority.HIGH,
                description="long one",
            ),
        ]

        await repo.save(tasks)

        assert await repo.load() == tasks

    @pytest.mark.asyncio
    async def test_loads_legacy_records(self, tmp_path):
        (tmp_path / "tasks.json").write_text(
            json.dumps(
                [
                    {
                        "id": "legacy",
                        "title": "Old format",
                        "description": "",
                        "status": "Timeout",
                        "createdAt": "2024-05-01T08:00:00.000Z",
                        "updatedAt": "2024-05-04T08:00:00.000Z",
                        "dueDate": "2024-05-02T08:00:00.000Z",
                        "duration": 120,
                    }
                ]
            )
        )
        repo = JsonFileTaskRepository(tmp_path)

        [task] = await repo.load()

        assert task.status is TaskStatus.EXPIRED
        assert task.expiry_reason is ExpiryReason.AGE_EXCEEDED
        assert task.priority is TaskPriority.MEDIUM
        assert task.duration == 120

    @pytest.mark.asyncio
    async def test_unreadable_records_are_skipped(self, tmp_path):
        good = _task("good").to_dict()
        (tmp_path / "tasks.json").write_text(json.dumps([good, {"title": "no id"}]))

        tasks = await JsonFileTaskRepository(tmp_path).load()

        assert [t.id for t in tasks] == ["good"]

    @pytest.mark.asyncio
    async def test_records_that_are_not_objects_are_skipped(self, tmp_path):
        bad_created = dict(_task("bad-time").to_dict(), createdAt=1700000000)
        (tmp_path / "tasks.json").write_text(
            json.dumps(["oops", 5, None, bad_created, _task("good").to_dict()])
        )

        tasks = await JsonFileTaskRepository(tmp_path).load()

        assert [t.id for t in tasks] == ["good"]

    @pytest.mark.asyncio
    async def test_file_that_is_not_utf8_raises_persistence_error(self, tmp_path):
        (tmp_path / "tasks.json").write_bytes(b"\xff\xfe[garbage")
        repo = JsonFileTaskRepository(tmp_path)

        with pytest.raises(PersistenceError):
            await repo.load()

        assert (await repo.health_check())["storage"] == "degraded"

    @pytest.mark.asyncio
    async def test_store_starts_empty_on_undecodable_file(self, tmp_path):
        (tmp_path / "tasks.json").write_bytes(b"\xff\xfe[garbage")
        store = TaskStore(JsonFileTaskRepository(tmp_path), clock=lambda: NOW)

        await store.initialize(seed_samples=True)

        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        (tmp_path / "tasks.json").write_text("{not json")
        repo = JsonFileTaskRepository(tmp_path)

        with pytest.raises(PersistenceError):
            await repo.load()

        assert (await repo.health_check())["storage"] == "degraded"

    @pytest.mark.asyncio
    async def test_non_array_file_raises(self, tmp_path):
        (tmp_path / "tasks.json").write_text('{"id": "x"}')

        with pytest.raises(PersistenceError):
            await JsonFileTaskRepository(tmp_path).load()

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where the data directory should be")
        repo = JsonFileTaskRepository(blocker / "data")

        with pytest.raises(PersistenceError):
            await repo.save([_task()])

    @pytest.mark.asyncio
    async def test_store_survives_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = TaskStore(JsonFileTaskRepository(blocker / "data"), clock=lambda: NOW)
        await store.initialize(seed_samples=False)

        task = await store.create({"title": "Only in memory"})

        assert (await store.find_by_id(task.id)).title == "Only in memory"
        assert (await store.repository.health_check())["storage"] == "degraded"

    @pytest.mark.asyncio
    async def test_tasks_survive_store_restart(self, tmp_path):
        first = TaskStore(JsonFileTaskRepository(tmp_path), clock=lambda: NOW)
        await first.initialize(seed_samples=False)
        created = await first.create({"title": "Durable", "duration": 15})

        second = TaskStore(JsonFileTaskRepository(tmp_path), clock=lambda: NOW)
        await second.initialize(seed_samples=True)

        assert await second.find_all() == [created]


class TestInMemoryTaskRepository:
    @pytest.mark.asyncio
    async def test_starts_empty_as_first_run(self):
        assert await InMemoryTaskRepository().load() is None

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated(self):
        repo = InMemoryTaskRepository()
        task = _task()
        await repo.save([task])
        task.title = "changed after save"

        [loaded] = await repo.load()

        assert loaded.title == "Task"
        assert (await repo.health_check())["durable"] is False


class TestRepositoryFactory:
    def test_json_backend(self, tmp_path):
        settings = Settings(storage_backend="json", data_dir=str(tmp_path))

        repo = RepositoryFactory.create_task_repository(settings)

        assert isinstance(repo, JsonFileTaskRepository)
        assert repo.path == tmp_path / "tasks.json"

    def test_memory_backend(self):
        settings = Settings(storage_backend="memory")

        repo = RepositoryFactory.create_task_repository(settings)

        assert isinstance(repo, InMemoryTaskRepository)
