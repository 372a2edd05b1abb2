"""Shared test configuration and fixtures for all tests."""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone
import os
from unittest.mock import Mock

from fastapi.testclient import TestClient
import pytest
import pytest_asyncio
import requests

# Keep test runs independent of any local .env
os.environ["BACKEND_URL"] = "http://test-backend:5000"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_SAMPLE_TASKS"] = "false"
os.environ["STREAMING_DELAY_SECONDS"] = "0"

from backend.config import Settings  # noqa: E402
from backend.main import create_app  # noqa: E402
from backend.repositories.memory import InMemoryTaskRepository  # noqa: E402
from backend.services.streaming_service import StreamingService  # noqa: E402
from backend.tasks.store import TaskStore  # noqa: E402

START = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
THRESHOLD_MINUTES = 4320


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = START):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class FixedRandom:
    """Stand-in for random.Random returning a fixed sequence."""

    def __init__(self, *values: float):
        self.values = list(values) or [0.5]
        self.calls = 0

    def random(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest_asyncio.fixture
async def store(repository, clock) -> TaskStore:
    """An initialized, empty store on a controllable clock."""
    task_store = TaskStore(repository, timeout_minutes=THRESHOLD_MINUTES, clock=clock)
    await task_store.initialize(seed_samples=False)
    return task_store


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        seed_sample_tasks=False,
        task_timeout_minutes=THRESHOLD_MINUTES,
        streaming_delay_seconds=0,
        streaming_failure_rate=0.0,
    )


@pytest.fixture
def streaming_service() -> StreamingService:
    return StreamingService(delay_seconds=0, failure_rate=0.0, rng=FixedRandom(0.5))


@pytest.fixture
def client(
    settings, repository, streaming_service, clock
) -> Generator[TestClient, None, None]:
    """Test client with the lifespan run, so the store is in app.state."""
    app = create_app(
        settings,
        repository=repository,
        streaming_service=streaming_service,
        clock=clock,
    )
    with TestClient(app) as test_client:
        yield test_client


def _make_response(status_code: int = 200, json_data=None, reason: str = "OK") -> Mock:
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.reason = reason
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def make_response():
    """Factory for mock requests.Response objects."""
    return _make_response


@pytest.fixture
def mock_session() -> Mock:
    """Mock requests session for API client testing."""
    return Mock(spec=requests.Session)


@pytest.fixture
def task_payload() -> dict:
    """A task as the API returns it."""
    return {
        "id": "task-1",
        "title": "Write report",
        "description": "Quarterly numbers",
        "status": "Todo",
        "priority": "High",
        "createdAt": "2025-03-10T12:00:00Z",
        "updatedAt": "2025-03-10T12:00:00Z",
        "dueDate": "2025-03-12T12:00:00Z",
        "duration": 90,
        "expiryReason": None,
    }
