"""Tests for the client-side board state."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from frontend.api_client import APIError, TaskAPIClient
from frontend.board import ALL_CATEGORIES, TaskBoard
from frontend.config import ClientSettings
from shared.lifecycle import ExpiryReason, TaskStatus, apply_expiry
from shared.models import Task

START = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
THRESHOLD_MINUTES = 4320


def _task(task_id: str, **overrides) -> Task:
    fields = dict(
        id=task_id,
        title=f"Task {task_id}",
        status=TaskStatus.TODO,
        created_at=START,
        updated_at=START,
        due_date=START + timedelta(days=1),
    )
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def api() -> Mock:
    return Mock(spec=TaskAPIClient)


@pytest.fixture
def board(api, clock) -> TaskBoard:
    return TaskBoard(api, timeout_minutes=THRESHOLD_MINUTES, clock=clock)


class TestRefresh:
    def test_refresh_replaces_list(self, board, api):
        api.list_tasks.return_value = [_task("a"), _task("b")]

        assert board.refresh() is True

        assert [task.id for task in board.tasks] == ["a", "b"]
        assert board.loading is False
        assert board.error is None

    def test_failed_refresh_keeps_previous_list(self, board, api):
        api.list_tasks.return_value = [_task("a")]
        board.refresh()
        api.list_tasks.side_effect = APIError("No response received from server.")

        assert board.refresh() is False

        assert [task.id for task in board.tasks] == ["a"]
        assert board.error == "No response received from server."
        assert board.loading is False

    def test_successful_refresh_clears_error(self, board, api):
        api.list_tasks.side_effect = [APIError("down"), [_task("a")]]
        board.refresh()

        board.refresh()

        assert board.error is None

    def test_non_json_response_sets_error_and_clears_loading(
        self, mock_session, make_response, clock
    ):
        settings = ClientSettings(
            backend_url="http://test-backend:5000", retry_max_wait_seconds=0
        )
        board = TaskBoard(
            TaskAPIClient(settings=settings, session=mock_session),
            timeout_minutes=THRESHOLD_MINUTES,
            clock=clock,
        )
        mock_session.request.return_value = make_response(200, [_task("a").to_dict()])
        board.refresh()
        mock_session.request.return_value = make_response(
            200, ValueError("Expecting value: line 1 column 1 (char 0)")
        )

        assert board.refresh() is False

        assert board.loading is False
        assert "not JSON" in board.error
        assert [task.id for task in board.tasks] == ["a"]

        assert board.create_task({"title": "x"}) is None
        assert "not JSON" in board.error

    def test_refresh_applies_local_expiry(self, board, api, clock):
        api.list_tasks.return_value = [_task("a", due_date=START + timedelta(hours=1))]
        clock.advance(hours=2)

        board.refresh()

        [task] = board.tasks
        assert task.status is TaskStatus.EXPIRED
        assert task.expiry_reason is ExpiryReason.PAST_DUE


class TestEvaluate:
    def test_returns_ids_that_changed(self, board, api, clock):
        api.list_tasks.return_value = [
            _task("due-soon", due_date=START + timedelta(minutes=30)),
            _task("later", due_date=START + timedelta(days=2)),
            _task("done", status=TaskStatus.DONE, due_date=START),
        ]
        board.refresh()
        clock.advance(hours=1)

        assert board.evaluate() == ["due-soon"]
        assert board.evaluate() == []

    def test_matches_server_predicate(self, board, api, clock):
        tasks = [
            _task("a", duration=5000.0, due_date=START + timedelta(days=30)),
            _task("b", due_date=START + timedelta(days=30)),
            _task("c", status=TaskStatus.IN_PROGRESS, due_date=START - timedelta(minutes=1)),
            _task("d", status=TaskStatus.EXPIRED, expiry_reason=ExpiryReason.MANUAL),
        ]
        api.list_tasks.return_value = [task.copy() for task in tasks]
        now = clock.advance(minutes=4321)

        board.refresh()

        expected = [task.copy() for task in tasks]
        for task in expected:
            apply_expiry(task, now, THRESHOLD_MINUTES)
        assert board.tasks == expected

    def test_local_expiry_is_not_sent_to_server(self, board, api, clock):
        api.list_tasks.return_value = [_task("a", due_date=START + timedelta(minutes=1))]
        board.refresh()
        clock.advance(minutes=2)

        board.evaluate()

        api.update_task.assert_not_called()


class TestMutations:
    def test_create_adds_task(self, board, api):
        api.create_task.return_value = _task("new")

        task = board.create_task({"title": "Task new"})

        assert task.id == "new"
        assert [t.id for t in board.tasks] == ["new"]

    def test_create_failure_sets_error(self, board, api):
        api.create_task.side_effect = APIError("Title is required", status_code=400)

        assert board.create_task({"title": ""}) is None

        assert board.error == "Title is required"
        assert board.tasks == []

    def test_move_task(self, board, api):
        api.list_tasks.return_value = [_task("a")]
        board.refresh()
        api.update_task.return_value = _task("a", status=TaskStatus.DONE)

        board.move_task("a", TaskStatus.DONE)

        api.update_task.assert_called_once_with("a", {"status": TaskStatus.DONE})
        assert board.tasks[0].status is TaskStatus.DONE

    def test_delete_task(self, board, api):
        api.list_tasks.return_value = [_task("a"), _task("b")]
        board.refresh()

        assert board.delete_task("a") is True

        assert [task.id for task in board.tasks] == ["b"]

    def test_delete_failure_keeps_task(self, board, api):
        api.list_tasks.return_value = [_task("a")]
        board.refresh()
        api.delete_task.side_effect = APIError("Task with ID a not found", status_code=404)

        assert board.delete_task("a") is False

        assert [task.id for task in board.tasks] == ["a"]
        assert board.error == "Task with ID a not found"

    def test_tasks_are_copies(self, board, api):
        api.list_tasks.return_value = [_task("a")]
        board.refresh()

        board.tasks[0].title = "changed"

        assert board.tasks[0].title == "Task a"


class TestFilterAndSummary:
    @pytest.fixture(autouse=True)
    def loaded(self, board, api):
        api.list_tasks.return_value = [
            _task("a"),
            _task("b", status=TaskStatus.IN_PROGRESS),
            _task("c", status=TaskStatus.IN_PROGRESS),
            _task("d", status=TaskStatus.DONE),
        ]
        board.refresh()

    def test_all_is_default(self, board):
        assert board.selected_category == ALL_CATEGORIES
        assert len(board.visible_tasks()) == 4

    def test_filter_by_column(self, board):
        board.set_category("In Progress")

        assert [task.id for task in board.visible_tasks()] == ["b", "c"]

    def test_unknown_category_rejected(self, board):
        with pytest.raises(ValueError):
            board.set_category("Someday")

    def test_summary(self, board):
        assert board.summary() == {
            "Todo": 1,
            "InProgress": 2,
            "Done": 1,
            "Expired": 0,
            "total": 4,
        }
