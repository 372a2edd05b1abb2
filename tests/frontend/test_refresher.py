"""Tests for the board's background timers."""

import threading
from unittest.mock import Mock

from frontend.board import TaskBoard
from frontend.refresher import BoardRefresher


def _board_with_events() -> tuple[Mock, threading.Event, threading.Event]:
    board = Mock(spec=TaskBoard)
    refreshed = threading.Event()
    evaluated = threading.Event()
    board.refresh.side_effect = lambda: refreshed.set()
    board.evaluate.side_effect = lambda: evaluated.set()
    return board, refreshed, evaluated


class TestBoardRefresher:
    def test_start_loads_board_immediately(self):
        board = Mock(spec=TaskBoard)
        refresher = BoardRefresher(board, poll_interval=60, evaluation_interval=60)

        refresher.start()
        try:
            board.refresh.assert_called_once_with()
            assert refresher.running
        finally:
            refresher.stop()

        assert not refresher.running

    def test_both_timers_fire(self):
        board, refreshed, evaluated = _board_with_events()
        refresher = BoardRefresher(board, poll_interval=0.01, evaluation_interval=0.01)

        refresher.start()
        try:
            assert evaluated.wait(2)
            refreshed.clear()
            assert refreshed.wait(2)
        finally:
            refresher.stop()

    def test_failing_action_does_not_stop_timer(self):
        board = Mock(spec=TaskBoard)
        calls = []
        second_call = threading.Event()

        def evaluate():
            calls.append(1)
            if len(calls) >= 2:
                second_call.set()
            raise RuntimeError("boom")

        board.evaluate.side_effect = evaluate
        refresher = BoardRefresher(board, poll_interval=60, evaluation_interval=0.01)

        refresher.start()
        try:
            assert second_call.wait(2)
        finally:
            refresher.stop()

    def test_start_twice_keeps_one_set_of_timers(self):
        board = Mock(spec=TaskBoard)
        refresher = BoardRefresher(board, poll_interval=60, evaluation_interval=60)

        refresher.start()
        refresher.start()
        try:
            assert board.refresh.call_count == 1
        finally:
            refresher.stop()
