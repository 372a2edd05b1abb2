"""
Background timers for the board.

Two independent loops: one polls the server for the full task list, the
other re-runs the local expiry pass. They are not coordinated; whichever
poll lands last wins, since each poll replaces the whole list.
"""

import threading

import structlog

from frontend.board import TaskBoard

logger = structlog.get_logger(__name__)


class BoardRefresher:
    """Runs the poll and local-evaluation timers on daemon threads."""

    def __init__(
        self,
        board: TaskBoard,
        poll_interval: float = 60.0,
        evaluation_interval: float = 60.0,
    ):
        self.board = board
        self.poll_interval = poll_interval
        self.evaluation_interval = evaluation_interval
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        """Load the board once, then start both timers."""
        if self.running:
            return
        self._stop.clear()
        self.board.refresh()
        self._threads = [
            threading.Thread(
                target=self._loop,
                args=(self.poll_interval, self.board.refresh),
                name="board-poll",
                daemon=True,
            ),
            threading.Thread(
                target=self._loop,
                args=(self.evaluation_interval, self.board.evaluate),
                name="board-evaluate",
                daemon=True,
            ),
        ]
        for thread in self._threads:
            thread.start()
        logger.info(
            "Board refresher started",
            poll_interval=self.poll_interval,
            evaluation_interval=self.evaluation_interval,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Board refresher stopped")

    def _loop(self, interval: float, action) -> None:
        while not self._stop.wait(interval):
            try:
                action()
            except Exception:
                # Keep the timer alive; the next tick tries again
                logger.exception("Board timer action failed", action=getattr(action, "__name__", "?"))
