"""Board client entry point: keep a board in sync and log its summary."""

import time

import structlog

from backend.config import configure_structlog
from frontend.api_client import TaskAPIClient
from frontend.board import TaskBoard
from frontend.config import ClientSettings
from frontend.refresher import BoardRefresher

logger = structlog.get_logger(__name__)


def build_board(settings: ClientSettings | None = None) -> tuple[TaskBoard, BoardRefresher]:
    """Wire client, board and timers from settings."""
    settings = settings or ClientSettings()
    board = TaskBoard(
        TaskAPIClient(settings=settings),
        timeout_minutes=settings.task_timeout_minutes,
    )
    refresher = BoardRefresher(
        board,
        poll_interval=settings.poll_interval_seconds,
        evaluation_interval=settings.evaluation_interval_seconds,
    )
    return board, refresher


def main() -> None:
    configure_structlog()
    settings = ClientSettings()
    board, refresher = build_board(settings)
    refresher.start()
    try:
        while True:
            logger.info("Board summary", error=board.error, **board.summary())
            time.sleep(settings.evaluation_interval_seconds)
    except KeyboardInterrupt:
        pass
    finally:
        refresher.stop()


if __name__ == "__main__":
    main()
