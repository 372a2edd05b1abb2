"""Domain errors raised by the task store, repositories and upstream services."""


class TaskBoardError(Exception):
    """Base class for task board errors."""

    code = "task_board_error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(TaskBoardError):
    """A required field is missing or a value is not allowed."""

    code = "validation_error"


class NotFoundError(TaskBoardError):
    """No task with the requested id."""

    code = "not_found"

    def __init__(self, task_id: str):
        super().__init__(f"Task with ID {task_id} not found")
        self.task_id = task_id


class PersistenceError(TaskBoardError):
    """Reading or writing the durable task collection failed."""

    code = "persistence_error"


class UpstreamError(TaskBoardError):
    """The streaming feed failed."""

    code = "upstream_error"
