"""Core backend modules - domain errors."""

from .errors import (
    NotFoundError,
    PersistenceError,
    TaskBoardError,
    UpstreamError,
    ValidationError,
)

__all__ = [
    "NotFoundError",
    "PersistenceError",
    "TaskBoardError",
    "UpstreamError",
    "ValidationError",
]
