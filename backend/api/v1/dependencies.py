"""FastAPI dependencies: hand the process-wide services to request handlers."""

from fastapi import Request

from backend.config import Settings
from backend.services.streaming_service import StreamingService
from backend.tasks.store import TaskStore


def get_task_store(request: Request) -> TaskStore:
    """The TaskStore built once in the application lifespan."""
    return request.app.state.task_store


def get_streaming_service(request: Request) -> StreamingService:
    return request.app.state.streaming_service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
