"""Health check endpoint."""

import time

from fastapi import APIRouter, Depends, Request

from backend.api.v1.dependencies import get_app_settings, get_task_store
from backend.api.v1.schemas import HealthStatus
from backend.config import Settings
from backend.tasks.store import TaskStore

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(
    request: Request,
    store: TaskStore = Depends(get_task_store),
    settings: Settings = Depends(get_app_settings),
) -> HealthStatus:
    """Health check endpoint for load balancers and monitoring."""
    storage = await store.repository.health_check()
    started_at = getattr(request.app.state, "started_at", time.monotonic())

    return HealthStatus(
        status="ok",
        service="task-board-api",
        version=settings.api_version,
        timestamp=store.now(),
        uptime_seconds=round(time.monotonic() - started_at, 3),
        tasks_in_memory=await store.count(),
        timeout_minutes=store.timeout_minutes,
        dependencies={
            "storage": storage.get("storage", "unknown"),
            "storage_backend": storage.get("backend", "unknown"),
        },
    )
