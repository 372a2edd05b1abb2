"""
FastAPI backend for the Task Board.

Serves task CRUD, the mock streaming feed and a health check. The task store
is built once per process in the lifespan handler and handed to request
handlers through dependency injection.
"""

from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import structlog

from backend.api.v1.endpoints import register_exception_handlers
from backend.api.v1.endpoints import router as api_v1_router
from backend.config import Settings, configure_structlog, get_settings
from backend.repositories.base import TaskRepository
from backend.repositories.factory import RepositoryFactory
from backend.services.streaming_service import StreamingService
from backend.tasks.store import TaskStore
from shared.lifecycle import utcnow

# Configure structured logging first
configure_structlog()
logger = structlog.get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    repository: TaskRepository | None = None,
    streaming_service: StreamingService | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; read from the environment when omitted
        repository: Persistence backend; chosen from settings when omitted
        streaming_service: Streaming feed; built from settings when omitted
        clock: Time source for the task store
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the task store on startup."""
        logger.info(
            "Task Board API starting up",
            version=settings.api_version,
            environment=settings.get_environment_display(),
            debug=settings.debug,
        )

        store = TaskStore(
            repository or RepositoryFactory.create_task_repository(settings),
            timeout_minutes=settings.task_timeout_minutes,
            clock=clock,
        )
        await store.initialize(seed_samples=settings.seed_sample_tasks)

        app.state.settings = settings
        app.state.task_store = store
        app.state.streaming_service = streaming_service or StreamingService(
            delay_seconds=settings.streaming_delay_seconds,
            failure_rate=settings.streaming_failure_rate,
        )
        app.state.started_at = time.monotonic()

        logger.info("API routes registered", endpoints=len(app.routes))

        yield

        logger.info("Task Board API shutting down")

    app = FastAPI(
        title=settings.api_title,
        description="Task tracking API with automatic expiry of stale tasks.",
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        openapi_url="/openapi.json" if not settings.is_production() else None,
    )

    app.add_middleware(CORSMiddleware, **settings.get_cors_config())

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    register_exception_handlers(app)
    app.include_router(api_v1_router)

    @app.get("/", tags=["Root"])
    async def root():
        """Basic API information. Use `/health` for the health check."""
        return {
            "service": settings.api_title,
            "version": settings.api_version,
            "environment": settings.get_environment_display(),
            "status": "operational",
            "health": "/health",
        }

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,  # Use our structured logging
    )


if __name__ == "__main__":
    run()
