"""
API v1 routing and error mapping for the Task Board API.

Collects the task, streaming and health routers into one router and maps
domain errors onto JSON error responses.
"""

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from backend.api.v1.routers import health, streaming, tasks
from backend.api.v1.schemas import ErrorDetail, ErrorResponse
from backend.core.errors import (
    NotFoundError,
    TaskBoardError,
    UpstreamError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()
router.include_router(tasks.router)
router.include_router(streaming.router)
router.include_router(health.router)

# ===============================================================================
# Error responses
# ===============================================================================

_STATUS_BY_ERROR: dict[type[TaskBoardError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UpstreamError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    field: str | None = None,
) -> JSONResponse:
    """Create standardized error response."""
    error_response = ErrorResponse(
        message=message,
        error=ErrorDetail(code=error_code, message=message, field=field),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def handle_task_board_error(request: Request, exc: TaskBoardError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(
        type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    log = logger.warning if status_code < 500 else logger.error
    log(
        "Request failed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        error_code=exc.code,
        error=exc.message,
    )
    return create_error_response(status_code, exc.code, exc.message, exc.field)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body validation failures are 400s with the first offending field named."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    field = ".".join(location) or None
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        errors=len(errors),
        field=field,
    )
    return create_error_response(
        status.HTTP_400_BAD_REQUEST, ValidationError.code, message, field
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error", method=request.method, path=request.url.path
    )
    message = "An unexpected error occurred"
    if getattr(request.app.state, "settings", None) and request.app.state.settings.debug:
        message = f"{message}: {exc}"
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", message
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskBoardError, handle_task_board_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
