"""Task CRUD endpoints."""

from fastapi import APIRouter, Depends, status
import structlog

from backend.api.v1.dependencies import get_streaming_service, get_task_store
from backend.api.v1.schemas import (
    ErrorResponse,
    MessageResponse,
    TaskCreate,
    TaskResponse,
    TaskSummary,
    TaskUpdate,
)
from backend.core.errors import NotFoundError
from backend.services.streaming_service import StreamingService
from backend.tasks.store import TaskStore

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/tasks", tags=["tasks"])

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


@router.get("", response_model=list[TaskResponse])
async def list_tasks(store: TaskStore = Depends(get_task_store)) -> list[TaskResponse]:
    """List all tasks. Expiry is re-evaluated before the list is returned."""
    tasks = await store.find_all()
    return [TaskResponse.model_validate(task) for task in tasks]


@router.get("/summary", response_model=TaskSummary)
async def task_summary(store: TaskStore = Depends(get_task_store)) -> TaskSummary:
    """Task counts per status, for the summary cards."""
    return TaskSummary(**await store.summary())


@router.get("/{task_id}", response_model=TaskResponse, responses=NOT_FOUND)
async def get_task(
    task_id: str, store: TaskStore = Depends(get_task_store)
) -> TaskResponse:
    return TaskResponse.model_validate(await store.find_by_id(task_id))


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
)
async def create_task(
    body: TaskCreate, store: TaskStore = Depends(get_task_store)
) -> TaskResponse:
    """
    Create a task.

    - **title**: required
    - **dueDate**: if already in the past, the task starts as Expired
    - **priority**: defaults to Medium
    """
    task = await store.create(body.model_dump(exclude_none=True))
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse, responses=NOT_FOUND)
async def update_task(
    task_id: str, body: TaskUpdate, store: TaskStore = Depends(get_task_store)
) -> TaskResponse:
    """Update the fields present in the body; changing status re-activates an Expired task."""
    task = await store.update(task_id, body.model_dump(exclude_unset=True))
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def delete_task(
    task_id: str, store: TaskStore = Depends(get_task_store)
) -> MessageResponse:
    if not await store.delete(task_id):
        raise NotFoundError(task_id)
    return MessageResponse(message="Task deleted successfully")


@router.get("/{task_id}/streaming", response_model=TaskResponse, responses=NOT_FOUND)
async def get_task_with_streaming_data(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
    streaming: StreamingService = Depends(get_streaming_service),
) -> TaskResponse:
    """Attach the current streaming feed to a task and return it."""
    await store.find_by_id(task_id)
    items = await streaming.fetch()
    task = await store.update(task_id, {"streaming_data": items})
    logger.info("Streaming data attached", task_id=task_id, items=len(items))
    return TaskResponse.model_validate(task)
