"""Streaming feed endpoint."""

from fastapi import APIRouter, Depends, status

from backend.api.v1.dependencies import get_streaming_service
from backend.api.v1.schemas import ErrorResponse, StreamItem
from backend.services.streaming_service import StreamingService

router = APIRouter(tags=["streaming"])


@router.get(
    "/streaming",
    response_model=list[StreamItem],
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def get_streaming_data(
    streaming: StreamingService = Depends(get_streaming_service),
) -> list[StreamItem]:
    """Current streams from the upstream feed; 500 when it is unavailable."""
    return [StreamItem(**item) for item in await streaming.fetch()]
