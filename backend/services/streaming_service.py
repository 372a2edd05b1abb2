"""
Mock streaming feed.

Stands in for a live-streams API: returns a fixed set of streams with
jittered viewer counts after a short delay, and fails now and then so the
client's error handling gets exercised.
"""

import asyncio
import random
from typing import Any

import structlog

from backend.core.errors import UpstreamError

logger = structlog.get_logger(__name__)

MOCK_STREAMS: tuple[dict[str, Any], ...] = (
    {
        "id": "stream1",
        "title": "Building a React App from Scratch",
        "author": "CodeMaster",
        "viewers": 1243,
        "category": "Programming",
        "tags": ["react", "javascript", "webdev"],
    },
    {
        "id": "stream2",
        "title": "Database Design Best Practices",
        "author": "DataGuru",
        "viewers": 895,
        "category": "Programming",
        "tags": ["database", "sql", "architecture"],
    },
    {
        "id": "stream3",
        "title": "DevOps Pipeline Automation",
        "author": "CloudNinja",
        "viewers": 674,
        "category": "DevOps",
        "tags": ["ci/cd", "docker", "kubernetes"],
    },
)


class StreamingService:
    """Fetches stream items from the (simulated) upstream."""

    def __init__(
        self,
        delay_seconds: float = 1.5,
        failure_rate: float = 0.1,
        rng: random.Random | None = None,
    ):
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()

    async def fetch(self) -> list[dict[str, Any]]:
        """
        Fetch the current streams.

        Returns:
            Stream items with viewer counts scaled by a factor in [0.9, 1.1)

        Raises:
            UpstreamError: When the simulated upstream fails
        """
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        if self._rng.random() < self.failure_rate:
            logger.warning("Streaming upstream failed")
            raise UpstreamError("Streaming API temporarily unavailable")

        items = []
        for stream in MOCK_STREAMS:
            item = dict(stream, tags=list(stream["tags"]))
            item["viewers"] = int(stream["viewers"] * (0.9 + self._rng.random() * 0.2))
            items.append(item)

        logger.debug("Streaming data fetched", items=len(items))
        return items
