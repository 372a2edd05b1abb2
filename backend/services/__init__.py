"""
Services layer for the Task Board API.

Wraps upstream feeds behind small async services so request handlers stay
free of transport details.
"""

from .streaming_service import StreamingService

__all__ = ["StreamingService"]
