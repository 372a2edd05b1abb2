"""
API client for communicating with the Task Board backend.

Handles all HTTP communication and error handling. Server errors (5xx),
connection failures and timeouts are retried with exponential backoff;
client errors (4xx) fail immediately.
"""

from datetime import datetime
from enum import Enum
from typing import Any

import requests
import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from frontend.config import ClientSettings
from shared.lifecycle import format_timestamp
from shared.models import Task

logger = structlog.get_logger(__name__)

_CAMEL_KEYS = {
    "due_date": "dueDate",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "expiry_reason": "expiryReason",
    "streaming_data": "streamingData",
}


class APIError(Exception):
    """A request failed, after retries where the failure was retryable."""

    def __init__(self, message: str, status_code: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and exc.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Request failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(exc),
        next_wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
    )


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}: {response.reason or 'request failed'}"


def _parse_task(data: Any) -> Task:
    try:
        return Task.from_dict(data)
    except (TypeError, ValueError) as e:
        raise APIError(f"Invalid task in server response: {e}") from e


def to_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert task fields to the JSON body the API expects."""
    payload = {}
    for key, value in fields.items():
        if isinstance(value, datetime):
            value = format_timestamp(value)
        elif isinstance(value, Enum):
            value = value.value
        payload[_CAMEL_KEYS.get(key, key)] = value
    return payload


class TaskAPIClient:
    """HTTP client for the task endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        settings: ClientSettings | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize the API client.

        Args:
            base_url: Backend URL. If None, taken from settings (BACKEND_URL).
            settings: Client settings; read from the environment when omitted
            session: HTTP session to use
        """
        settings = settings or ClientSettings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = settings.request_timeout_seconds
        self._retrying = Retrying(
            stop=stop_after_attempt(settings.max_retry_attempts),
            wait=wait_exponential(multiplier=1, min=0, max=settings.retry_max_wait_seconds),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )

        logger.info("API client initialized", base_url=self.base_url)

    def _send(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise APIError(
                "No response received from server. Please check your connection.",
                retryable=True,
            ) from e
        except requests.exceptions.RequestException as e:
            raise APIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            raise APIError(
                _error_message(response),
                status_code=response.status_code,
                retryable=response.status_code >= 500,
            )
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                "Invalid response from server: body is not JSON",
                status_code=response.status_code,
            ) from e

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request, retrying retryable failures.

        Raises:
            APIError: On a 4xx response, a body that is not JSON, or once
                retries are exhausted
        """
        try:
            return self._retrying.copy()(self._send, method, path, **kwargs)
        except APIError as e:
            logger.error(
                "API request failed",
                method=method,
                path=path,
                status_code=e.status_code,
                error=e.message,
            )
            raise

    def health_check(self) -> tuple[bool, dict[str, Any]]:
        """Check if backend is healthy.

        Returns:
            (is_healthy, health_data)
        """
        try:
            data = self._request("GET", "/health")
        except APIError as e:
            return False, {"error": e.message}
        if not isinstance(data, dict):
            return False, {"error": "Invalid health response"}
        return data.get("status") == "ok", data

    def list_tasks(self) -> list[Task]:
        data = self._request("GET", "/tasks")
        if not isinstance(data, list):
            raise APIError("Invalid response from server: expected a list of tasks")
        return [_parse_task(item) for item in data]

    def get_task(self, task_id: str) -> Task:
        return _parse_task(self._request("GET", f"/tasks/{task_id}"))

    def create_task(self, fields: dict[str, Any]) -> Task:
        task = _parse_task(self._request("POST", "/tasks", json=to_payload(fields)))
        logger.info("Task created", task_id=task.id)
        return task

    def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        data = self._request("PUT", f"/tasks/{task_id}", json=to_payload(fields))
        return _parse_task(data)

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")
        logger.info("Task deleted", task_id=task_id)

    def get_summary(self) -> dict[str, int]:
        return self._request("GET", "/tasks/summary")

    def get_streaming_data(self) -> list[dict[str, Any]]:
        return self._request("GET", "/streaming")

    def get_task_with_streaming_data(self, task_id: str) -> Task:
        return _parse_task(self._request("GET", f"/tasks/{task_id}/streaming"))
