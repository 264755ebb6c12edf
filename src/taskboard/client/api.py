"""
HTTP client for the task API.

Typed request functions over httpx. Server-reported failures raise APIError
carrying the envelope message; transport failures raise NetworkError with a
fixed user-facing message. 5xx answers and transport failures are retried a
bounded number of times; 4xx answers never are.
"""

import logging
import time
from collections.abc import Callable
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ValidationError

from ..config import ClientSettings
from ..models import (
    BulkOperationRequest,
    BulkResult,
    Task,
    TaskCreateRequest,
    TaskFilters,
    TaskPage,
    TaskStats,
    TaskUpdateRequest,
)
from ..utils.status_codes import is_retryable

logger = logging.getLogger(__name__)

TASKS_PATH = "/api/tasks"
NO_RESPONSE_MESSAGE = "No response from server. Please check your connection."


class APIError(Exception):
    """The server answered with a failure envelope or an unusable body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[list[dict[str, str]]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)


class NetworkError(APIError):
    """The request never got a response."""

    def __init__(self, message: str = NO_RESPONSE_MESSAGE):
        super().__init__(message, status_code=None)


def validate_request(model: type[BaseModel], value: Any) -> Any:
    """Validate a request body locally, reporting failures like the server does."""
    try:
        return model.model_validate(value)
    except ValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]) or "body",
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        raise APIError("Validation failed", status_code=400, errors=errors) from e


class RetryPolicy:
    """Decides whether a failed request is sent again."""

    def __init__(
        self,
        max_retries: int,
        backoff: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_retries = max_retries
        self.backoff = backoff
        self._sleep = sleep

    def should_retry(self, failure_count: int, error: APIError) -> bool:
        """``failure_count`` is the number of failed attempts so far."""
        return failure_count <= self.max_retries and is_retryable(error.status_code)

    def wait(self, failure_count: int) -> None:
        if self.backoff > 0:
            self._sleep(self.backoff * failure_count)


class TaskAPIClient:
    """Synchronous client for the task endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        read_retries: int = 3,
        mutation_retries: int = 2,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.read_policy = RetryPolicy(read_retries, retry_backoff, sleep)
        self.mutation_policy = RetryPolicy(mutation_retries, retry_backoff, sleep)
        self._http = http_client or httpx.Client(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> "TaskAPIClient":
        return cls(
            settings.base_url,
            timeout=settings.timeout,
            read_retries=settings.read_retries,
            mutation_retries=settings.mutation_retries,
            retry_backoff=settings.retry_backoff,
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TaskAPIClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- transport ----------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        mutation: bool = False,
    ) -> dict[str, Any]:
        policy = self.mutation_policy if mutation else self.read_policy
        failures = 0
        while True:
            try:
                return self._send(method, path, params=params, json=json)
            except APIError as e:
                failures += 1
                if not policy.should_retry(failures, e):
                    raise
                logger.warning(
                    f"{method} {path} failed ({e.status_code or 'no response'}), "
                    f"retry {failures}/{policy.max_retries}"
                )
                policy.wait(failures)

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, params=params, json=json)
        except httpx.RequestError as e:
            logger.error(f"API request error: {e}")
            raise NetworkError() from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = None
            errors = None
            if isinstance(payload, dict):
                message = payload.get("message")
                errors = payload.get("errors")
            raise APIError(
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                errors=errors,
            )

        if not isinstance(payload, dict) or not payload.get("success"):
            raise APIError(
                "Invalid response format from server", status_code=response.status_code
            )
        return payload

    # -- reads --------------------------------------------------------------

    def get_tasks(self, filters: Optional[TaskFilters] = None) -> TaskPage:
        params = (filters or TaskFilters()).to_params()
        params.pop("search", None)
        return TaskPage.model_validate(self._request("GET", TASKS_PATH, params=params))

    def search_tasks(self, query: str, filters: Optional[TaskFilters] = None) -> TaskPage:
        params = (filters or TaskFilters()).to_params()
        params.pop("search", None)
        params["q"] = query
        payload = self._request("GET", f"{TASKS_PATH}/search", params=params)
        return TaskPage.model_validate(payload)

    def get_task(self, task_id: str) -> Task:
        payload = self._request("GET", f"{TASKS_PATH}/{task_id}")
        return Task.model_validate(payload["data"])

    def get_stats(self) -> TaskStats:
        payload = self._request("GET", f"{TASKS_PATH}/stats")
        return TaskStats.model_validate(payload["data"])

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")["data"]

    # -- mutations ----------------------------------------------------------

    def create_task(self, request: Union[TaskCreateRequest, dict[str, Any]]) -> Task:
        if isinstance(request, dict):
            request = validate_request(TaskCreateRequest, request)
        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload = self._request("POST", TASKS_PATH, json=body, mutation=True)
        return Task.model_validate(payload["data"])

    def update_task(
        self, task_id: str, request: Union[TaskUpdateRequest, dict[str, Any]]
    ) -> Task:
        if isinstance(request, dict):
            request = validate_request(TaskUpdateRequest, request)
        body = request.model_dump(mode="json", by_alias=True, exclude_unset=True)
        payload = self._request(
            "PUT", f"{TASKS_PATH}/{task_id}", json=body, mutation=True
        )
        return Task.model_validate(payload["data"])

    def delete_task(self, task_id: str) -> str:
        payload = self._request("DELETE", f"{TASKS_PATH}/{task_id}", mutation=True)
        return payload["data"]["id"]

    def toggle_task_status(self, task_id: str) -> tuple[Task, str]:
        payload = self._request(
            "PATCH", f"{TASKS_PATH}/{task_id}/toggle", mutation=True
        )
        return Task.model_validate(payload["data"]), payload.get("message", "")

    def bulk(
        self,
        operation: str,
        task_ids: list[str],
        data: Union[TaskUpdateRequest, dict[str, Any], None] = None,
    ) -> BulkResult:
        request = validate_request(
            BulkOperationRequest,
            {"operation": operation, "taskIds": task_ids, "data": data},
        )
        body = request.model_dump(mode="json", by_alias=True, exclude_unset=True)
        payload = self._request("POST", f"{TASKS_PATH}/bulk", json=body, mutation=True)
        return BulkResult.model_validate(payload["data"])
