"""
Tests for the task HTTP client: envelope parsing and the retry policy.
"""

import json

import httpx
import pytest

from taskboard.client import APIError, NetworkError, RetryPolicy, TaskAPIClient
from taskboard.models import TaskFilters

TASK_ID = "a" * 24

TASK_WIRE = {
    "id": TASK_ID,
    "title": "Buy milk",
    "description": "Semi-skimmed",
    "status": "todo",
    "dueDate": None,
    "createdAt": "2026-01-01T10:00:00Z",
    "updatedAt": "2026-01-01T10:00:00Z",
}


class Recorder:
    """MockTransport handler that replays a list of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_client(handler, **kwargs):
    return TaskAPIClient(
        "http://api.test",
        transport=httpx.MockTransport(handler),
        sleep=lambda _: None,
        **kwargs,
    )


def ok(data, status_code=200, **extra):
    return httpx.Response(status_code, json={"success": True, "data": data, **extra})


def fail(status_code, message, errors=None):
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return httpx.Response(status_code, json=body)


class TestRetryPolicy:
    @pytest.mark.parametrize(
        "status_code,expected",
        [(None, True), (500, True), (503, True), (400, False), (404, False), (409, False)],
    )
    def test_retryable_statuses(self, status_code, expected):
        policy = RetryPolicy(max_retries=3)

        assert policy.should_retry(1, APIError("x", status_code=status_code)) is expected

    def test_stops_after_max_retries(self):
        policy = RetryPolicy(max_retries=2)
        error = APIError("x", status_code=503)

        assert policy.should_retry(2, error) is True
        assert policy.should_retry(3, error) is False

    def test_backoff_grows_with_failures(self):
        waits = []
        policy = RetryPolicy(max_retries=3, backoff=0.5, sleep=waits.append)

        policy.wait(1)
        policy.wait(2)

        assert waits == [0.5, 1.0]


class TestReads:
    def test_get_task(self):
        handler = Recorder(ok(TASK_WIRE))
        client = make_client(handler)

        task = client.get_task(TASK_ID)

        assert task.id == TASK_ID
        assert task.due_date is None
        assert handler.requests[0].url.path == f"/api/tasks/{TASK_ID}"

    def test_get_tasks_sends_camel_case_params(self):
        page = {
            "success": True,
            "data": [TASK_WIRE],
            "pagination": {
                "currentPage": 1,
                "totalPages": 1,
                "totalCount": 1,
                "limit": 5,
                "hasNextPage": False,
                "hasPrevPage": False,
            },
            "filters": {"status": "todo", "sortBy": "title", "sortOrder": "asc"},
        }
        handler = Recorder(httpx.Response(200, json=page))
        client = make_client(handler)

        result = client.get_tasks(
            TaskFilters(status="todo", sort_by="title", sort_order="asc", limit=5)
        )

        params = handler.requests[0].url.params
        assert params["sortBy"] == "title"
        assert params["sortOrder"] == "asc"
        assert params["status"] == "todo"
        assert result.pagination.total_count == 1
        assert result.data[0].title == "Buy milk"

    def test_read_retries_three_times_on_server_error(self):
        handler = Recorder(fail(503, "Service unavailable"))
        client = make_client(handler)

        with pytest.raises(APIError) as exc_info:
            client.get_task(TASK_ID)

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Service unavailable"
        assert len(handler.requests) == 4

    def test_read_recovers_after_transient_failure(self):
        handler = Recorder(fail(500, "boom"), ok(TASK_WIRE))
        client = make_client(handler)

        assert client.get_task(TASK_ID).id == TASK_ID
        assert len(handler.requests) == 2

    def test_not_found_is_not_retried(self):
        handler = Recorder(fail(404, "Task not found"))
        client = make_client(handler)

        with pytest.raises(APIError) as exc_info:
            client.get_task(TASK_ID)

        assert exc_info.value.message == "Task not found"
        assert exc_info.value.status_code == 404
        assert len(handler.requests) == 1

    def test_network_error_message(self):
        handler = Recorder(httpx.ConnectError("refused"))
        client = make_client(handler)

        with pytest.raises(NetworkError) as exc_info:
            client.get_stats()

        assert exc_info.value.message == (
            "No response from server. Please check your connection."
        )
        assert len(handler.requests) == 4

    def test_body_without_success_flag(self):
        handler = Recorder(httpx.Response(200, json={"data": []}))
        client = make_client(handler)

        with pytest.raises(APIError, match="Invalid response format from server"):
            client.get_stats()

    def test_error_without_envelope_uses_status_line(self):
        handler = Recorder(httpx.Response(502, text="<html>bad gateway</html>"))
        client = make_client(handler, read_retries=0)

        with pytest.raises(APIError) as exc_info:
            client.health()

        assert exc_info.value.message == "HTTP 502: Bad Gateway"


class TestMutations:
    def test_create_sends_camel_case_body(self):
        handler = Recorder(ok(TASK_WIRE, status_code=201))
        client = make_client(handler)

        task = client.create_task({"title": "Buy milk", "description": "Semi-skimmed"})

        sent = handler.requests[0]
        assert sent.method == "POST"
        assert sent.url.path == "/api/tasks"
        assert task.title == "Buy milk"
        assert b'"dueDate"' not in sent.content

    def test_mutation_retries_twice(self):
        handler = Recorder(fail(500, "Internal server error"))
        client = make_client(handler)

        with pytest.raises(APIError):
            client.toggle_task_status(TASK_ID)

        assert len(handler.requests) == 3

    def test_conflict_is_not_retried(self):
        handler = Recorder(fail(409, "A task with this title already exists"))
        client = make_client(handler)

        with pytest.raises(APIError) as exc_info:
            client.update_task(TASK_ID, {"title": "Taken"})

        assert exc_info.value.status_code == 409
        assert len(handler.requests) == 1

    def test_validation_errors_are_exposed(self):
        errors = [{"field": "title", "message": "Title is required"}]
        handler = Recorder(fail(400, "Validation failed", errors))
        client = make_client(handler)

        with pytest.raises(APIError) as exc_info:
            client.create_task({"title": "x", "description": "y"})

        assert exc_info.value.errors == errors

    def test_update_sends_only_supplied_fields(self):
        handler = Recorder(ok({**TASK_WIRE, "status": "done"}))
        client = make_client(handler)

        client.update_task(TASK_ID, {"status": "done"})

        sent = handler.requests[0]
        assert sent.method == "PUT"
        assert json.loads(sent.content) == {"status": "done"}

    def test_toggle_returns_message(self):
        handler = Recorder(
            ok({**TASK_WIRE, "status": "in-progress"}, message="Task status changed to in-progress")
        )
        client = make_client(handler)

        task, message = client.toggle_task_status(TASK_ID)

        assert task.status == "in-progress"
        assert message == "Task status changed to in-progress"

    def test_delete_returns_id(self):
        handler = Recorder(ok({"id": TASK_ID}, message="Task deleted successfully"))
        client = make_client(handler)

        assert client.delete_task(TASK_ID) == TASK_ID
        assert handler.requests[0].method == "DELETE"
