"""
CLI command tests for Taskboard.
"""

from unittest.mock import patch

import httpx
import pytest
from typer.testing import CliRunner

from taskboard.cli.main import app as cli_app
from taskboard.client import QueryCache, TaskAPIClient, TaskQueries


@pytest.fixture
def queries(api_client):
    client = TaskAPIClient("http://testserver", http_client=api_client, retry_backoff=0)
    return TaskQueries(client, QueryCache())


@pytest.fixture
def cli(queries):
    """Invoke the CLI against the in-process API."""
    runner = CliRunner()

    def invoke(*args, input=None):
        with patch("taskboard.cli.main.build_queries", return_value=queries):
            return runner.invoke(cli_app, list(args), input=input)

    return invoke


def create(queries, title, **extra):
    return queries.create({"title": title, "description": f"About {title}", **extra})


class TestTaskCommands:
    """Test task management CLI commands."""

    def test_add(self, cli, queries):
        result = cli("add", "Buy milk", "--description", "Semi-skimmed", "--due", "2026-12-01")

        assert result.exit_code == 0
        task_id = queries.client.get_tasks().data[0].id
        assert f"Created task {task_id}" in result.output
        assert "Buy milk" in result.output
        assert "2026-12-01" in result.output

    def test_add_duplicate(self, cli, queries):
        create(queries, "Buy milk")

        result = cli("add", "BUY MILK", "-d", "again")

        assert result.exit_code == 1
        assert "Error: A task with this title already exists" in result.output

    def test_add_blank_title(self, cli):
        result = cli("add", "   ", "-d", "x")

        assert result.exit_code == 1
        assert "Error: Validation failed" in result.output
        assert "title" in result.output

    def test_list(self, cli, queries):
        create(queries, "Alpha")
        create(queries, "Beta", status="done")

        result = cli("list")

        assert result.exit_code == 0
        assert "Alpha" in result.output
        assert "Beta" in result.output
        assert "2 task(s)" in result.output

    def test_list_with_status_filter(self, cli, queries):
        create(queries, "Alpha")
        create(queries, "Beta", status="done")

        result = cli("list", "--status", "done")

        assert result.exit_code == 0
        assert "Beta" in result.output
        assert "Alpha" not in result.output

    def test_list_empty(self, cli):
        result = cli("list")

        assert result.exit_code == 0
        assert "No tasks found." in result.output

    def test_search(self, cli, queries):
        create(queries, "Walk dog")
        create(queries, "Buy milk")

        result = cli("search", "dog")

        assert result.exit_code == 0
        assert "Walk dog" in result.output
        assert "Buy milk" not in result.output

    def test_show(self, cli, queries):
        task = create(queries, "Inspect")

        result = cli("show", task.id)

        assert result.exit_code == 0
        assert "Inspect" in result.output
        assert "About Inspect" in result.output

    def test_show_missing(self, cli):
        result = cli("show", "0" * 24)

        assert result.exit_code == 1
        assert "Error: Task not found" in result.output

    def test_edit(self, cli, queries):
        task = create(queries, "Draft")

        result = cli("edit", task.id, "--title", "Final", "--status", "done")

        assert result.exit_code == 0
        assert f"Updated task {task.id}" in result.output
        assert queries.client.get_task(task.id).title == "Final"

    def test_edit_nothing(self, cli, queries):
        task = create(queries, "Draft")

        result = cli("edit", task.id)

        assert result.exit_code == 1
        assert "Nothing to update." in result.output

    def test_toggle(self, cli, queries):
        task = create(queries, "Cycle")

        result = cli("toggle", task.id)

        assert result.exit_code == 0
        assert "Task status changed to in-progress" in result.output

    def test_delete_with_yes(self, cli, queries, store):
        task = create(queries, "Doomed")

        result = cli("delete", task.id, "--yes")

        assert result.exit_code == 0
        assert f"Deleted task {task.id}" in result.output
        assert len(store) == 0

    def test_delete_declined(self, cli, queries, store):
        task = create(queries, "Spared")

        result = cli("delete", task.id, input="n\n")

        assert result.exit_code == 1
        assert len(store) == 1

    def test_stats(self, cli, queries):
        create(queries, "One", status="done")
        create(queries, "Two")

        result = cli("stats")

        assert result.exit_code == 0
        assert "Task Overview" in result.output
        assert "50%" in result.output


class TestBulkCommand:
    def test_bulk_delete_reports_failures(self, cli, queries, store):
        task = create(queries, "Doomed")
        missing = "0" * 24

        result = cli("bulk", "delete", task.id, missing)

        assert result.exit_code == 0
        assert "Bulk operation completed. 1 successful, 1 failed." in result.output
        assert f"{missing}: Task not found" in result.output
        assert len(store) == 0

    def test_bulk_update_requires_status(self, cli, queries):
        task = create(queries, "Pending")

        result = cli("bulk", "update", task.id)

        assert result.exit_code == 1
        assert "--status is required" in result.output

    def test_bulk_update(self, cli, queries):
        task = create(queries, "Pending")

        result = cli("bulk", "update", task.id, "--status", "done")

        assert result.exit_code == 0
        assert queries.client.get_task(task.id).status == "done"

    def test_unknown_operation(self, cli):
        result = cli("bulk", "archive", "a" * 24)

        assert result.exit_code == 1
        assert "Unknown operation: archive" in result.output


def test_connection_error():
    def refuse(request):
        raise httpx.ConnectError("refused")

    client = TaskAPIClient(
        "http://api.test", transport=httpx.MockTransport(refuse), sleep=lambda _: None
    )
    queries = TaskQueries(client, QueryCache())

    with patch("taskboard.cli.main.build_queries", return_value=queries):
        result = CliRunner().invoke(cli_app, ["stats"])

    assert result.exit_code == 1
    assert "Connection error: No response from server" in result.output
