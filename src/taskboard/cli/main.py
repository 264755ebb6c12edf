"""
Terminal front end for Taskboard.

Every command talks to the API through TaskQueries, so the same cache and
invalidation rules apply here as in any other client.
"""

from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..client import APIError, NetworkError, QueryCache, TaskAPIClient, TaskQueries
from ..config import get_settings
from ..models import Task, TaskFilters, TaskPage, TaskStatus

app = typer.Typer(name="taskboard", help="Manage tasks from the terminal")
console = Console()

STATUS_STYLES = {
    TaskStatus.TODO: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.DONE: "green",
}


def build_queries() -> TaskQueries:
    """Create the client stack from settings."""
    settings = get_settings().client
    client = TaskAPIClient.from_settings(settings)
    cache = QueryCache(stale_time=settings.stale_time, gc_time=settings.gc_time)
    return TaskQueries(client, cache)


def fail(error: APIError) -> None:
    """Print a client error and exit with status 1."""
    if isinstance(error, NetworkError):
        console.print(f"[red]Connection error: {error.message}[/red]")
    else:
        console.print(f"[red]Error: {error.message}[/red]")
        for item in error.errors:
            console.print(f"  • {item.get('field')}: {item.get('message')}")
    raise typer.Exit(1)


def status_label(status: TaskStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def format_due(due: Optional[datetime]) -> str:
    return due.strftime("%Y-%m-%d") if due else "-"


def render_page(page: TaskPage, title: str = "Tasks") -> None:
    if not page.data:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Status")
    table.add_column("Due")
    for task in page.data:
        table.add_row(task.id, task.title, status_label(task.status), format_due(task.due_date))
    console.print(table)

    p = page.pagination
    console.print(
        f"Page {p.current_page}/{max(p.total_pages, 1)} · {p.total_count} task(s)"
    )


def render_task(task: Task, heading: str = "Task") -> None:
    console.print(
        Panel(
            f"[bold]{task.title}[/bold]\n\n"
            f"{task.description}\n\n"
            f"ID: {task.id}\n"
            f"Status: {status_label(task.status)}\n"
            f"Due: {format_due(task.due_date)}\n"
            f"Created: {task.created_at:%Y-%m-%d %H:%M}\n"
            f"Updated: {task.updated_at:%Y-%m-%d %H:%M}",
            title=heading,
            border_style="blue",
        )
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind the service to"),
    port: Optional[int] = typer.Option(None, help="Port to run the service on"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Start the task API."""
    from ..api.main import run

    settings = get_settings()
    api = settings.api.model_copy(
        update={
            "host": host or settings.api.host,
            "port": port or settings.api.port,
            "reload": reload or settings.api.reload,
        }
    )
    run(settings.model_copy(update={"api": api}))


@app.command("list")
def list_tasks(
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    sort_by: str = typer.Option("createdAt", "--sort-by", help="title, description, status or createdAt"),
    order: str = typer.Option("desc", "--order", help="asc or desc"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, max=100, help="Items per page"),
):
    """List tasks."""
    filters = TaskFilters(
        status=status.value if status else None,
        sort_by=sort_by,
        sort_order=order,
        page=page,
        limit=limit,
    )
    try:
        render_page(build_queries().tasks(filters))
    except APIError as e:
        fail(e)


@app.command()
def search(query: str = typer.Argument(..., help="Text to look for")):
    """Search task titles and descriptions."""
    try:
        result = build_queries().client.search_tasks(query)
    except APIError as e:
        fail(e)
    render_page(result, title=f"Search: {query}")


@app.command()
def show(task_id: str = typer.Argument(..., help="Task ID")):
    """Show one task."""
    try:
        render_task(build_queries().task(task_id))
    except APIError as e:
        fail(e)


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option(..., "--description", "-d", help="Task description"),
    status: TaskStatus = typer.Option(TaskStatus.TODO, "--status", "-s", help="Initial status"),
    due: Optional[datetime] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)"),
):
    """Create a task."""
    try:
        task = build_queries().create(
            {"title": title, "description": description, "status": status, "due_date": due}
        )
    except APIError as e:
        fail(e)
    console.print(f"[green]✓ Created task {task.id}[/green]")
    render_task(task, heading="Created")


@app.command()
def edit(
    task_id: str = typer.Argument(..., help="Task ID"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s", help="New status"),
    due: Optional[datetime] = typer.Option(None, "--due", help="New due date (YYYY-MM-DD)"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
):
    """Update the given fields of a task."""
    changes = {}
    if title is not None:
        changes["title"] = title
    if description is not None:
        changes["description"] = description
    if status is not None:
        changes["status"] = status
    if due is not None:
        changes["due_date"] = due
    elif clear_due:
        changes["due_date"] = None

    if not changes:
        console.print("[yellow]Nothing to update.[/yellow]")
        raise typer.Exit(1)

    try:
        task = build_queries().update(task_id, changes)
    except APIError as e:
        fail(e)
    console.print(f"[green]✓ Updated task {task.id}[/green]")
    render_task(task, heading="Updated")


@app.command()
def toggle(task_id: str = typer.Argument(..., help="Task ID")):
    """Move a task to its next status."""
    try:
        task, message = build_queries().toggle(task_id)
    except APIError as e:
        fail(e)
    console.print(f"[green]✓ {message}[/green] ({task.title})")


@app.command()
def delete(
    task_id: str = typer.Argument(..., help="Task ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a task."""
    if not yes:
        typer.confirm(f"Delete task {task_id}?", abort=True)
    try:
        deleted_id = build_queries().delete(task_id)
    except APIError as e:
        fail(e)
    console.print(f"[green]✓ Deleted task {deleted_id}[/green]")


@app.command()
def stats():
    """Show counts per status and the completion rate."""
    try:
        result = build_queries().stats()
    except APIError as e:
        fail(e)

    table = Table(title="Task Overview")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Total", str(result.total))
    table.add_row("To do", str(result.todo))
    table.add_row("In progress", str(result.in_progress))
    table.add_row("Done", str(result.completed))
    table.add_row("Completion", f"{result.completion_rate}%")
    console.print(table)


@app.command()
def bulk(
    operation: str = typer.Argument(..., help="delete, update or toggle"),
    task_ids: list[str] = typer.Argument(..., help="Task IDs"),
    status: Optional[TaskStatus] = typer.Option(None, "--status", "-s", help="Status to set (update)"),
):
    """Apply one operation to many tasks."""
    if operation not in ("delete", "update", "toggle"):
        console.print(f"[red]Error: Unknown operation: {operation}[/red]")
        raise typer.Exit(1)

    data = None
    if operation == "update":
        if status is None:
            console.print("[red]Error: --status is required for bulk update[/red]")
            raise typer.Exit(1)
        data = {"status": status}

    try:
        result = build_queries().bulk(operation, task_ids, data)
    except APIError as e:
        fail(e)

    console.print(result.message)
    for item in result.errors:
        console.print(f"  [red]✗ {item.task_id}: {item.error}[/red]")


if __name__ == "__main__":
    app()
