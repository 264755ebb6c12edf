"""
Task routes.

Handlers validate input, call the TaskService and wrap the result in the
response envelope. Business errors raised by the service propagate to the
envelope handlers untouched.
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from ..errors import ValidationFailed
from ..models import (
    MAX_PAGE_SIZE,
    TASK_ID_PATTERN,
    BulkOperationRequest,
    TaskCreateRequest,
    TaskFilters,
    TaskStatus,
    TaskUpdateRequest,
)
from ..models.requests import SortField, SortOrder
from ..service import TaskService
from ..utils.envelope import success_response
from ..utils.status_codes import HTTPStatus

router = APIRouter(prefix="/api/tasks", tags=["tasks"])

_TASK_ID_RE = re.compile(TASK_ID_PATTERN)


def get_task_service(request: Request) -> TaskService:
    """Resolve the TaskService attached to the running app."""
    return request.app.state.task_service


def valid_task_id(task_id: str = Path(..., description="24-character hex task ID")) -> str:
    """Reject malformed ids before they reach the service."""
    if not _TASK_ID_RE.match(task_id):
        raise ValidationFailed(
            "Parameter validation failed",
            errors=[{"field": "id", "message": "Invalid task ID format"}],
        )
    return task_id


def list_filters(
    status: Optional[TaskStatus] = Query(None, description="Filter by status"),
    sort_by: SortField = Query("createdAt", alias="sortBy", description="Sort field"),
    sort_order: SortOrder = Query("desc", alias="sortOrder", description="Sort direction"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
) -> TaskFilters:
    return TaskFilters(
        status=status.value if status else None,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("")
async def list_tasks(
    filters: TaskFilters = Depends(list_filters),
    service: TaskService = Depends(get_task_service),
):
    """List tasks with filtering, sorting, and pagination."""
    page = await service.list_tasks(filters)
    return page.to_wire()


@router.get("/stats")
async def task_stats(service: TaskService = Depends(get_task_service)):
    """Counts per status and the completion rate."""
    stats = await service.get_stats()
    return success_response(stats.model_dump(by_alias=True))


@router.get("/search")
async def search_tasks(
    q: Optional[str] = Query(None, description="Text to look for in title or description"),
    filters: TaskFilters = Depends(list_filters),
    service: TaskService = Depends(get_task_service),
):
    """Search tasks by text."""
    page = await service.search_tasks(q or "", filters)
    return page.to_wire()


@router.post("/bulk")
async def bulk_operation(
    body: BulkOperationRequest,
    service: TaskService = Depends(get_task_service),
):
    """Apply delete, update or toggle to many tasks, isolating each failure."""
    result = await service.bulk_operation(body)
    return success_response(result.to_wire(), message=result.message)


@router.get("/{task_id}")
async def get_task(
    task_id: str = Depends(valid_task_id),
    service: TaskService = Depends(get_task_service),
):
    """Get a single task by ID."""
    task = await service.get_task(task_id)
    return success_response(task.to_wire())


@router.post("")
async def create_task(
    body: TaskCreateRequest,
    service: TaskService = Depends(get_task_service),
):
    """Create a new task."""
    task = await service.create_task(body)
    return success_response(
        task.to_wire(),
        message="Task created successfully",
        status_code=HTTPStatus.CREATED,
    )


@router.api_route("/{task_id}", methods=["PUT", "PATCH"])
async def update_task(
    body: TaskUpdateRequest,
    task_id: str = Depends(valid_task_id),
    service: TaskService = Depends(get_task_service),
):
    """Update the supplied fields of an existing task."""
    task = await service.update_task(task_id, body)
    return success_response(task.to_wire(), message="Task updated successfully")


@router.patch("/{task_id}/toggle")
async def toggle_task_status(
    task_id: str = Depends(valid_task_id),
    service: TaskService = Depends(get_task_service),
):
    """Advance the task to its next status."""
    task, message = await service.toggle_task_status(task_id)
    return success_response(task.to_wire(), message=message)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str = Depends(valid_task_id),
    service: TaskService = Depends(get_task_service),
):
    """Delete a task."""
    data = await service.delete_task(task_id)
    return success_response(data, message="Task deleted successfully")
