"""
Task access layer for Taskboard.

This module provides the TaskService class: every business rule about tasks
(duplicate titles, partial updates, the status cycle, statistics) lives here,
between the HTTP routes and the store.
"""

import asyncio
import logging
import math
from typing import Any, Optional

from .errors import ConflictError, InternalError, NotFoundError, TaskError, ValidationFailed
from .models import (
    MAX_PAGE_SIZE,
    AppliedFilters,
    BulkItemResult,
    BulkOperationRequest,
    BulkResult,
    BulkSummary,
    Pagination,
    SearchInfo,
    Task,
    TaskCreateRequest,
    TaskFilters,
    TaskPage,
    TaskStats,
    TaskStatus,
    TaskUpdateRequest,
    next_status,
)
from .store import Document, DuplicateKeyError, StoreError, TaskStore

logger = logging.getLogger(__name__)

SORT_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "status": "status",
    "createdAt": "created_at",
}
VALID_STATUSES = {status.value for status in TaskStatus}
MIN_SEARCH_LENGTH = 2


def _to_task(document: Document) -> Task:
    return Task.model_validate(document)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class TaskService:
    """Task operations over a TaskStore."""

    def __init__(self, store: TaskStore):
        self.store = store

    async def list_tasks(self, filters: Optional[TaskFilters] = None) -> TaskPage:
        """Filter, sort and paginate tasks.

        The page and the total count are two separate reads run side by side;
        under concurrent writes they may disagree.
        """
        filters = filters or TaskFilters()
        status = filters.status if filters.status in VALID_STATUSES else None
        search = (filters.search or "").strip().casefold() or None

        def predicate(document: Document) -> bool:
            if status is not None and document["status"] != status:
                return False
            if search is not None:
                return (
                    search in document["title"].casefold()
                    or search in document["description"].casefold()
                )
            return True

        if filters.sort_by in SORT_FIELD_MAP:
            sort_field = SORT_FIELD_MAP[filters.sort_by]
            descending = filters.sort_order != "asc"
        else:
            sort_field, descending = "created_at", True

        page = max(filters.page, 1)
        limit = min(filters.limit, MAX_PAGE_SIZE) if filters.limit > 0 else 20
        skip = (page - 1) * limit

        try:
            documents, total_count = await asyncio.gather(
                asyncio.to_thread(
                    self.store.find, predicate, sort_field, descending, skip, limit
                ),
                asyncio.to_thread(self.store.count, predicate),
            )
        except StoreError as e:
            logger.error(f"Failed to fetch tasks: {e}")
            raise InternalError("Failed to fetch tasks") from e

        total_pages = math.ceil(total_count / limit)
        return TaskPage(
            data=[_to_task(d) for d in documents],
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_count=total_count,
                limit=limit,
                has_next_page=page < total_pages,
                has_prev_page=page > 1,
            ),
            filters=AppliedFilters(
                status=filters.status or "all",
                sort_by=filters.sort_by,
                sort_order=filters.sort_order,
            ),
        )

    async def search_tasks(
        self, query: str, filters: Optional[TaskFilters] = None
    ) -> TaskPage:
        """Case-insensitive text search over titles and descriptions."""
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationFailed(
                "Search query must be at least 2 characters long",
                errors=[
                    {
                        "field": "q",
                        "message": "Search query must be at least 2 characters long",
                    }
                ],
            )

        filters = (filters or TaskFilters()).model_copy(update={"search": query})
        result = await self.list_tasks(filters)
        result.search = SearchInfo(query=query, results_count=len(result.data))
        return result

    async def get_task(self, task_id: str) -> Task:
        document = await asyncio.to_thread(self.store.find_by_id, task_id)
        if document is None:
            raise NotFoundError()
        return _to_task(document)

    async def create_task(self, request: TaskCreateRequest) -> Task:
        """Create a task; titles are unique regardless of case."""
        if await asyncio.to_thread(self.store.find_by_title, request.title) is not None:
            raise ConflictError()

        document = {
            "title": request.title.strip(),
            "description": request.description.strip(),
            "status": TaskStatus(request.status).value,
            "due_date": request.due_date,
        }
        try:
            created = await asyncio.to_thread(self.store.insert, document)
        except DuplicateKeyError as e:
            raise ConflictError() from e
        except StoreError as e:
            logger.error(f"Failed to create task: {e}")
            raise InternalError("Failed to create task") from e

        logger.info(f"Created task {created['id']}: {created['title']!r}")
        return _to_task(created)

    async def update_task(self, task_id: str, request: TaskUpdateRequest) -> Task:
        """Apply a partial update; fields absent from the request are untouched."""
        current = await asyncio.to_thread(self.store.find_by_id, task_id)
        if current is None:
            raise NotFoundError()

        changes = request.changes()
        title = changes.get("title")
        if title is not None and title != current["title"]:
            taken = await asyncio.to_thread(self.store.find_by_title, title, task_id)
            if taken is not None:
                raise ConflictError()

        for field in ("title", "description"):
            if field in changes:
                changes[field] = changes[field].strip()
        if "status" in changes:
            changes["status"] = TaskStatus(changes["status"]).value

        try:
            updated = await asyncio.to_thread(self.store.update_one, task_id, changes)
        except DuplicateKeyError as e:
            raise ConflictError() from e
        except StoreError as e:
            logger.error(f"Failed to update task {task_id}: {e}")
            raise InternalError("Failed to update task") from e

        if updated is None:
            raise NotFoundError()

        logger.info(f"Updated task {task_id}: {sorted(changes)}")
        return _to_task(updated)

    async def delete_task(self, task_id: str) -> dict[str, str]:
        try:
            deleted = await asyncio.to_thread(self.store.delete_one, task_id)
        except StoreError as e:
            logger.error(f"Failed to delete task {task_id}: {e}")
            raise InternalError("Failed to delete task") from e

        if deleted is None:
            raise NotFoundError()

        logger.info(f"Deleted task {task_id}")
        return {"id": task_id}

    async def toggle_task_status(self, task_id: str) -> tuple[Task, str]:
        """Advance the task one step through todo -> in-progress -> done -> todo.

        Returns the updated task and a message naming its new status.
        """
        current = await asyncio.to_thread(self.store.find_by_id, task_id)
        if current is None:
            raise NotFoundError()

        new_status = next_status(current["status"])
        try:
            updated = await asyncio.to_thread(
                self.store.update_one, task_id, {"status": new_status.value}
            )
        except StoreError as e:
            logger.error(f"Failed to toggle task {task_id}: {e}")
            raise InternalError("Failed to toggle task status") from e

        if updated is None:
            raise NotFoundError()

        logger.info(f"Task {task_id} status {current['status']} -> {new_status.value}")
        return _to_task(updated), f"Task status changed to {new_status.value}"

    async def get_stats(self) -> TaskStats:
        try:
            total, todo, in_progress, done = await asyncio.gather(
                asyncio.to_thread(self.store.count),
                *(
                    asyncio.to_thread(self.store.count, _status_is(status))
                    for status in TaskStatus
                ),
            )
        except StoreError as e:
            logger.error(f"Failed to fetch task statistics: {e}")
            raise InternalError("Failed to fetch task statistics") from e

        completion_rate = round_half_up(done / total * 100) if total > 0 else 0
        return TaskStats(
            total=total,
            todo=todo,
            in_progress=in_progress,
            completed=done,
            completion_rate=completion_rate,
        )

    async def bulk_operation(self, request: BulkOperationRequest) -> BulkResult:
        """Apply one operation to each id in turn.

        A failing id is recorded and processing continues with the next one;
        there is no rollback of ids that already succeeded.
        """
        results: list[BulkItemResult] = []
        errors: list[BulkItemResult] = []

        for task_id in request.task_ids:
            try:
                data = await self._apply_bulk_item(request, task_id)
            except TaskError as e:
                errors.append(
                    BulkItemResult(task_id=task_id, success=False, error=e.message)
                )
            except Exception:
                logger.exception(f"Bulk {request.operation} failed for task {task_id}")
                errors.append(
                    BulkItemResult(
                        task_id=task_id, success=False, error=InternalError().message
                    )
                )
            else:
                results.append(BulkItemResult(task_id=task_id, success=True, data=data))

        logger.info(
            f"Bulk {request.operation}: {len(results)} successful, {len(errors)} failed"
        )
        return BulkResult(
            results=results,
            errors=errors,
            summary=BulkSummary(
                total=len(request.task_ids),
                successful=len(results),
                failed=len(errors),
            ),
        )

    async def _apply_bulk_item(
        self, request: BulkOperationRequest, task_id: str
    ) -> Any:
        if request.operation == "delete":
            return await self.delete_task(task_id)
        if request.operation == "update":
            task = await self.update_task(task_id, request.data)
            return task.to_wire()
        if request.operation == "toggle":
            task, _ = await self.toggle_task_status(task_id)
            return task.to_wire()
        raise ValidationFailed(f"Unknown operation: {request.operation}")


def _status_is(status: TaskStatus):
    return lambda document: document["status"] == status.value
