"""
Query and mutation wrappers over the task client.

Reads go through the QueryCache. After a successful mutation the affected
detail entry is written or removed, and every cached list page and the stats
entry are invalidated so the next read reflects the new state.
"""

import logging
from typing import Any, Optional, Union

from ..models import (
    BulkResult,
    Task,
    TaskCreateRequest,
    TaskFilters,
    TaskPage,
    TaskStats,
    TaskUpdateRequest,
)
from .api import TaskAPIClient
from .cache import QueryCache, TaskKeys

logger = logging.getLogger(__name__)


class TaskQueries:
    """Cached task reads and cache-synchronizing mutations."""

    def __init__(self, client: TaskAPIClient, cache: QueryCache):
        self.client = client
        self.cache = cache

    # -- queries ------------------------------------------------------------

    def tasks(self, filters: Optional[TaskFilters] = None) -> TaskPage:
        return self.cache.fetch(
            TaskKeys.list(filters), lambda: self.client.get_tasks(filters)
        )

    def task(self, task_id: str) -> Task:
        return self.cache.fetch(
            TaskKeys.detail(task_id), lambda: self.client.get_task(task_id)
        )

    def stats(self) -> TaskStats:
        return self.cache.fetch(TaskKeys.stats(), self.client.get_stats)

    # -- mutations ----------------------------------------------------------

    def create(self, request: Union[TaskCreateRequest, dict[str, Any]]) -> Task:
        task = self.client.create_task(request)
        self._after_write(task)
        return task

    def update(
        self, task_id: str, request: Union[TaskUpdateRequest, dict[str, Any]]
    ) -> Task:
        task = self.client.update_task(task_id, request)
        self._after_write(task)
        return task

    def toggle(self, task_id: str) -> tuple[Task, str]:
        task, message = self.client.toggle_task_status(task_id)
        self._after_write(task)
        return task, message

    def delete(self, task_id: str) -> str:
        deleted_id = self.client.delete_task(task_id)
        self._invalidate_collections()
        self.cache.remove(TaskKeys.detail(task_id))
        return deleted_id

    def bulk(
        self,
        operation: str,
        task_ids: list[str],
        data: Union[TaskUpdateRequest, dict[str, Any], None] = None,
    ) -> BulkResult:
        result = self.client.bulk(operation, task_ids, data)
        if operation == "delete":
            for item in result.results:
                self.cache.remove(TaskKeys.detail(item.task_id))
        self.cache.invalidate(TaskKeys.all)
        return result

    # -- optimistic updates -------------------------------------------------

    def optimistic_update(self, task_id: str, changes: dict[str, Any]) -> int:
        """Patch cached copies of a task before the server confirms the change.

        ``changes`` uses field names (``status``, ``title``...). Every patched
        entry is marked stale so the next read refetches and corrects it.
        Returns the number of entries patched.
        """

        def patch_task(task: Task) -> Task:
            return Task.model_validate({**task.model_dump(), **changes})

        def patch_page(page: TaskPage) -> TaskPage:
            data = [patch_task(t) if t.id == task_id else t for t in page.data]
            return page.model_copy(update={"data": data})

        patched = 0
        if self.cache.update(TaskKeys.detail(task_id), patch_task):
            patched += 1

        for key in self.cache.keys(TaskKeys.lists()):
            page = self.cache.get(key)
            if page is not None and any(t.id == task_id for t in page.data):
                self.cache.update(key, patch_page)
                patched += 1

        logger.debug(f"Optimistically patched {patched} cache entries for {task_id}")
        return patched

    def _after_write(self, task: Task) -> None:
        self._invalidate_collections()
        self.cache.set(TaskKeys.detail(task.id), task)

    def _invalidate_collections(self) -> None:
        self.cache.invalidate(TaskKeys.lists())
        self.cache.invalidate(TaskKeys.stats())
