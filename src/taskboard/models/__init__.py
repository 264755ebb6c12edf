"""
Task models for Taskboard.

This module provides all task-related data models and validation.
"""

from .requests import (
    MAX_BULK_IDS,
    MAX_PAGE_SIZE,
    SORT_FIELDS,
    BulkOperationRequest,
    TaskCreateRequest,
    TaskFilters,
    TaskUpdateRequest,
)
from .responses import (
    AppliedFilters,
    BulkItemResult,
    BulkResult,
    BulkSummary,
    Envelope,
    FieldError,
    Pagination,
    SearchInfo,
    TaskPage,
    TaskStats,
)
from .task import TASK_ID_PATTERN, Task, TaskStatus, next_status

__all__ = [
    "AppliedFilters",
    "BulkItemResult",
    "BulkOperationRequest",
    "BulkResult",
    "BulkSummary",
    "Envelope",
    "FieldError",
    "MAX_BULK_IDS",
    "MAX_PAGE_SIZE",
    "Pagination",
    "SORT_FIELDS",
    "SearchInfo",
    "TASK_ID_PATTERN",
    "Task",
    "TaskCreateRequest",
    "TaskFilters",
    "TaskPage",
    "TaskStats",
    "TaskStatus",
    "TaskUpdateRequest",
    "next_status",
]
