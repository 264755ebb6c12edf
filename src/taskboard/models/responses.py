"""
Response models for the task API.

Every endpoint answers with an Envelope; the list endpoints add pagination
and echo the filters they applied.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic_core import to_jsonable_python

from .task import CamelModel, Task


class FieldError(BaseModel):
    """One failing field in a validation error."""

    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Human-readable reason")


class Envelope(BaseModel):
    """Uniform response wrapper shared by every endpoint."""

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    errors: Optional[list[FieldError]] = None

    def to_wire(self) -> dict[str, Any]:
        """JSON body; keys whose value is None are left out."""
        payload: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = to_jsonable_python(self.data, by_alias=True)
        if self.message is not None:
            payload["message"] = self.message
        if self.errors:
            payload["errors"] = [error.model_dump() for error in self.errors]
        return payload


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class AppliedFilters(CamelModel):
    status: str = "all"
    sort_by: str = "createdAt"
    sort_order: str = "desc"


class SearchInfo(CamelModel):
    query: str
    results_count: int


class TaskPage(CamelModel):
    """One page of tasks as returned by list and search."""

    data: list[Task]
    pagination: Pagination
    filters: AppliedFilters
    search: Optional[SearchInfo] = None

    def to_wire(self) -> dict[str, Any]:
        payload = {"success": True}
        payload.update(self.model_dump(mode="json", by_alias=True))
        if self.search is None:
            del payload["search"]
        return payload


class TaskStats(CamelModel):
    total: int
    todo: int
    in_progress: int
    completed: int
    completion_rate: int


class BulkItemResult(CamelModel):
    task_id: str
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    def to_wire(self) -> dict[str, Any]:
        payload = {"taskId": self.task_id, "success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        return payload


class BulkSummary(CamelModel):
    total: int
    successful: int
    failed: int


class BulkResult(CamelModel):
    results: list[BulkItemResult] = Field(default_factory=list)
    errors: list[BulkItemResult] = Field(default_factory=list)
    summary: BulkSummary

    def to_wire(self) -> dict[str, Any]:
        return {
            "results": [item.to_wire() for item in self.results],
            "errors": [item.to_wire() for item in self.errors],
            "summary": self.summary.model_dump(by_alias=True),
        }

    @property
    def message(self) -> str:
        return (
            f"Bulk operation completed. {self.summary.successful} successful, "
            f"{self.summary.failed} failed."
        )
