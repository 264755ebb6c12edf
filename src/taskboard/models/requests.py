"""
Request models for the task API.

Text fields are trimmed before their length is checked, so a title of only
whitespace is rejected the same way as an empty one.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_core import PydanticCustomError

from .task import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    CamelModel,
    TaskStatus,
)

SORT_FIELDS = ("title", "description", "status", "createdAt")
SortField = Literal["title", "description", "status", "createdAt"]
SortOrder = Literal["asc", "desc"]
BulkOperationName = Literal["delete", "update", "toggle"]

MAX_PAGE_SIZE = 100
MAX_BULK_IDS = 100


def clean_text(value: Any, label: str, max_length: int, required: bool) -> str:
    """Trim ``value`` and enforce the non-empty and length rules."""
    missing = "is required" if required else "cannot be empty"
    if value is None:
        raise PydanticCustomError("text_missing", f"{label} {missing}")
    if not isinstance(value, str):
        raise PydanticCustomError("text_type", f"{label} must be a string")
    value = value.strip()
    if not value:
        raise PydanticCustomError("text_empty", f"{label} {missing}")
    if len(value) > max_length:
        raise PydanticCustomError(
            "text_too_long", f"{label} cannot exceed {max_length} characters"
        )
    return value


class TaskCreateRequest(CamelModel):
    """Body of POST /api/tasks."""

    title: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return clean_text(v, "Title", TITLE_MAX_LENGTH, required=True)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return clean_text(v, "Description", DESCRIPTION_MAX_LENGTH, required=True)


class TaskUpdateRequest(CamelModel):
    """Body of PUT/PATCH /api/tasks/{id}. Only supplied fields are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return clean_text(v, "Title", TITLE_MAX_LENGTH, required=False)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return clean_text(v, "Description", DESCRIPTION_MAX_LENGTH, required=False)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        if v is None:
            raise PydanticCustomError("status_missing", "Status cannot be null")
        return v

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually sent, snake_cased."""
        return self.model_dump(exclude_unset=True)


class TaskFilters(CamelModel):
    """List parameters as the access layer receives them.

    Values are not constrained here; the access layer ignores an unknown
    status and falls back to createdAt/desc for an unknown sort field.
    """

    status: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    page: int = 1
    limit: int = 20
    search: Optional[str] = None

    def to_params(self) -> dict[str, Any]:
        """Query-string form, dropping unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class BulkOperationRequest(CamelModel):
    """Body of POST /api/tasks/bulk."""

    operation: BulkOperationName
    task_ids: list[str] = Field(..., min_length=1, max_length=MAX_BULK_IDS)
    data: Optional[TaskUpdateRequest] = None

    @model_validator(mode="after")
    def require_update_data(self) -> "BulkOperationRequest":
        if self.operation == "update" and self.data is None:
            raise PydanticCustomError(
                "bulk_data_missing", "Update data is required for bulk update"
            )
        return self
