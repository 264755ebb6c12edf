"""
Task model for Taskboard.

This module provides the Task record, its status enum and the status cycle.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TASK_ID_PATTERN = r"^[0-9a-fA-F]{24}$"
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500


class TaskStatus(str, Enum):
    """Task workflow states."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


NEXT_STATUS = {
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.DONE,
    TaskStatus.DONE: TaskStatus.TODO,
}


def next_status(status: str | TaskStatus | None) -> TaskStatus:
    """Return the state that follows ``status`` in the todo/in-progress/done cycle.

    Anything outside the enum restarts the cycle at todo.
    """
    try:
        current = TaskStatus(status)
    except ValueError:
        return TaskStatus.TODO
    return NEXT_STATUS[current]


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(CamelModel):
    """A single persisted task."""

    id: str = Field(..., pattern=TASK_ID_PATTERN)
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = TaskStatus.TODO
    due_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
