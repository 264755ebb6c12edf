"""
Error types raised by the task access layer.

Each error carries the HTTP status the API answers with, so handlers can
render them without a lookup table.
"""

from typing import Optional

from .utils.status_codes import HTTPStatus


class TaskError(Exception):
    """Base class for task business errors."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(TaskError):
    """Input rejected before it reached the store."""

    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(TaskError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "Task not found"


class ConflictError(TaskError):
    status_code = HTTPStatus.CONFLICT
    default_message = "A task with this title already exists"


class InternalError(TaskError):
    """Persistence or unexpected failure; the message is safe to show clients."""
