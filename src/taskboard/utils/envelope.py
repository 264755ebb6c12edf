"""
Uniform response envelope for the task API.

This module provides helpers that build ``{success, data, message, errors}``
bodies and the FastAPI exception handlers that render every failure in the
same shape.
"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import TaskError, ValidationFailed
from ..models import Envelope, FieldError
from .status_codes import HTTPStatus

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Location prefixes FastAPI puts in front of the field name.
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = HTTPStatus.OK,
) -> JSONResponse:
    """Wrap ``data`` in a success envelope."""
    envelope = Envelope(success=True, data=data, message=message)
    return JSONResponse(status_code=status_code, content=envelope.to_wire())


def error_response(
    status_code: int,
    message: str,
    errors: Optional[list[dict[str, str]]] = None,
) -> JSONResponse:
    """Wrap a failure in an error envelope."""
    envelope = Envelope(
        success=False,
        message=message,
        errors=[FieldError(**e) for e in errors] if errors else None,
    )
    return JSONResponse(status_code=status_code, content=envelope.to_wire())


def format_validation_errors(raw_errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``[{field, message}]``, one per failure."""
    errors = []
    for error in raw_errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        errors.append({"field": ".".join(loc) or "body", "message": error["msg"]})
    return errors


def _validation_message(raw_errors: list[dict[str, Any]]) -> str:
    locations = {error.get("loc", ("body",))[0] for error in raw_errors}
    if locations == {"query"}:
        return "Query validation failed"
    if locations == {"path"}:
        return "Parameter validation failed"
    return "Validation failed"


async def task_error_handler(request: Request, exc: TaskError) -> JSONResponse:
    """Render access-layer errors with the status they carry."""
    if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    errors = exc.errors if isinstance(exc, ValidationFailed) else None
    return error_response(exc.status_code, exc.message, errors)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation failures; every failing field is reported."""
    raw_errors = list(exc.errors())
    return error_response(
        HTTPStatus.BAD_REQUEST,
        _validation_message(raw_errors),
        format_validation_errors(raw_errors),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTPException (including router 404/405) in envelope form."""
    return error_response(
        exc.status_code, str(exc.detail) if exc.detail else "An error occurred"
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle anything else; the client only ever sees a fixed message."""
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def setup_envelope_handlers(app) -> None:
    """Register the envelope exception handlers on a FastAPI app."""
    app.add_exception_handler(TaskError, task_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
