"""
RequestID middleware for the task API.

This middleware ensures request IDs are propagated through all logging
contexts and echoed on every response, and logs one access line per request.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable to store request ID across async operations
request_id_context: ContextVar[str | None] = ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("taskboard.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to the request, its log records and its response."""

    def __init__(self, app, service_name: str = "unknown") -> None:
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_context.set(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            duration_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"{request.method} {request.url.path} {response.status_code} "
                f"{duration_ms:.1f}ms",
                extra={"route": request.url.path, "service": self.service_name},
            )
            return response
        finally:
            request_id_context.reset(token)


class RequestIDFilter(logging.Filter):
    """Stamp the current request ID on every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_context.get()
        return True


def get_current_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_context.get()
