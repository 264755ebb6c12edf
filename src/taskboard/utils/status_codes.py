"""
Standardized HTTP status codes for the task API and its client.

This module provides consistent status code handling across the server and
the client retry policy.
"""

from enum import IntEnum
from typing import Optional


class HTTPStatus(IntEnum):
    """Standard HTTP status codes with clear semantic meaning."""

    # 2xx Success
    OK = 200
    CREATED = 201

    # 4xx Client Errors
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422

    # 5xx Server Errors
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


def is_client_error(status_code: Optional[int]) -> bool:
    """Return True for 4xx responses."""
    return status_code is not None and 400 <= status_code < 500


def is_retryable(status_code: Optional[int]) -> bool:
    """Return True when a failed request may be sent again.

    A missing status code means the request never got a response.
    4xx answers are final.
    """
    if status_code is None:
        return True
    return not is_client_error(status_code) and status_code >= 500
