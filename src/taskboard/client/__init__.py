"""Client data layer: HTTP client, query cache and cached queries."""

from .api import APIError, NetworkError, RetryPolicy, TaskAPIClient
from .cache import QueryCache, TaskKeys
from .queries import TaskQueries

__all__ = [
    "APIError",
    "NetworkError",
    "QueryCache",
    "RetryPolicy",
    "TaskAPIClient",
    "TaskKeys",
    "TaskQueries",
]
