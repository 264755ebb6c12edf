"""
Client-side query cache.

Entries are keyed by tuples that start with the entity type, so a whole
family of entries can be invalidated or removed by prefix:

    ("tasks",)                            every task entry
    ("tasks", "list")                     every cached list page
    ("tasks", "list", <frozen filters>)   one list page
    ("tasks", "detail", <id>)             one task
    ("tasks", "stats")                    aggregate counts

The cache is a plain object handed to whoever needs it; nothing here is
global.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from ..models import TaskFilters

QueryKey = tuple


def freeze_filters(filters: Optional[TaskFilters]) -> tuple:
    """Turn filters into a hashable, order-independent key part."""
    params = (filters or TaskFilters()).to_params()
    return tuple(sorted(params.items()))


class TaskKeys:
    """Key scheme for task queries."""

    all: QueryKey = ("tasks",)

    @staticmethod
    def lists() -> QueryKey:
        return (*TaskKeys.all, "list")

    @staticmethod
    def list(filters: Optional[TaskFilters] = None) -> QueryKey:
        return (*TaskKeys.lists(), freeze_filters(filters))

    @staticmethod
    def details() -> QueryKey:
        return (*TaskKeys.all, "detail")

    @staticmethod
    def detail(task_id: str) -> QueryKey:
        return (*TaskKeys.details(), task_id)

    @staticmethod
    def stats() -> QueryKey:
        return (*TaskKeys.all, "stats")


@dataclass
class CacheEntry:
    data: Any
    updated_at: float
    last_access: float
    stale: bool = False


def _matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class QueryCache:
    """In-memory cache of query results with staleness and garbage collection."""

    def __init__(
        self,
        stale_time: float = 120.0,
        gc_time: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.gc_time = gc_time
        self._clock = clock
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._lock = threading.RLock()

    def __contains__(self, key: QueryKey) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self, prefix: QueryKey = ()) -> list[QueryKey]:
        with self._lock:
            return [key for key in self._entries if _matches(key, prefix)]

    def get_entry(self, key: QueryKey) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def get(self, key: QueryKey) -> Any:
        """Return cached data for ``key`` (fresh or stale), or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            entry.last_access = self._clock()
            return entry.data

    def set(self, key: QueryKey, data: Any) -> None:
        now = self._clock()
        with self._lock:
            self._entries[key] = CacheEntry(data=data, updated_at=now, last_access=now)

    def update(
        self, key: QueryKey, updater: Callable[[Any], Any], mark_stale: bool = True
    ) -> bool:
        """Replace an entry's data with ``updater(data)``.

        Returns False when the key is not cached. The entry is marked stale by
        default so the next read refetches and reconciles it.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            entry.data = updater(entry.data)
            entry.last_access = self._clock()
            if mark_stale:
                entry.stale = True
            return True

    def is_fresh(self, key: QueryKey, stale_time: Optional[float] = None) -> bool:
        stale_time = self.stale_time if stale_time is None else stale_time
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.stale:
                return False
            return self._clock() - entry.updated_at < stale_time

    def invalidate(self, prefix: QueryKey = ()) -> int:
        """Mark every entry under ``prefix`` stale; returns how many."""
        with self._lock:
            matched = [e for k, e in self._entries.items() if _matches(k, prefix)]
            for entry in matched:
                entry.stale = True
            return len(matched)

    def remove(self, prefix: QueryKey = ()) -> int:
        """Drop every entry under ``prefix``; returns how many."""
        with self._lock:
            matched = [k for k in self._entries if _matches(k, prefix)]
            for key in matched:
                del self._entries[key]
            return len(matched)

    def fetch(
        self,
        key: QueryKey,
        loader: Callable[[], Any],
        stale_time: Optional[float] = None,
    ) -> Any:
        """Return fresh cached data or call ``loader`` and cache its result.

        A loader failure leaves any existing entry untouched.
        """
        if self.is_fresh(key, stale_time):
            return self.get(key)
        data = loader()
        self.set(key, data)
        return data

    def collect_garbage(self) -> int:
        """Drop entries nobody has read for longer than ``gc_time``."""
        now = self._clock()
        with self._lock:
            expired = [
                k for k, e in self._entries.items() if now - e.last_access > self.gc_time
            ]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
