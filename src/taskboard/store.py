"""
Task store for Taskboard.

A single document collection kept in memory and, when a path is configured,
mirrored to a JSON file after every write. Titles carry a unique index on
their case-folded form, so two writers racing on the same title cannot both
succeed.
"""

import json
import logging
import os
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

Document = dict[str, Any]
Predicate = Callable[[Document], bool]

DATETIME_FIELDS = ("due_date", "created_at", "updated_at")


class StoreError(Exception):
    """Raised when the collection cannot be read or written."""


class DuplicateKeyError(StoreError):
    """Raised when a write would break the unique title index."""

    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Duplicate title: {title!r}")


def generate_object_id() -> str:
    """Return a 24-character hex id: 4 bytes of seconds then 8 random bytes."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{uuid.uuid4().hex[:16]}"


def fold_title(title: str) -> str:
    return title.strip().casefold()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _serialize(document: Document) -> Document:
    data = dict(document)
    for field in DATETIME_FIELDS:
        if isinstance(data.get(field), datetime):
            data[field] = data[field].isoformat()
    return data


def _deserialize(data: Document) -> Document:
    document = dict(data)
    for field in DATETIME_FIELDS:
        if isinstance(document.get(field), str):
            document[field] = datetime.fromisoformat(document[field])
    return document


class TaskStore:
    """Thread-safe task collection with an optional JSON file behind it."""

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path else None
        self._lock = threading.RLock()
        self._documents: dict[str, Document] = {}
        self._title_index: dict[str, str] = {}

        if self.path is not None and self.path.exists():
            self._load()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    # -- reads --------------------------------------------------------------

    def find_by_id(self, task_id: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(task_id)
            return dict(document) if document is not None else None

    def find_by_title(
        self, title: str, exclude_id: Optional[str] = None
    ) -> Optional[Document]:
        """Case-insensitive exact title lookup through the unique index."""
        with self._lock:
            task_id = self._title_index.get(fold_title(title))
            if task_id is None or task_id == exclude_id:
                return None
            return dict(self._documents[task_id])

    def find(
        self,
        predicate: Optional[Predicate] = None,
        sort_field: Optional[str] = None,
        descending: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """Return matching documents, sorted and sliced.

        The sort is stable: documents with equal keys keep insertion order.
        """
        with self._lock:
            documents = [
                dict(d)
                for d in self._documents.values()
                if predicate is None or predicate(d)
            ]

        if sort_field is not None:
            documents.sort(key=lambda d: d[sort_field], reverse=descending)

        end = skip + limit if limit is not None else None
        return documents[skip:end]

    def count(self, predicate: Optional[Predicate] = None) -> int:
        with self._lock:
            if predicate is None:
                return len(self._documents)
            return sum(1 for d in self._documents.values() if predicate(d))

    # -- writes -------------------------------------------------------------

    def insert(self, document: Document) -> Document:
        """Insert a new document, assigning its id and timestamps."""
        with self._lock:
            folded = fold_title(document["title"])
            if folded in self._title_index:
                raise DuplicateKeyError(document["title"])

            now = utc_now()
            stored = dict(document)
            stored["id"] = generate_object_id()
            while stored["id"] in self._documents:
                stored["id"] = generate_object_id()
            stored["created_at"] = now
            stored["updated_at"] = now

            documents = dict(self._documents)
            documents[stored["id"]] = stored
            self._flush(documents)

            self._documents = documents
            self._title_index[folded] = stored["id"]
            return dict(stored)

    def update_one(self, task_id: str, changes: Document) -> Optional[Document]:
        """Apply ``changes`` to one document and return the new version.

        Returns None when the id is unknown.
        """
        with self._lock:
            current = self._documents.get(task_id)
            if current is None:
                return None

            old_folded = fold_title(current["title"])
            new_folded = old_folded
            if "title" in changes:
                new_folded = fold_title(changes["title"])
                owner = self._title_index.get(new_folded)
                if owner is not None and owner != task_id:
                    raise DuplicateKeyError(changes["title"])

            updated = dict(current)
            updated.update(changes)
            updated["id"] = task_id
            updated["created_at"] = current["created_at"]
            updated["updated_at"] = utc_now()

            documents = dict(self._documents)
            documents[task_id] = updated
            self._flush(documents)

            self._documents = documents
            if new_folded != old_folded:
                del self._title_index[old_folded]
                self._title_index[new_folded] = task_id
            return dict(updated)

    def delete_one(self, task_id: str) -> Optional[Document]:
        with self._lock:
            if task_id not in self._documents:
                return None
            documents = dict(self._documents)
            document = documents.pop(task_id)
            self._flush(documents)

            self._documents = documents
            self._title_index.pop(fold_title(document["title"]), None)
            return document

    def clear(self) -> None:
        with self._lock:
            self._flush({})
            self._documents = {}
            self._title_index = {}

    # -- persistence --------------------------------------------------------

    def _load(self) -> None:
        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read task store {self.path}: {e}") from e

        for data in payload.get("tasks", []):
            document = _deserialize(data)
            folded = fold_title(document["title"])
            if folded in self._title_index:
                logger.warning(
                    f"Skipping task {document['id']}: duplicate title {document['title']!r}"
                )
                continue
            self._documents[document["id"]] = document
            self._title_index[folded] = document["id"]

        logger.info(f"Loaded {len(self._documents)} tasks from {self.path}")

    def _flush(self, documents: dict[str, Document]) -> None:
        """Write ``documents`` to disk atomically.

        Callers commit the new state in memory only after this returns, so a
        failed write leaves the collection as it was.
        """
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"tasks": [_serialize(d) for d in documents.values()]}
        temp_file = self.path.with_name(f"{self.path.name}.tmp.{uuid.uuid4().hex}")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_file, self.path)
        except OSError as e:
            raise StoreError(f"Cannot write task store {self.path}: {e}") from e
        finally:
            if temp_file.exists():
                temp_file.unlink()
