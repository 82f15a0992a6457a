"""In-memory tables that back the repositories."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

T = TypeVar("T")

Predicate = Callable[[Any], bool]

_EMPTY_IDS = (None, 0, "")


class RecordNotFound(LookupError):
    """Raised when no record matches a lookup."""


def _is_empty_id(value: Any) -> bool:
    return any(value is empty or value == empty for empty in _EMPTY_IDS if empty is not None) or value is None


class Table(Generic[T]):
    """A thread-safe table of records keyed by their ``id`` attribute.

    Records without an id get the next free integer id on insertion.
    Records keep their insertion order.
    """

    def __init__(self) -> None:
        self._rows: dict[Any, T] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def __iter__(self) -> Iterator[T]:
        with self._lock:
            return iter(list(self._rows.values()))

    def _reserve_id(self, record: T) -> Any:
        record_id = getattr(record, "id", None)
        if _is_empty_id(record_id):
            while self._next_id in self._rows:
                self._next_id += 1
            record_id = self._next_id
            self._next_id += 1
            setattr(record, "id", record_id)
        elif isinstance(record_id, int) and record_id >= self._next_id:
            self._next_id = record_id + 1
        return record_id

    def insert(self, record: T) -> T:
        """Add a new record; raise ValueError if its id is already taken."""
        with self._lock:
            record_id = getattr(record, "id", None)
            if not _is_empty_id(record_id) and record_id in self._rows:
                raise ValueError(f"duplicate primary key {record_id!r}")
            record_id = self._reserve_id(record)
            self._rows[record_id] = record
            return record

    def save(self, record: T) -> T:
        """Insert the record, or replace the stored one with the same id."""
        with self._lock:
            record_id = self._reserve_id(record)
            self._rows[record_id] = record
            return record

    def get(self, record_id: Any) -> T:
        with self._lock:
            try:
                return self._rows[record_id]
            except KeyError:
                raise RecordNotFound(f"record {record_id!r} not found") from None

    def select(self, predicate: Predicate | None = None) -> list[T]:
        with self._lock:
            return [row for row in self._rows.values() if predicate is None or predicate(row)]

    def first(self, predicate: Predicate | None = None) -> T:
        with self._lock:
            for row in self._rows.values():
                if predicate is None or predicate(row):
                    return row
        raise RecordNotFound("record not found")

    def count(self, predicate: Predicate | None = None) -> int:
        return len(self.select(predicate))

    def delete(self, record_id: Any) -> bool:
        """Remove a record by id; return whether one was removed."""
        with self._lock:
            return self._rows.pop(record_id, None) is not None

    def delete_where(self, predicate: Predicate) -> int:
        """Remove every matching record; return how many were removed."""
        with self._lock:
            doomed = [key for key, row in self._rows.items() if predicate(row)]
            for key in doomed:
                del self._rows[key]
            return len(doomed)