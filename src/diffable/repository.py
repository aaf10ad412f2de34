"""Repository capability and an in-memory implementation.

The diff engine never looks inside records; it only needs their ids.
:class:`Repository` describes the store the application shell keeps its
records in, and :class:`InMemoryRepository` is an ordered dict-backed
version that posts change notifications.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Hashable, Iterable
from operator import attrgetter
from typing import Any, Protocol, runtime_checkable

from diffable.errors import DuplicateRecordError, RecordNotFoundError
from diffable.notifications import ChangeNotifier


@runtime_checkable
class Repository(Protocol):
    """Lookup, list, add, update and delete records by id."""

    def lookup(self, record_id: Hashable) -> Any: ...

    def list_ids(self, where: Callable[[Any], bool] | None = None) -> list[Hashable]: ...

    def add(self, record: Any) -> Hashable: ...

    def update(self, record: Any) -> Any: ...

    def delete(self, record_id: Hashable) -> bool: ...


class InMemoryRepository:
    """Insertion-ordered record store.

    Parameters
    ----------
    records:
        Initial records, kept in the given order.
    key:
        Extracts the id of a record.  Defaults to its ``id`` attribute.
    notifier:
        If given, receives ``post_collection_changed`` after add, update
        and delete, and ``post_item_changed`` after update.
    """

    def __init__(
        self,
        records: Iterable[Any] = (),
        *,
        key: Callable[[Any], Hashable] = attrgetter("id"),
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self._key = key
        self._notifier = notifier
        self._lock = threading.RLock()
        self._records: dict[Hashable, Any] = {}
        for record in records:
            self._insert(record)

    def lookup(self, record_id: Hashable) -> Any:
        """Return the record stored under *record_id*.

        Raises
        ------
        RecordNotFoundError
            If nothing is stored under that id.
        """
        with self._lock:
            try:
                return self._records[record_id]
            except KeyError as exc:
                raise RecordNotFoundError(
                    message=f"no record with id {record_id!r}",
                    context={"record_id": record_id},
                    cause=exc,
                ) from exc

    def list_ids(self, where: Callable[[Any], bool] | None = None) -> list[Hashable]:
        """Return record ids in insertion order, optionally filtered."""
        with self._lock:
            return [
                record_id
                for record_id, record in self._records.items()
                if where is None or where(record)
            ]

    def records(self) -> list[Any]:
        with self._lock:
            return list(self._records.values())

    def add(self, record: Any) -> Hashable:
        """Store a new record at the end and return its id.

        Raises
        ------
        DuplicateRecordError
            If a record with the same id already exists.
        """
        with self._lock:
            record_id = self._insert(record)
        if self._notifier is not None:
            self._notifier.post_collection_changed()
        return record_id

    def update(self, record: Any) -> Any:
        """Replace the stored record with the same id, keeping its position.

        Raises
        ------
        RecordNotFoundError
            If no record with that id exists.
        """
        record_id = self._key(record)
        with self._lock:
            if record_id not in self._records:
                raise RecordNotFoundError(
                    message=f"cannot update unknown record {record_id!r}",
                    context={"record_id": record_id},
                )
            self._records[record_id] = record
        if self._notifier is not None:
            # Membership of filtered lists may depend on the record.
            self._notifier.post_collection_changed()
            self._notifier.post_item_changed(record_id)
        return record

    def delete(self, record_id: Hashable) -> bool:
        """Remove a record.  Returns ``False`` if it was not stored."""
        with self._lock:
            if record_id not in self._records:
                return False
            del self._records[record_id]
        if self._notifier is not None:
            self._notifier.post_collection_changed()
        return True

    def _insert(self, record: Any) -> Hashable:
        record_id = self._key(record)
        if record_id in self._records:
            raise DuplicateRecordError(
                message=f"a record with id {record_id!r} already exists",
                context={"record_id": record_id},
            )
        self._records[record_id] = record
        return record_id
