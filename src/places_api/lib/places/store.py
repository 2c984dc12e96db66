"""Cache store interface, store errors, and an in-memory implementation.

A store persists ``CachedRecord`` values keyed by external place id.
``insert`` is conditional: it refuses to create a second record for an
external id that is already stored, so callers that lose a first-write
race get ``DuplicateExternalIdError`` instead of a duplicate row.
"""

import copy
import dataclasses
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from places_api.lib.places.base import CachedRecord, PlaceSource

# Fields a caller may set; id and audit timestamps belong to the store
WRITABLE_FIELDS: frozenset[str] = frozenset(
    f.name for f in dataclasses.fields(CachedRecord) if f.name not in {"id", "created_at", "updated_at"}
)


class CacheStoreError(Exception):
    """Base class for cache store failures."""


class DuplicateExternalIdError(CacheStoreError):
    """Raised when inserting a record whose external id is already stored."""

    def __init__(self, external_id: str) -> None:
        self.external_id = external_id
        super().__init__(f"A place with external id {external_id!r} already exists")


class RecordNotFoundError(CacheStoreError):
    """Raised when updating a record id the store does not know."""

    def __init__(self, record_id: uuid.UUID) -> None:
        self.record_id = record_id
        super().__init__(f"Place {record_id} not found")


class StoreWriteError(CacheStoreError):
    """Raised when the backing storage rejects or fails a write."""


def check_fields(fields: dict[str, Any]) -> None:
    """Reject keys that are not writable ``CachedRecord`` attributes.

    Raises:
        ValueError: If any key is unknown or store-managed.
    """
    unknown = sorted(set(fields) - WRITABLE_FIELDS)
    if unknown:
        msg = f"Unknown or read-only place fields: {', '.join(unknown)}"
        raise ValueError(msg)


class CacheStore(Protocol):
    """Persistence interface for cached places."""

    async def find_by_external_id(self, external_id: str) -> CachedRecord | None:
        """Return the record stored for ``external_id``, or None."""
        ...

    async def insert(self, fields: dict[str, Any]) -> CachedRecord:
        """Create a record; the store assigns ``id`` and audit timestamps.

        Raises:
            DuplicateExternalIdError: If ``fields["external_id"]`` is already stored.
            StoreWriteError: If the write fails.
        """
        ...

    async def update_by_id(self, record_id: uuid.UUID, fields: dict[str, Any]) -> CachedRecord:
        """Apply ``fields`` to an existing record and return the updated record.

        Raises:
            RecordNotFoundError: If no record has ``record_id``.
            StoreWriteError: If the write fails.
        """
        ...

    async def list_records(self) -> list[CachedRecord]:
        """Return every stored record."""
        ...

    async def count_by_source(self) -> dict[PlaceSource, int]:
        """Return record counts grouped by source."""
        ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InMemoryCacheStore:
    """Dict-backed store for tests and local runs.

    Records are copied on the way in and out, so callers never share
    mutable state with the store.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._records: dict[uuid.UUID, CachedRecord] = {}
        self._by_external_id: dict[str, uuid.UUID] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def find_by_external_id(self, external_id: str) -> CachedRecord | None:
        record_id = self._by_external_id.get(external_id)
        if record_id is None:
            return None
        return copy.deepcopy(self._records[record_id])

    async def insert(self, fields: dict[str, Any]) -> CachedRecord:
        check_fields(fields)
        external_id = fields.get("external_id")
        if external_id is not None and external_id in self._by_external_id:
            raise DuplicateExternalIdError(external_id)

        now = self._clock()
        record = CachedRecord(id=uuid.uuid4(), created_at=now, updated_at=now, **copy.deepcopy(fields))
        self._records[record.id] = record
        if external_id is not None:
            self._by_external_id[external_id] = record.id
        return copy.deepcopy(record)

    async def update_by_id(self, record_id: uuid.UUID, fields: dict[str, Any]) -> CachedRecord:
        check_fields(fields)
        current = self._records.get(record_id)
        if current is None:
            raise RecordNotFoundError(record_id)

        new_external_id = fields.get("external_id", current.external_id)
        if new_external_id != current.external_id:
            owner = self._by_external_id.get(new_external_id) if new_external_id is not None else None
            if owner is not None and owner != record_id:
                raise DuplicateExternalIdError(new_external_id)

        updated = dataclasses.replace(current, **copy.deepcopy(fields), updated_at=self._clock())
        self._records[record_id] = updated
        if current.external_id != updated.external_id:
            if current.external_id is not None:
                self._by_external_id.pop(current.external_id, None)
            if updated.external_id is not None:
                self._by_external_id[updated.external_id] = record_id
        return copy.deepcopy(updated)

    async def list_records(self) -> list[CachedRecord]:
        return [copy.deepcopy(record) for record in self._records.values()]

    async def count_by_source(self) -> dict[PlaceSource, int]:
        counts = dict.fromkeys(PlaceSource, 0)
        for record in self._records.values():
            counts[PlaceSource(record.source)] += 1
        return counts
