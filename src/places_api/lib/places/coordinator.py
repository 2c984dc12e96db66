"""Cache-aside coordination between the place store and a places provider.

``CacheCoordinator.fetch_or_cache`` serves a stored place while it is
fresh, refetches it from the provider once it goes stale, and falls back
to the stale copy when the provider is unavailable. Provider failures
never reach the caller; the only outcomes are a stored record, a freshly
written record, or None.
"""

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

from loguru import logger

from places_api.lib.places.base import (
    BasePlaceProvider,
    CachedRecord,
    ExternalRecord,
    PlaceProviderError,
    PlaceSource,
)
from places_api.lib.places.freshness import DEFAULT_TTL, is_fresh
from places_api.lib.places.normalize import normalize_external_record
from places_api.lib.places.store import CacheStore, CacheStoreError, DuplicateExternalIdError


class CacheOutcome(StrEnum):
    """How a lookup was satisfied."""

    HIT = "hit"
    INSERTED = "inserted"
    REFRESHED = "refreshed"
    STALE_SERVED = "stale_served"
    MISS = "miss"
    WRITE_FAILED = "write_failed"


@dataclass
class PlaceLookup:
    """A lookup result together with the path that produced it."""

    record: CachedRecord | None
    outcome: CacheOutcome

    @property
    def from_cache(self) -> bool:
        """True when the record was served from the store without a write."""
        return self.outcome in (CacheOutcome.HIT, CacheOutcome.STALE_SERVED)


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def fetch_external(provider: BasePlaceProvider, external_id: str) -> ExternalRecord | None:
    """Call the provider once, turning every failure into None.

    Args:
        provider: Places provider to query.
        external_id: Provider place id.

    Returns:
        The provider record, or None on no match or any provider failure.
    """
    try:
        return await provider.fetch(external_id)
    except PlaceProviderError as e:
        logger.warning(f"Places provider failed for {external_id}: {e}")
    except Exception:
        logger.exception(f"Unexpected places provider error for {external_id}")
    return None


class CacheCoordinator:
    """Serve places from the store, refreshing from a provider when stale.

    Args:
        store: Cache store holding the places.
        ttl: How long a provider sync is trusted.
        clock: Source of the current time (UTC).
    """

    def __init__(
        self,
        store: CacheStore,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def is_trusted(self, record: CachedRecord, now: datetime | None = None) -> bool:
        """Whether ``record`` can be served without asking the provider.

        Manually created places are always trusted; provider-sourced places
        only within the TTL. A manual place that also carries a provider id is
        never refetched, even once its last sync is older than the TTL; the
        legacy cache refreshed such places like provider-sourced ones.
        """
        if record.source == PlaceSource.MANUAL:
            return True
        return is_fresh(record.last_synced_at, self._ttl, now or self._clock())

    async def fetch_or_cache(self, external_id: str, provider: BasePlaceProvider) -> CachedRecord | None:
        """Return the place for ``external_id``, fetching it if needed.

        Args:
            external_id: Provider place id.
            provider: Provider consulted on a miss or stale hit.

        Returns:
            The cached, refreshed, or newly inserted place; the stale place
            if the provider failed; None if nothing is known about the id.
        """
        lookup = await self.resolve(external_id, provider)
        return lookup.record

    async def resolve(self, external_id: str, provider: BasePlaceProvider) -> PlaceLookup:
        """Like ``fetch_or_cache`` but also reports which path was taken."""
        existing = await self._store.find_by_external_id(external_id)

        if existing is not None and self.is_trusted(existing):
            logger.debug(f"[Cache HIT] Place {external_id} served from cache")
            return PlaceLookup(existing, CacheOutcome.HIT)

        logger.info(f"[Cache MISS] Place {external_id} needs refresh from {provider.provider_name}")
        external = await fetch_external(provider, external_id)

        if external is None:
            if existing is not None:
                logger.warning(f"[Fallback] Provider unavailable for {external_id}, serving stale cache")
                return PlaceLookup(existing, CacheOutcome.STALE_SERVED)
            logger.info(f"Place {external_id} not found in cache or provider")
            return PlaceLookup(None, CacheOutcome.MISS)

        fields = normalize_external_record(external, self._clock(), external_id=external_id)

        try:
            return await self._write_back(existing, external_id, fields)
        except CacheStoreError as e:
            logger.warning(f"Write-back failed for place {external_id}, returning unsaved data: {e}")
            return PlaceLookup(self._unsaved(existing, fields), CacheOutcome.WRITE_FAILED)

    async def _write_back(
        self,
        existing: CachedRecord | None,
        external_id: str,
        fields: dict[str, Any],
    ) -> PlaceLookup:
        if existing is not None:
            logger.info(f"[Update] Refreshing place {existing.id} from provider")
            record = await self._store.update_by_id(existing.id, fields)
            return PlaceLookup(record, CacheOutcome.REFRESHED)

        try:
            record = await self._store.insert(fields)
        except DuplicateExternalIdError:
            # A concurrent lookup inserted the place first; refresh that record instead
            winner = await self._store.find_by_external_id(external_id)
            if winner is None:
                raise
            logger.info(f"[Update] Place {external_id} inserted concurrently, refreshing {winner.id}")
            record = await self._store.update_by_id(winner.id, fields)
            return PlaceLookup(record, CacheOutcome.REFRESHED)

        logger.info(f"[Insert] Created place {record.id} from provider place {external_id}")
        return PlaceLookup(record, CacheOutcome.INSERTED)

    @staticmethod
    def _unsaved(existing: CachedRecord | None, fields: dict[str, Any]) -> CachedRecord:
        if existing is not None:
            return dataclasses.replace(existing, **fields)
        return CachedRecord(id=None, **fields)
