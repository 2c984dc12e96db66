"""Fire-and-forget refresh of stale places."""

import uuid
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

from loguru import logger

from places_api.core.background import BackgroundTaskRunner
from places_api.lib.places.base import BasePlaceProvider, CachedRecord, PlaceSource
from places_api.lib.places.coordinator import fetch_external
from places_api.lib.places.freshness import DEFAULT_TTL, is_fresh
from places_api.lib.places.normalize import normalize_external_record
from places_api.lib.places.store import CacheStore


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BackgroundRefresher:
    """Refresh stored places from the provider without blocking the caller.

    Each refresh is one provider attempt followed by one write-back. A
    failed attempt is logged and dropped: no retry, no backoff.

    Args:
        store: Cache store to write refreshed places into.
        runner: Task runner the refreshes are submitted to.
        ttl: Trust window used by ``refresh_stale``.
        clock: Source of the current time (UTC).
    """

    def __init__(
        self,
        store: CacheStore,
        runner: BackgroundTaskRunner,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._runner = runner
        self._ttl = ttl
        self._clock = clock

    def refresh(self, record_id: uuid.UUID, external_id: str, provider: BasePlaceProvider) -> str:
        """Schedule a refresh and return its job id immediately."""
        job_id = self._runner.submit_task(self._refresh(record_id, external_id, provider))
        logger.debug(f"[Background Refresh] Scheduled place {record_id} as job {job_id}")
        return job_id

    def refresh_stale(
        self,
        records: Iterable[CachedRecord],
        provider: BasePlaceProvider,
        now: datetime | None = None,
    ) -> list[str]:
        """Schedule a refresh for every provider-sourced record past its TTL.

        Args:
            records: Places already loaded by the caller.
            provider: Provider to refresh from.
            now: Reference time; defaults to the clock.

        Returns:
            Job ids of the scheduled refreshes.
        """
        reference = now or self._clock()
        job_ids: list[str] = []
        for record in records:
            if record.id is None or not record.external_id or record.source != PlaceSource.EXTERNAL:
                continue
            if is_fresh(record.last_synced_at, self._ttl, reference):
                continue
            job_ids.append(self.refresh(record.id, record.external_id, provider))
        return job_ids

    async def _refresh(self, record_id: uuid.UUID, external_id: str, provider: BasePlaceProvider) -> None:
        try:
            external = await fetch_external(provider, external_id)
            if external is None:
                logger.info(f"[Background Refresh] No provider data for {external_id}, keeping place {record_id}")
                return

            fields = normalize_external_record(external, self._clock(), external_id=external_id)
            await self._store.update_by_id(record_id, fields)
            logger.info(f"[Background Refresh] Updated place {record_id}")
        except Exception as e:
            logger.error(f"Background refresh failed for place {record_id}: {e}")
