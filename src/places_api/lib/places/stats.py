"""Read-only aggregate over the place store."""

from dataclasses import dataclass

from places_api.lib.places.base import PlaceSource
from places_api.lib.places.store import CacheStore


@dataclass(frozen=True)
class CacheStats:
    """Store composition counts.

    ``hit_rate_estimate`` is the share of provider-sourced places in the
    store. It is not a request-level hit/miss ratio.
    """

    total: int
    external_sourced: int
    manual_sourced: int
    hit_rate_estimate: float


class StatsReporter:
    """Summarize how the place store is populated."""

    def __init__(self, store: CacheStore) -> None:
        self._store = store

    async def snapshot(self) -> CacheStats:
        counts = await self._store.count_by_source()
        external = counts.get(PlaceSource.EXTERNAL, 0)
        manual = counts.get(PlaceSource.MANUAL, 0)
        total = sum(counts.values())
        return CacheStats(
            total=total,
            external_sourced=external,
            manual_sourced=manual,
            hit_rate_estimate=external / total if total else 0.0,
        )
