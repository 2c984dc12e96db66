"""Place service — wires the place cache together and serves lookups, refreshes, and stats."""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from places_api.core.background import BackgroundTaskRunner, task_runner
from places_api.core.config import Settings
from places_api.lib.places import (
    BackgroundRefresher,
    BasePlaceProvider,
    CacheCoordinator,
    CacheOutcome,
    CacheStore,
    SqlAlchemyCacheStore,
    StatsReporter,
    get_configured_provider,
)
from places_api.schemas.place import CacheStatsResponse, PlaceLookupResponse, RefreshResponse


@dataclass
class PlaceCache:
    """The place cache components sharing one store and provider."""

    store: CacheStore
    provider: BasePlaceProvider
    coordinator: CacheCoordinator
    refresher: BackgroundRefresher


def create_place_cache(
    store: CacheStore,
    provider: BasePlaceProvider,
    settings: Settings,
    *,
    runner: BackgroundTaskRunner = task_runner,
) -> PlaceCache:
    """Assemble the place cache around an existing store and provider.

    Args:
        store: Place store.
        provider: Provider used for misses and refreshes.
        settings: Application settings (cache TTL).
        runner: Task runner for background refreshes.

    Returns:
        The assembled PlaceCache.
    """
    ttl = settings.places_cache_ttl
    return PlaceCache(
        store=store,
        provider=provider,
        coordinator=CacheCoordinator(store, ttl=ttl),
        refresher=BackgroundRefresher(store, runner, ttl=ttl),
    )


def build_place_cache(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    provider: BasePlaceProvider | None = None,
    runner: BackgroundTaskRunner = task_runner,
) -> PlaceCache:
    """Build the database-backed place cache from settings.

    Args:
        settings: Application settings.
        session_factory: Session factory for the place store.
        provider: Provider override; defaults to the configured provider.
        runner: Task runner for background refreshes.

    Returns:
        The assembled PlaceCache.

    Raises:
        ValueError: If the configured provider is unknown or unconfigured.
    """
    return create_place_cache(
        SqlAlchemyCacheStore(session_factory),
        provider or get_configured_provider(settings),
        settings,
        runner=runner,
    )


async def lookup_place(cache: PlaceCache, external_id: str) -> PlaceLookupResponse | None:
    """Look up a place by provider id, populating the cache as needed.

    Args:
        cache: Place cache.
        external_id: Provider place id.

    Returns:
        PlaceLookupResponse, or None when neither the store nor the provider knows the id.
    """
    lookup = await cache.coordinator.resolve(external_id, cache.provider)
    if lookup.outcome == CacheOutcome.MISS:
        return None
    return PlaceLookupResponse.from_lookup(lookup, cache.provider.provider_name)


async def refresh_places(cache: PlaceCache, external_ids: list[str]) -> RefreshResponse:
    """Schedule background refreshes for the stale places among ``external_ids``.

    Unknown ids, manual places, and places still within the TTL are skipped.

    Args:
        cache: Place cache.
        external_ids: Provider place ids to consider.

    Returns:
        RefreshResponse listing scheduled job ids and skipped ids.
    """
    job_ids: list[str] = []
    skipped: list[str] = []
    for external_id in dict.fromkeys(external_ids):
        record = await cache.store.find_by_external_id(external_id)
        if record is None or record.id is None or cache.coordinator.is_trusted(record):
            skipped.append(external_id)
            continue
        job_ids.append(cache.refresher.refresh(record.id, external_id, cache.provider))

    logger.info(f"Scheduled {len(job_ids)} place refreshes, skipped {len(skipped)}")
    return RefreshResponse(scheduled=len(job_ids), job_ids=job_ids, skipped=skipped)


async def refresh_all_stale(cache: PlaceCache) -> list[str]:
    """Schedule a refresh for every stale provider-sourced place in the store.

    Returns:
        Job ids of the scheduled refreshes.
    """
    records = await cache.store.list_records()
    job_ids = cache.refresher.refresh_stale(records, cache.provider)
    logger.info(f"Scheduled {len(job_ids)} stale place refreshes out of {len(records)} places")
    return job_ids


async def get_cache_stats(store: CacheStore) -> CacheStatsResponse:
    """Return place store composition stats.

    Takes the store rather than a PlaceCache so stats never depend on the provider.
    """
    stats = await StatsReporter(store).snapshot()
    return CacheStatsResponse.from_stats(stats)
