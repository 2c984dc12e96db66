"""Unit tests for cache-aside place lookups."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

from places_api.lib.places.base import BasePlaceProvider, ExternalRecord, PlaceSource
from places_api.lib.places.coordinator import CacheCoordinator, CacheOutcome, PlaceLookup, fetch_external
from places_api.lib.places.static import StaticPlaceProvider
from places_api.lib.places.store import InMemoryCacheStore, StoreWriteError

PLACE_ID = "ChIJ-osteria"


class ExplodingProvider(BasePlaceProvider):
    """Provider that fails with a non-provider exception."""

    def __init__(self) -> None:
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "exploding"

    async def fetch(self, external_id: str) -> ExternalRecord | None:
        self.calls += 1
        raise RuntimeError("boom")


class GatedProvider(BasePlaceProvider):
    """Holds every fetch until ``expected`` callers are waiting, then releases them together."""

    def __init__(self, record: ExternalRecord, expected: int) -> None:
        self._record = record
        self._expected = expected
        self._waiting = 0
        self._gate = asyncio.Event()

    @property
    def provider_name(self) -> str:
        return "gated"

    async def fetch(self, external_id: str) -> ExternalRecord | None:
        self._waiting += 1
        if self._waiting >= self._expected:
            self._gate.set()
        await self._gate.wait()
        return self._record


def _coordinator(store: InMemoryCacheStore, clock) -> CacheCoordinator:
    return CacheCoordinator(store, ttl=timedelta(days=7), clock=clock)


class TestColdMiss:
    """Lookups for ids the store has never seen."""

    async def test_inserts_provider_record(self, memory_store, clock, static_provider) -> None:
        lookup = await _coordinator(memory_store, clock).resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.INSERTED
        assert lookup.record is not None
        assert lookup.record.id is not None
        assert lookup.record.name == "Osteria Nonna"
        assert lookup.record.category == "italian"
        assert lookup.record.source == PlaceSource.EXTERNAL
        assert lookup.record.last_synced_at == clock.now
        assert len(memory_store) == 1

    async def test_provider_failure_returns_none(self, memory_store, clock, external_factory) -> None:
        provider = StaticPlaceProvider([external_factory()], failing_ids=[PLACE_ID])
        result = await _coordinator(memory_store, clock).fetch_or_cache(PLACE_ID, provider)

        assert result is None
        assert len(memory_store) == 0

    async def test_unknown_place_is_a_miss(self, memory_store, clock, static_provider) -> None:
        lookup = await _coordinator(memory_store, clock).resolve("ChIJ-nope", static_provider)

        assert lookup.outcome == CacheOutcome.MISS
        assert lookup.record is None

    async def test_unexpected_provider_error_returns_none(self, memory_store, clock) -> None:
        provider = ExplodingProvider()
        assert await _coordinator(memory_store, clock).fetch_or_cache(PLACE_ID, provider) is None
        assert provider.calls == 1

    async def test_record_is_keyed_by_requested_id(self, memory_store, clock, external_factory) -> None:
        provider = StaticPlaceProvider()
        # Provider answers an alias with its canonical id
        canonical = AsyncMock(return_value=external_factory("ChIJ-canonical"))

        with patch.object(provider, "fetch", canonical):
            lookup = await _coordinator(memory_store, clock).resolve("ChIJ-alias", provider)

        assert lookup.record is not None
        assert lookup.record.external_id == "ChIJ-alias"
        assert await memory_store.find_by_external_id("ChIJ-alias") is not None


class TestCacheHit:
    """Lookups served from the store."""

    async def test_second_lookup_skips_provider(self, memory_store, clock, static_provider, external_factory) -> None:
        coordinator = _coordinator(memory_store, clock)
        first = await coordinator.fetch_or_cache(PLACE_ID, static_provider)

        failing = StaticPlaceProvider([external_factory()], failing_ids=[PLACE_ID])
        second = await coordinator.resolve(PLACE_ID, failing)

        assert second.outcome == CacheOutcome.HIT
        assert second.from_cache is True
        assert second.record == first
        assert failing.calls == []

    async def test_sequential_lookups_leave_one_record(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        await coordinator.fetch_or_cache(PLACE_ID, static_provider)

        assert len(memory_store) == 1
        assert static_provider.calls == [PLACE_ID]

    async def test_just_inside_ttl_is_a_hit(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        clock.advance(timedelta(days=6, hours=23))

        lookup = await coordinator.resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.HIT
        assert static_provider.calls == [PLACE_ID]

    async def test_manual_record_is_always_trusted(self, memory_store, clock, static_provider) -> None:
        await memory_store.insert(
            {
                "external_id": PLACE_ID,
                "name": "Nonna's (hand-entered)",
                "category": "italian",
                "source": PlaceSource.MANUAL,
            }
        )
        clock.advance(timedelta(days=365))

        lookup = await _coordinator(memory_store, clock).resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.HIT
        assert lookup.record is not None
        assert lookup.record.name == "Nonna's (hand-entered)"
        assert static_provider.calls == []

    async def test_manual_record_past_ttl_is_not_refetched(self, memory_store, clock, static_provider) -> None:
        await memory_store.insert(
            {
                "external_id": PLACE_ID,
                "name": "Nonna's (hand-entered)",
                "category": "italian",
                "source": PlaceSource.MANUAL,
                "last_synced_at": clock() - timedelta(days=30),
            }
        )

        lookup = await _coordinator(memory_store, clock).resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.HIT
        assert lookup.record is not None
        assert lookup.record.name == "Nonna's (hand-entered)"
        assert static_provider.calls == []


class TestStaleRecord:
    """Lookups for records past their TTL."""

    async def test_refreshes_once_and_updates_sync_time(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        original = await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        assert original is not None
        clock.advance(timedelta(days=8))

        lookup = await coordinator.resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.REFRESHED
        assert lookup.record is not None
        assert lookup.record.id == original.id
        assert lookup.record.last_synced_at == clock.now
        assert static_provider.calls == [PLACE_ID, PLACE_ID]
        assert len(memory_store) == 1

    async def test_refresh_picks_up_provider_changes(
        self, memory_store, clock, static_provider, external_factory
    ) -> None:
        coordinator = _coordinator(memory_store, clock)
        await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        clock.advance(timedelta(days=8))
        static_provider.add(external_factory(name="Osteria Nonna Rosa", category_tags=["pizza_restaurant"]))

        refreshed = await coordinator.fetch_or_cache(PLACE_ID, static_provider)

        assert refreshed is not None
        assert refreshed.name == "Osteria Nonna Rosa"
        assert refreshed.category == "pizza"
        assert refreshed.category_set == ["pizza"]

    async def test_provider_failure_serves_stale_record(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        original = await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        clock.advance(timedelta(days=8))
        static_provider.fail(PLACE_ID)

        lookup = await coordinator.resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.STALE_SERVED
        assert lookup.from_cache is True
        assert lookup.record == original

    async def test_provider_returning_nothing_serves_stale_record(
        self, memory_store, clock, static_provider
    ) -> None:
        coordinator = _coordinator(memory_store, clock)
        original = await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        clock.advance(timedelta(days=8))

        lookup = await coordinator.resolve(PLACE_ID, StaticPlaceProvider())

        assert lookup.outcome == CacheOutcome.STALE_SERVED
        assert lookup.record == original

    async def test_record_without_sync_time_is_refreshed(self, memory_store, clock, static_provider) -> None:
        record = await memory_store.insert(
            {"external_id": PLACE_ID, "name": "Old", "category": "american", "source": PlaceSource.EXTERNAL}
        )

        lookup = await _coordinator(memory_store, clock).resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.REFRESHED
        assert lookup.record is not None
        assert lookup.record.id == record.id
        assert lookup.record.name == "Osteria Nonna"


class TestWriteFailures:
    """Write-back failures return unsaved provider data."""

    async def test_failed_insert_returns_unsaved_record(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        with patch.object(memory_store, "insert", AsyncMock(side_effect=StoreWriteError("disk full"))):
            lookup = await coordinator.resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.WRITE_FAILED
        assert lookup.record is not None
        assert lookup.record.id is None
        assert lookup.record.name == "Osteria Nonna"
        assert lookup.record.last_synced_at == clock.now
        assert len(memory_store) == 0

    async def test_failed_update_keeps_existing_id(self, memory_store, clock, static_provider) -> None:
        coordinator = _coordinator(memory_store, clock)
        original = await coordinator.fetch_or_cache(PLACE_ID, static_provider)
        assert original is not None
        clock.advance(timedelta(days=8))

        with patch.object(memory_store, "update_by_id", AsyncMock(side_effect=StoreWriteError("locked"))):
            lookup = await coordinator.resolve(PLACE_ID, static_provider)

        assert lookup.outcome == CacheOutcome.WRITE_FAILED
        assert lookup.record is not None
        assert lookup.record.id == original.id
        assert lookup.record.last_synced_at == clock.now

        stored = await memory_store.find_by_external_id(PLACE_ID)
        assert stored is not None
        assert stored.last_synced_at == original.last_synced_at


class TestConcurrentColdMiss:
    """Concurrent first lookups for the same id."""

    async def test_leaves_exactly_one_record(self, memory_store, clock, external_factory) -> None:
        coordinator = _coordinator(memory_store, clock)
        provider = GatedProvider(external_factory(), expected=2)

        first, second = await asyncio.gather(
            coordinator.resolve(PLACE_ID, provider),
            coordinator.resolve(PLACE_ID, provider),
        )

        assert len(memory_store) == 1
        assert {first.outcome, second.outcome} == {CacheOutcome.INSERTED, CacheOutcome.REFRESHED}
        assert first.record is not None
        assert second.record is not None
        assert first.record.id == second.record.id

    async def test_many_concurrent_lookups(self, memory_store, clock, external_factory) -> None:
        coordinator = _coordinator(memory_store, clock)
        provider = GatedProvider(external_factory(), expected=5)

        results = await asyncio.gather(*(coordinator.resolve(PLACE_ID, provider) for _ in range(5)))

        assert len(memory_store) == 1
        assert len({lookup.record.id for lookup in results if lookup.record}) == 1


class TestHelpers:
    """Tests for fetch_external, is_trusted and PlaceLookup."""

    async def test_fetch_external_swallows_provider_errors(self, external_factory) -> None:
        provider = StaticPlaceProvider([external_factory()], failing_ids=[PLACE_ID])
        assert await fetch_external(provider, PLACE_ID) is None

    async def test_fetch_external_passes_records_through(self, static_provider) -> None:
        record = await fetch_external(static_provider, PLACE_ID)
        assert record is not None
        assert record.external_id == PLACE_ID

    async def test_is_trusted_uses_ttl(self, memory_store, clock) -> None:
        record = await memory_store.insert(
            {
                "external_id": PLACE_ID,
                "name": "x",
                "category": "thai",
                "source": PlaceSource.EXTERNAL,
                "last_synced_at": clock.now - timedelta(days=8),
            }
        )
        coordinator = _coordinator(memory_store, clock)
        assert coordinator.is_trusted(record) is False
        assert coordinator.is_trusted(record, now=clock.now - timedelta(days=2)) is True
        assert coordinator.ttl == timedelta(days=7)

    def test_lookup_from_cache_flag(self) -> None:
        assert PlaceLookup(None, CacheOutcome.MISS).from_cache is False
        assert PlaceLookup(None, CacheOutcome.INSERTED).from_cache is False
