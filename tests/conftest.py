"""Shared test fixtures for settings, clocks, place stores, and providers."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from places_api.core.config import Settings
from places_api.lib.places import (
    Coordinates,
    ExternalRecord,
    InMemoryCacheStore,
    SqlAlchemyCacheStore,
    StaticPlaceProvider,
)
from places_api.models import Place  # noqa: F401
from places_api.models.base import Base

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=UTC)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def make_external(external_id: str = "ChIJ-osteria", **overrides) -> ExternalRecord:
    """Create an ExternalRecord for an Italian restaurant."""
    defaults = {
        "external_id": external_id,
        "name": "Osteria Nonna",
        "formatted_address": "12 Main St, Sarasota, FL 34236",
        "phone": "(941) 555-0101",
        "category_tags": ["italian_restaurant", "point_of_interest"],
        "coordinates": Coordinates(lat=27.3364, lng=-82.5307),
        "photo_references": ["photo-1", "photo-2"],
    }
    defaults.update(overrides)
    return ExternalRecord(**defaults)


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        database_url="sqlite+aiosqlite:///:memory:",
        places_provider="static",
        places_cache_ttl_days=7,
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at NOW until advanced."""
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryCacheStore:
    """Empty in-memory place store on the fake clock."""
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def static_provider() -> StaticPlaceProvider:
    """Provider that knows one Italian restaurant."""
    return StaticPlaceProvider([make_external()])


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
def sql_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlAlchemyCacheStore:
    """Database-backed place store over the in-memory engine."""
    return SqlAlchemyCacheStore(session_factory)


@pytest.fixture
def external_factory():
    """Factory for provider records (see ``make_external``)."""
    return make_external
