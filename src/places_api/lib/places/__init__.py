"""Places library — provider-backed place cache.

Public API:
    - BasePlaceProvider: Abstract provider interface
    - ExternalRecord / CachedRecord / Coordinates: Place dataclasses
    - PlaceSource: Where a stored place came from
    - PlaceProviderError: Provider transport/service failure
    - GooglePlacesProvider: Google Places Details provider
    - StaticPlaceProvider: Deterministic in-memory provider
    - classify: Provider tags → cuisine
    - is_fresh: TTL check
    - CacheStore / InMemoryCacheStore / SqlAlchemyCacheStore: Place stores
    - CacheCoordinator: Cache-aside lookup with stale fallback
    - BackgroundRefresher: Fire-and-forget refresh
    - StatsReporter: Store composition stats
    - get_provider: Provider factory/registry
    - get_configured_provider: Provider selected by settings
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from places_api.lib.places.base import (
    BasePlaceProvider,
    CachedRecord,
    Coordinates,
    ExternalRecord,
    PlaceProviderError,
    PlaceSource,
)
from places_api.lib.places.cache import SqlAlchemyCacheStore
from places_api.lib.places.coordinator import CacheCoordinator, CacheOutcome, PlaceLookup
from places_api.lib.places.freshness import DEFAULT_TTL, is_fresh
from places_api.lib.places.google_places import GooglePlacesProvider
from places_api.lib.places.refresher import BackgroundRefresher
from places_api.lib.places.static import StaticPlaceProvider
from places_api.lib.places.stats import CacheStats, StatsReporter
from places_api.lib.places.store import (
    CacheStore,
    CacheStoreError,
    DuplicateExternalIdError,
    InMemoryCacheStore,
    RecordNotFoundError,
    StoreWriteError,
)
from places_api.lib.places.taxonomy import DEFAULT_CATEGORY, classify

if TYPE_CHECKING:
    from places_api.core.config import Settings

# Provider registry — all known providers
_PROVIDERS: dict[str, type[BasePlaceProvider]] = {
    "google": GooglePlacesProvider,
    "static": StaticPlaceProvider,
}


def get_available_providers() -> list[str]:
    """Return the names of all registered places providers.

    Returns:
        Sorted list of provider name strings.
    """
    return sorted(_PROVIDERS.keys())


def get_provider(provider: str = "google", **kwargs: Any) -> BasePlaceProvider:
    """Get a provider instance by name.

    Args:
        provider: Provider name (e.g., "google").
        **kwargs: Additional arguments forwarded to the provider constructor
            (e.g., ``timeout=2.0``).

    Returns:
        An instance of the requested provider.

    Raises:
        ValueError: If the provider is not registered.
    """
    cls = _PROVIDERS.get(provider)
    if cls is None:
        msg = f"Unknown places provider: {provider!r}. Available: {list(_PROVIDERS.keys())}"
        raise ValueError(msg)
    return cls(**kwargs)


def get_configured_provider(settings: Settings) -> BasePlaceProvider:
    """Build the provider named by ``settings.places_provider``.

    Args:
        settings: Application settings.

    Returns:
        A configured provider instance.

    Raises:
        ValueError: If the provider is unknown or missing required configuration.
    """
    provider_kwargs: dict[str, dict[str, Any]] = {
        "google": {
            "api_key": settings.google_places_api_key or "",
            "timeout": settings.google_places_timeout,
            "language": settings.google_places_language,
        },
        "static": {},
    }
    name = settings.places_provider.strip().lower()
    provider = get_provider(name, **provider_kwargs.get(name, {}))
    if not provider.is_configured:
        msg = f"Places provider {name!r} is not configured (missing API key?)"
        raise ValueError(msg)
    return provider


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_TTL",
    "BackgroundRefresher",
    "BasePlaceProvider",
    "CacheCoordinator",
    "CacheOutcome",
    "CacheStats",
    "CacheStore",
    "CacheStoreError",
    "CachedRecord",
    "Coordinates",
    "DuplicateExternalIdError",
    "ExternalRecord",
    "GooglePlacesProvider",
    "InMemoryCacheStore",
    "PlaceLookup",
    "PlaceProviderError",
    "PlaceSource",
    "RecordNotFoundError",
    "SqlAlchemyCacheStore",
    "StaticPlaceProvider",
    "StatsReporter",
    "StoreWriteError",
    "classify",
    "get_available_providers",
    "get_configured_provider",
    "get_provider",
    "is_fresh",
]
