"""Place API endpoints — cached lookup, background refresh, and cache stats."""

from fastapi import APIRouter, Depends, HTTPException, Path, status

from places_api.core.dependencies import get_place_cache, get_place_store
from places_api.lib.places import CacheStore
from places_api.schemas.place import CacheStatsResponse, PlaceLookupResponse, RefreshRequest, RefreshResponse
from places_api.services.place_service import PlaceCache, get_cache_stats, lookup_place, refresh_places

places_router = APIRouter(prefix="/places", tags=["places"])


@places_router.get(
    "/cache/stats",
    response_model=CacheStatsResponse,
)
async def cache_stats(
    store: CacheStore = Depends(get_place_store),  # noqa: B008
) -> CacheStatsResponse:
    """Report how the place store is populated."""
    return await get_cache_stats(store)


@places_router.post(
    "/refresh",
    response_model=RefreshResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def refresh(
    request: RefreshRequest,
    cache: PlaceCache = Depends(get_place_cache),  # noqa: B008
) -> RefreshResponse:
    """Refresh stale places in the background without waiting for the provider."""
    return await refresh_places(cache, request.external_ids)


@places_router.get(
    "/{external_id}",
    response_model=PlaceLookupResponse,
)
async def get_place(
    external_id: str = Path(  # noqa: B008
        ...,
        min_length=1,
        max_length=255,
        description="Provider place id",
    ),
    cache: PlaceCache = Depends(get_place_cache),  # noqa: B008
) -> PlaceLookupResponse:
    """Look up a place by provider id, fetching it from the provider when stale or unknown."""
    stripped = external_id.strip()
    if not stripped:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Place id must not be empty or whitespace-only.",
        )

    result = await lookup_place(cache, stripped)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Place not found in the cache or at the provider.",
        )
    return result
