"""FastAPI dependency injection for the place cache and the place store."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from loguru import logger

from places_api.core.config import Settings, get_settings
from places_api.core.database import get_session_factory
from places_api.lib.places import CacheStore, SqlAlchemyCacheStore
from places_api.services.place_service import PlaceCache, build_place_cache


def get_place_store() -> CacheStore:
    """Return the database place store.

    Needs no provider configuration, so read-only routes keep working
    while the provider is misconfigured.
    """
    return SqlAlchemyCacheStore(get_session_factory())


def get_place_cache(settings: Annotated[Settings, Depends(get_settings)]) -> PlaceCache:
    """Build the place cache for a request.

    Raises:
        HTTPException: 503 if the places provider is not configured.
    """
    try:
        return build_place_cache(settings, get_session_factory())
    except ValueError as e:
        logger.error(f"Place cache unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Places provider is not configured.",
        ) from e
