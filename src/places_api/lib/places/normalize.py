"""Turn provider records into the field set written back to the cache store."""

from datetime import datetime
from typing import Any

from places_api.lib.places.base import ExternalRecord, PlaceSource
from places_api.lib.places.taxonomy import classify


def normalize_external_record(
    external: ExternalRecord,
    synced_at: datetime,
    *,
    external_id: str | None = None,
) -> dict[str, Any]:
    """Build cache-store fields from a provider record.

    Args:
        external: Record returned by the provider.
        synced_at: Timestamp to store as ``last_synced_at``.
        external_id: Key the record is cached under; defaults to the
            provider's own id for the place.

    Returns:
        Writable CachedRecord fields, stamped as provider-sourced.
    """
    category = classify(external.category_tags)
    return {
        "external_id": external_id or external.external_id,
        "name": external.name,
        "address": external.formatted_address or "",
        "phone": external.phone or "",
        "category": category,
        "category_set": [category],
        "coordinates": external.coordinates,
        "photo_reference": external.photo_references[0] if external.photo_references else None,
        "photo_references": list(external.photo_references),
        "website": external.website,
        "price_level": external.price_level,
        "rating": external.rating,
        "hours": dict(external.hours) if external.hours else None,
        "source": PlaceSource.EXTERNAL,
        "last_synced_at": synced_at,
    }
