"""Pydantic v2 schemas for place lookups, refreshes, and cache stats."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from places_api.lib.places import CachedRecord, CacheOutcome, CacheStats, Coordinates, PlaceLookup, PlaceSource


class CoordinatesResponse(BaseModel):
    """Coordinates in both the short and long key forms."""

    lat: float
    lng: float
    latitude: float
    longitude: float

    @classmethod
    def from_coordinates(cls, coordinates: Coordinates) -> "CoordinatesResponse":
        return cls(**coordinates.to_legacy_dict())


class PlaceResponse(BaseModel):
    """Response schema for a stored place."""

    id: uuid.UUID | None = Field(description="Store id; null when the place could not be persisted")
    external_id: str | None = None
    name: str
    address: str
    phone: str
    category: str
    category_set: list[str]
    coordinates: CoordinatesResponse | None = None
    source: PlaceSource
    last_synced_at: datetime | None = None
    photo_reference: str | None = None
    photo_references: list[str] = []
    website: str | None = None
    price_level: int | None = None
    rating: float | None = None
    hours: dict[str, str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_record(cls, record: CachedRecord) -> "PlaceResponse":
        return cls(
            id=record.id,
            external_id=record.external_id,
            name=record.name,
            address=record.address,
            phone=record.phone,
            category=record.category,
            category_set=list(record.category_set),
            coordinates=CoordinatesResponse.from_coordinates(record.coordinates) if record.coordinates else None,
            source=record.source,
            last_synced_at=record.last_synced_at,
            photo_reference=record.photo_reference,
            photo_references=list(record.photo_references),
            website=record.website,
            price_level=record.price_level,
            rating=record.rating,
            hours=record.hours,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class CacheMetadata(BaseModel):
    """How a lookup was served."""

    outcome: CacheOutcome
    cached: bool = Field(description="True when served from the store without a provider write")
    provider: str


class PlaceLookupResponse(BaseModel):
    """Response for a single place lookup."""

    place: PlaceResponse
    metadata: CacheMetadata

    @classmethod
    def from_lookup(cls, lookup: PlaceLookup, provider: str) -> "PlaceLookupResponse":
        if lookup.record is None:
            msg = "Cannot build a lookup response without a place"
            raise ValueError(msg)
        return cls(
            place=PlaceResponse.from_record(lookup.record),
            metadata=CacheMetadata(outcome=lookup.outcome, cached=lookup.from_cache, provider=provider),
        )


class RefreshRequest(BaseModel):
    """Request to refresh stored places in the background."""

    external_ids: list[str] = Field(..., min_length=1, max_length=100)


class RefreshResponse(BaseModel):
    """Refreshes scheduled for a RefreshRequest."""

    scheduled: int
    job_ids: list[str]
    skipped: list[str] = Field(description="Ids that are unknown, manual, or still fresh")


class CacheStatsResponse(BaseModel):
    """Place store composition."""

    total: int
    external_sourced: int
    manual_sourced: int
    hit_rate_estimate: float = Field(
        description="Share of provider-sourced places in the store (not a request hit ratio)",
    )

    @classmethod
    def from_stats(cls, stats: CacheStats) -> "CacheStatsResponse":
        return cls(
            total=stats.total,
            external_sourced=stats.external_sourced,
            manual_sourced=stats.manual_sourced,
            hit_rate_estimate=stats.hit_rate_estimate,
        )
