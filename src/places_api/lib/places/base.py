"""Core place types and the abstract provider interface."""

import math
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class PlaceSource(StrEnum):
    """Where a stored place came from."""

    MANUAL = "manual"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            msg = f"coordinates must be finite, got ({self.lat}, {self.lng})"
            raise ValueError(msg)
        if not (-90 <= self.lat <= 90):
            msg = f"latitude must be between -90 and 90, got {self.lat}"
            raise ValueError(msg)
        if not (-180 <= self.lng <= 180):
            msg = f"longitude must be between -180 and 180, got {self.lng}"
            raise ValueError(msg)

    def to_legacy_dict(self) -> dict[str, float]:
        """Serialize in the dual shape older readers expect."""
        return {
            "lat": self.lat,
            "lng": self.lng,
            "latitude": self.lat,
            "longitude": self.lng,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Coordinates | None":
        """Read either ``lat``/``lng`` or ``latitude``/``longitude``.

        Returns:
            Coordinates, or None when either component is missing.
        """
        if not data:
            return None
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("longitude"))
        if lat is None or lng is None:
            return None
        return cls(lat=float(lat), lng=float(lng))


@dataclass
class ExternalRecord:
    """A place as returned by an external provider, before normalization."""

    external_id: str
    name: str
    formatted_address: str = ""
    phone: str | None = None
    category_tags: list[str] = field(default_factory=list)
    coordinates: Coordinates | None = None
    photo_references: list[str] = field(default_factory=list)
    website: str | None = None
    price_level: int | None = None
    rating: float | None = None
    hours: dict[str, str] | None = None
    raw_response: dict | None = None


@dataclass
class CachedRecord:
    """A stored place.

    ``id`` is None only for data that was fetched but could not be persisted.
    """

    id: uuid.UUID | None
    name: str
    category: str
    source: PlaceSource
    external_id: str | None = None
    address: str = ""
    phone: str = ""
    category_set: list[str] = field(default_factory=list)
    coordinates: Coordinates | None = None
    last_synced_at: datetime | None = None
    photo_reference: str | None = None
    photo_references: list[str] = field(default_factory=list)
    website: str | None = None
    price_level: int | None = None
    rating: float | None = None
    hours: dict[str, str] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PlaceProviderError(Exception):
    """Raised when a places provider experiences a transport or service error.

    Distinguishes provider failures (timeout, HTTP error, connection error)
    from a successful response with no such place (which returns None).

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: Optional HTTP status code from the provider.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BasePlaceProvider(ABC):
    """Abstract places provider. All providers must implement this."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider."""

    @property
    def requires_api_key(self) -> bool:
        """Whether this provider requires an API key to function."""
        return False

    @property
    def is_configured(self) -> bool:
        """Whether this provider has all required configuration (e.g., API keys)."""
        return True

    @abstractmethod
    async def fetch(self, external_id: str) -> ExternalRecord | None:
        """Fetch a single place by its provider id.

        Args:
            external_id: Provider-assigned place identifier.

        Returns:
            ExternalRecord, or None if the provider has no such place.

        Raises:
            PlaceProviderError: On transport or service errors.
        """
