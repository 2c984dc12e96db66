"""Google Places Details API provider.

Uses the Place Details endpoint
(https://developers.google.com/maps/documentation/places/web-service/details)
to resolve a place id into name, address, types, location and photos.
Requires an API key.
"""

import httpx
from loguru import logger

from places_api.lib.places.base import (
    BasePlaceProvider,
    Coordinates,
    ExternalRecord,
    PlaceProviderError,
)

GOOGLE_PLACE_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
DEFAULT_TIMEOUT = 10.0
MAX_PHOTOS = 6

DETAIL_FIELDS = (
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "geometry",
    "types",
    "photos",
    "opening_hours",
    "website",
    "price_level",
    "rating",
)

_NOT_FOUND_STATUSES = frozenset({"NOT_FOUND", "ZERO_RESULTS"})
_ERROR_STATUSES = frozenset({"REQUEST_DENIED", "OVER_QUERY_LIMIT", "INVALID_REQUEST", "UNKNOWN_ERROR"})


def parse_weekday_text(weekday_text: list[str] | None) -> dict[str, str] | None:
    """Turn ``["Monday: 9:00 AM – 5:00 PM", ...]`` into ``{"Monday": "9:00 AM – 5:00 PM"}``."""
    if not weekday_text:
        return None
    hours: dict[str, str] = {}
    for line in weekday_text:
        day, _, rest = line.partition(":")
        if not day.strip():
            continue
        hours[day.strip()] = rest.strip()
    return hours or None


class GooglePlacesProvider(BasePlaceProvider):
    """Google Places provider."""

    def __init__(
        self,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        language: str = "en",
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._language = language

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def requires_api_key(self) -> bool:
        return True

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def fetch(self, external_id: str) -> ExternalRecord | None:
        """Fetch place details from Google Places.

        Args:
            external_id: Google place id.

        Returns:
            ExternalRecord, or None if Google has no such place.

        Raises:
            PlaceProviderError: On transport, service, or API-specific errors.
        """
        params = {
            "place_id": external_id,
            "fields": ",".join(DETAIL_FIELDS),
            "language": self._language,
            "key": self._api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(GOOGLE_PLACE_DETAILS_URL, params=params)
                response.raise_for_status()

            data = response.json()
            return self._parse_response(external_id, data)

        except httpx.TimeoutException as e:
            logger.warning(f"Google Places timeout for place {external_id}")
            raise PlaceProviderError("google", "Place details request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google Places HTTP error {e.response.status_code}")
            raise PlaceProviderError(
                "google",
                f"Provider returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.ConnectError as e:
            logger.warning("Google Places connection error")
            raise PlaceProviderError("google", "Connection to places provider failed") from e
        except PlaceProviderError:
            raise
        except Exception as e:
            logger.exception("Google Places unexpected error")
            raise PlaceProviderError("google", f"Unexpected error: {e}") from e

    def _parse_response(self, external_id: str, data: dict) -> ExternalRecord | None:
        """Parse a Place Details response into an ExternalRecord.

        Args:
            external_id: The place id that was requested.
            data: Raw JSON response from the Place Details API.

        Returns:
            ExternalRecord, or None if the place does not exist.

        Raises:
            PlaceProviderError: On API error statuses or malformed results.
        """
        api_status = data.get("status", "UNKNOWN")

        if api_status in _NOT_FOUND_STATUSES:
            return None

        if api_status in _ERROR_STATUSES:
            msg = data.get("error_message", api_status)
            raise PlaceProviderError("google", f"API error: {msg}")

        if api_status != "OK":
            raise PlaceProviderError("google", f"Unexpected API status: {api_status}")

        result = data.get("result")
        if not result:
            return None

        try:
            name = result["name"]
            location = result.get("geometry", {}).get("location")
            coordinates = (
                Coordinates(lat=float(location["lat"]), lng=float(location["lng"])) if location else None
            )
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse Google Places response: {e}")
            raise PlaceProviderError("google", f"Failed to parse response: {e}") from e

        photos = result.get("photos") or []
        photo_references = [p["photo_reference"] for p in photos if p.get("photo_reference")][:MAX_PHOTOS]

        return ExternalRecord(
            external_id=result.get("place_id") or external_id,
            name=name,
            formatted_address=result.get("formatted_address") or "",
            phone=result.get("formatted_phone_number"),
            category_tags=list(result.get("types") or []),
            coordinates=coordinates,
            photo_references=photo_references,
            website=result.get("website"),
            price_level=result.get("price_level"),
            rating=result.get("rating"),
            hours=parse_weekday_text((result.get("opening_hours") or {}).get("weekday_text")),
            raw_response=data,
        )
