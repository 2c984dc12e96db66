"""Unit tests for the places provider registry."""

import pytest

from places_api.core.config import Settings
from places_api.lib.places import (
    GooglePlacesProvider,
    StaticPlaceProvider,
    get_available_providers,
    get_configured_provider,
    get_provider,
)


class TestGetProvider:
    """Tests for get_provider."""

    def test_available_providers(self) -> None:
        assert get_available_providers() == ["google", "static"]

    def test_google_with_kwargs(self) -> None:
        provider = get_provider("google", api_key="k", timeout=2.0)
        assert isinstance(provider, GooglePlacesProvider)
        assert provider.is_configured is True

    def test_static(self) -> None:
        assert isinstance(get_provider("static"), StaticPlaceProvider)

    def test_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown places provider"):
            get_provider("yelp")


class TestGetConfiguredProvider:
    """Tests for get_configured_provider."""

    def test_static_from_settings(self, settings: Settings) -> None:
        assert isinstance(get_configured_provider(settings), StaticPlaceProvider)

    def test_google_with_key(self, settings: Settings) -> None:
        configured = settings.model_copy(update={"places_provider": "google", "google_places_api_key": "k"})
        provider = get_configured_provider(configured)
        assert isinstance(provider, GooglePlacesProvider)

    def test_google_without_key_raises(self, settings: Settings) -> None:
        configured = settings.model_copy(update={"places_provider": "google", "google_places_api_key": None})
        with pytest.raises(ValueError, match="not configured"):
            get_configured_provider(configured)

    def test_name_is_normalized(self, settings: Settings) -> None:
        configured = settings.model_copy(update={"places_provider": " Static "})
        assert isinstance(get_configured_provider(configured), StaticPlaceProvider)
