"""Deterministic in-memory provider for tests and offline runs."""

from collections.abc import Iterable

from places_api.lib.places.base import BasePlaceProvider, ExternalRecord, PlaceProviderError


class StaticPlaceProvider(BasePlaceProvider):
    """Serve places from a fixed set of records.

    Unknown ids return None. Ids listed in ``failing_ids`` raise
    ``PlaceProviderError`` to simulate an outage. Every call is recorded in
    ``calls``.
    """

    def __init__(
        self,
        records: Iterable[ExternalRecord] = (),
        failing_ids: Iterable[str] = (),
    ) -> None:
        self._records = {record.external_id: record for record in records}
        self._failing_ids = set(failing_ids)
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "static"

    def add(self, record: ExternalRecord) -> None:
        self._records[record.external_id] = record

    def fail(self, external_id: str) -> None:
        self._failing_ids.add(external_id)

    async def fetch(self, external_id: str) -> ExternalRecord | None:
        self.calls.append(external_id)
        if external_id in self._failing_ids:
            raise PlaceProviderError(self.provider_name, f"Simulated outage for {external_id}")
        return self._records.get(external_id)
