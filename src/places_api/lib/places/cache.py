"""Database-backed cache store for places."""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from places_api.lib.places.base import CachedRecord, Coordinates, PlaceSource
from places_api.lib.places.freshness import as_utc
from places_api.lib.places.store import (
    DuplicateExternalIdError,
    RecordNotFoundError,
    StoreWriteError,
    check_fields,
)
from places_api.models.place import Place

# CachedRecord attribute → Place column, where the names differ
_COLUMN_NAMES = {"category_set": "categories"}


def _to_columns(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate CachedRecord fields into Place column values."""
    columns: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "coordinates":
            value = value.to_legacy_dict() if value is not None else None
        elif key == "source":
            value = PlaceSource(value).value
        elif key in ("category_set", "photo_references"):
            value = list(value or [])
        columns[_COLUMN_NAMES.get(key, key)] = value
    return columns


def place_to_record(place: Place) -> CachedRecord:
    """Convert a Place row into a CachedRecord."""
    return CachedRecord(
        id=place.id,
        external_id=place.external_id,
        name=place.name,
        address=place.address or "",
        phone=place.phone or "",
        category=place.category,
        category_set=list(place.categories or []),
        coordinates=Coordinates.from_mapping(place.coordinates),
        source=PlaceSource(place.source),
        last_synced_at=as_utc(place.last_synced_at) if place.last_synced_at else None,
        photo_reference=place.photo_reference,
        photo_references=list(place.photo_references or []),
        website=place.website,
        price_level=place.price_level,
        rating=place.rating,
        hours=place.hours,
        created_at=as_utc(place.created_at) if place.created_at else None,
        updated_at=as_utc(place.updated_at) if place.updated_at else None,
    )


class SqlAlchemyCacheStore:
    """Cache store over the ``places`` table.

    Each operation runs in its own session so the store can be shared by
    request handlers and detached background refreshes alike. The unique
    constraint on ``external_id`` makes ``insert`` conditional.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_by_external_id(self, external_id: str) -> CachedRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Place).where(Place.external_id == external_id))
            place = result.scalar_one_or_none()
            return place_to_record(place) if place is not None else None

    async def insert(self, fields: dict[str, Any]) -> CachedRecord:
        check_fields(fields)
        external_id = fields.get("external_id")
        place = Place(**_to_columns(fields))

        async with self._session_factory() as session:
            session.add(place)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if external_id is not None and await self._external_id_taken(session, external_id):
                    raise DuplicateExternalIdError(external_id) from e
                logger.warning(f"Place insert rejected by database: {e.orig}")
                raise StoreWriteError(f"Place insert failed: {e.orig}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning(f"Place insert failed: {e}")
                raise StoreWriteError(f"Place insert failed: {e}") from e
            return place_to_record(place)

    async def update_by_id(self, record_id: uuid.UUID, fields: dict[str, Any]) -> CachedRecord:
        check_fields(fields)
        async with self._session_factory() as session:
            place = await session.get(Place, record_id)
            if place is None:
                raise RecordNotFoundError(record_id)

            for column, value in _to_columns(fields).items():
                setattr(place, column, value)

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                external_id = fields.get("external_id")
                if external_id is not None and await self._external_id_taken(session, external_id, exclude=record_id):
                    raise DuplicateExternalIdError(external_id) from e
                logger.warning(f"Place update for {record_id} rejected by database: {e.orig}")
                raise StoreWriteError(f"Place update failed: {e.orig}") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.warning(f"Place update failed for {record_id}: {e}")
                raise StoreWriteError(f"Place update failed: {e}") from e
            return place_to_record(place)

    async def list_records(self) -> list[CachedRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(Place).order_by(Place.created_at))
            return [place_to_record(place) for place in result.scalars().all()]

    async def count_by_source(self) -> dict[PlaceSource, int]:
        async with self._session_factory() as session:
            result = await session.execute(select(Place.source, func.count(Place.id)).group_by(Place.source))
            counts = dict.fromkeys(PlaceSource, 0)
            for source, count in result.all():
                counts[PlaceSource(source)] += count
            return counts

    @staticmethod
    async def _external_id_taken(
        session: AsyncSession, external_id: str, exclude: uuid.UUID | None = None
    ) -> bool:
        query = select(Place.id).where(Place.external_id == external_id)
        if exclude is not None:
            query = query.where(Place.id != exclude)
        result = await session.execute(query)
        return result.scalar_one_or_none() is not None
