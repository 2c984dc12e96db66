"""Place model — restaurant records, optionally synced from an external places provider."""

from datetime import datetime

from sqlalchemy import DateTime, Double, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from places_api.models.base import Base, JSONType, TimestampMixin, UUIDMixin


class Place(Base, UUIDMixin, TimestampMixin):
    """A place keyed by its provider-assigned external id when it came from the provider."""

    __tablename__ = "places"

    # Null for manually created places; unique otherwise
    external_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="", server_default="")
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    categories: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # Legacy dual encoding: {"lat", "lng", "latitude", "longitude"}
    coordinates: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    photo_reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_references: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    website: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rating: Mapped[float | None] = mapped_column(Double, nullable=True)
    hours: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    __table_args__ = (Index("ix_places_source", "source"),)
