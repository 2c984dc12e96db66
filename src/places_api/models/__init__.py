"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from places_api.models.place import Place

__all__ = [
    "Place",
]
