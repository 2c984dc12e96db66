"""Create places table.

Revision ID: 001
Revises:
Create Date: 2026-10-16
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "places",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("external_id", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False, server_default=""),
        sa.Column("phone", sa.String(64), nullable=False, server_default=""),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("categories", _JSON, nullable=False),
        sa.Column("coordinates", _JSON, nullable=True),
        sa.Column("source", sa.String(20), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("photo_reference", sa.Text(), nullable=True),
        sa.Column("photo_references", _JSON, nullable=False),
        sa.Column("website", sa.Text(), nullable=True),
        sa.Column("price_level", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Double(), nullable=True),
        sa.Column("hours", _JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id"),
    )
    op.create_index("ix_places_source", "places", ["source"])


def downgrade() -> None:
    op.drop_index("ix_places_source", table_name="places")
    op.drop_table("places")
