"""Record where an address's coordinates came from.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Add geocode_source and geocode_quality to addresses."""
    op.add_column("addresses", sa.Column("geocode_source", sa.String(20), nullable=True))
    op.add_column("addresses", sa.Column("geocode_quality", sa.String(20), nullable=True))
    op.add_column("addresses", sa.Column("geocode_reference_id", sa.Uuid, nullable=True))
    op.create_index("ix_addresses_geocode_source", "addresses", ["geocode_source"])


def downgrade() -> None:
    """Drop the geocode provenance columns."""
    op.drop_index("ix_addresses_geocode_source", table_name="addresses")
    op.drop_column("addresses", "geocode_reference_id")
    op.drop_column("addresses", "geocode_quality")
    op.drop_column("addresses", "geocode_source")
