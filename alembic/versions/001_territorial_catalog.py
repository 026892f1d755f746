"""Initial migration: territorial catalog, street ranges, addresses and users.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _entity_columns() -> list[sa.Column]:
    """Lifecycle, timestamp and actor columns shared by catalog tables."""
    return [
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.Uuid, nullable=True),
        sa.Column("created_by", sa.Uuid, nullable=True),
        sa.Column("updated_by", sa.Uuid, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sectors",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("sector_code", sa.String(10), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("polygon", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("centroid_latitude", sa.Float, nullable=True),
        sa.Column("centroid_longitude", sa.Float, nullable=True),
        sa.Column("map_color", sa.String(7), nullable=True),
        *_entity_columns(),
    )
    op.create_index("ix_sectors_status", "sectors", ["status"])

    op.create_table(
        "subsectors",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("subsector_code", sa.String(10), nullable=False, unique=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("sector_id", sa.Uuid, sa.ForeignKey("sectors.id"), nullable=False),
        sa.Column("reference", sa.Text, nullable=True),
        sa.Column("polygon", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("radius_meters", sa.Integer, nullable=True),
        sa.Column("map_color", sa.String(7), nullable=True),
        *_entity_columns(),
    )
    op.create_index("ix_subsectors_sector_id", "subsectors", ["sector_id"])
    op.create_index("ix_subsectors_status", "subsectors", ["status"])

    op.create_table(
        "quadrants",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("quadrant_code", sa.String(10), nullable=False, unique=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("sector_id", sa.Uuid, sa.ForeignKey("sectors.id"), nullable=True),
        sa.Column("subsector_id", sa.Uuid, sa.ForeignKey("subsectors.id"), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("radius_meters", sa.Integer, nullable=True),
        sa.Column("polygon", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("map_color", sa.String(7), nullable=True),
        *_entity_columns(),
        sa.CheckConstraint("sector_id IS NOT NULL OR subsector_id IS NOT NULL", name="ck_quadrant_has_owner"),
        sa.CheckConstraint("latitude IS NULL OR (latitude BETWEEN -90 AND 90)", name="ck_quadrant_latitude"),
        sa.CheckConstraint("longitude IS NULL OR (longitude BETWEEN -180 AND 180)", name="ck_quadrant_longitude"),
    )
    op.create_index("ix_quadrants_sector_id", "quadrants", ["sector_id"])
    op.create_index("ix_quadrants_subsector_id", "quadrants", ["subsector_id"])
    op.create_index("ix_quadrants_status", "quadrants", ["status"])
    op.create_index("ix_quadrants_lat_lng", "quadrants", ["latitude", "longitude"])

    op.create_table(
        "streets",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("street_code", sa.String(20), nullable=False, unique=True),
        sa.Column("way_type", sa.String(10), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("full_name", sa.String(250), nullable=False),
        sa.Column("classification", sa.String(12), nullable=False, server_default="LOCAL"),
        sa.Column("range_revision", sa.Integer, nullable=False, server_default="0"),
        *_entity_columns(),
        sa.CheckConstraint(
            "classification IN ('ARTERIAL', 'COLLECTOR', 'LOCAL', 'RESIDENTIAL')",
            name="ck_street_classification",
        ),
    )
    op.create_index("ix_streets_name", "streets", ["name"])
    op.create_index("ix_streets_status", "streets", ["status"])

    op.create_table(
        "street_ranges",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("street_id", sa.Uuid, sa.ForeignKey("streets.id"), nullable=False),
        sa.Column("quadrant_id", sa.Uuid, sa.ForeignKey("quadrants.id"), nullable=False),
        sa.Column("number_start", sa.Integer, nullable=True),
        sa.Column("number_end", sa.Integer, nullable=True),
        sa.Column("side", sa.String(5), nullable=False, server_default="BOTH"),
        sa.Column("priority", sa.SmallInteger, nullable=False, server_default="1"),
        sa.Column("block", sa.String(10), nullable=True),
        sa.Column("from_intersection", sa.String(200), nullable=True),
        sa.Column("to_intersection", sa.String(200), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_entity_columns(),
        sa.CheckConstraint(
            "(number_start IS NULL AND number_end IS NULL) OR (number_start IS NOT NULL AND number_end IS NOT NULL)",
            name="ck_street_range_bounds_paired",
        ),
        sa.CheckConstraint("number_end >= number_start", name="ck_street_range_ordered"),
        sa.CheckConstraint("number_start >= 0", name="ck_street_range_non_negative"),
        sa.CheckConstraint("priority BETWEEN 1 AND 10", name="ck_street_range_priority"),
        sa.CheckConstraint("side IN ('BOTH', 'EVEN', 'ODD', 'ALL')", name="ck_street_range_side"),
        sa.CheckConstraint("block IS NULL OR number_start IS NULL", name="ck_street_range_block_catch_all"),
    )
    op.create_index("ix_street_ranges_quadrant_id", "street_ranges", ["quadrant_id"])
    op.create_index("ix_street_ranges_status", "street_ranges", ["status"])
    op.create_index("ix_street_ranges_street_status", "street_ranges", ["street_id", "status"])

    op.create_table(
        "addresses",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("street_id", sa.Uuid, sa.ForeignKey("streets.id"), nullable=False),
        sa.Column("municipal_number", sa.String(10), nullable=True),
        sa.Column("block", sa.String(10), nullable=True),
        sa.Column("lot", sa.String(10), nullable=True),
        sa.Column("neighborhood", sa.String(150), nullable=True),
        sa.Column("unit_type", sa.String(20), nullable=True),
        sa.Column("unit_number", sa.String(20), nullable=True),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("full_address", sa.String(500), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("quadrant_id", sa.Uuid, sa.ForeignKey("quadrants.id"), nullable=True),
        sa.Column("sector_id", sa.Uuid, sa.ForeignKey("sectors.id"), nullable=True),
        sa.Column("matched_range_id", sa.Uuid, sa.ForeignKey("street_ranges.id"), nullable=True),
        sa.Column("assignment_source", sa.String(10), nullable=False, server_default="none"),
        *_entity_columns(),
        sa.CheckConstraint(
            "municipal_number IS NOT NULL OR (block IS NOT NULL AND lot IS NOT NULL)",
            name="ck_address_has_addressing_system",
        ),
    )
    op.create_index("ix_addresses_street_id", "addresses", ["street_id"])
    op.create_index("ix_addresses_matched_range_id", "addresses", ["matched_range_id"])
    op.create_index("ix_addresses_quadrant", "addresses", ["quadrant_id"])
    op.create_index("ix_addresses_sector", "addresses", ["sector_id"])
    op.create_index("ix_addresses_status", "addresses", ["status"])


def downgrade() -> None:
    op.drop_table("addresses")
    op.drop_table("street_ranges")
    op.drop_table("streets")
    op.drop_table("quadrants")
    op.drop_table("subsectors")
    op.drop_table("sectors")
    op.drop_table("users")
