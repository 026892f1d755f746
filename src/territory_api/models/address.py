"""Address model — operator-entered address with its derived patrol assignment."""

import uuid
from enum import StrEnum

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class AssignmentSource(StrEnum):
    """How an address got its quadrant."""

    RANGE = "range"
    MANUAL = "manual"
    NONE = "none"


MANUAL_GEOCODE_SOURCE = "manual"


class Address(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Address on a street, by municipal number and/or block and lot.

    ``quadrant_id``, ``sector_id`` and ``matched_range_id`` are derived by the
    resolver and rewritten whenever a resolving field changes; they are never
    accepted as-is from input except as an explicit manual assignment.
    """

    __tablename__ = "addresses"

    street_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("streets.id"), nullable=False, index=True)
    municipal_number: Mapped[str | None] = mapped_column(String(10), nullable=True)
    block: Mapped[str | None] = mapped_column(String(10), nullable=True)
    lot: Mapped[str | None] = mapped_column(String(10), nullable=True)
    neighborhood: Mapped[str | None] = mapped_column(String(150), nullable=True)
    unit_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    unit_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    full_address: Mapped[str] = mapped_column(String(500), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Provider that placed the point ("manual", "database", "nominatim"); None when not located
    geocode_source: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    geocode_quality: Mapped[str | None] = mapped_column(String(20), nullable=True)
    geocode_reference_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    quadrant_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("quadrants.id"), nullable=True)
    sector_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("sectors.id"), nullable=True)
    matched_range_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("street_ranges.id"), nullable=True, index=True
    )
    assignment_source: Mapped[str] = mapped_column(
        String(10), nullable=False, default=AssignmentSource.NONE.value, server_default="none"
    )

    __table_args__ = (
        CheckConstraint(
            "municipal_number IS NOT NULL OR (block IS NOT NULL AND lot IS NOT NULL)",
            name="ck_address_has_addressing_system",
        ),
        Index("ix_addresses_quadrant", "quadrant_id"),
        Index("ix_addresses_sector", "sector_id"),
    )
