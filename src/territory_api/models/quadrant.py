"""Quadrant model — smallest patrol territory unit."""

import uuid
from typing import Any

from sqlalchemy import JSON, CheckConstraint, Float, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class Quadrant(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Patrol quadrant.

    Belongs to a sector directly (``sector_id``) or through a subsector
    (``subsector_id``); at least one of the two must be set. The center point
    is only used by proximity search; the polygon is opaque map metadata.
    """

    __tablename__ = "quadrants"

    quadrant_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sector_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("sectors.id"), nullable=True, index=True)
    subsector_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("subsectors.id"), nullable=True, index=True
    )
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    radius_meters: Mapped[int | None] = mapped_column(Integer, nullable=True)
    polygon: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    map_color: Mapped[str | None] = mapped_column(String(7), nullable=True)

    sector = relationship("Sector", back_populates="quadrants", lazy="raise")
    subsector = relationship("Subsector", back_populates="quadrants", lazy="raise")

    __table_args__ = (
        CheckConstraint("sector_id IS NOT NULL OR subsector_id IS NOT NULL", name="ck_quadrant_has_owner"),
        CheckConstraint("latitude IS NULL OR (latitude BETWEEN -90 AND 90)", name="ck_quadrant_latitude"),
        CheckConstraint("longitude IS NULL OR (longitude BETWEEN -180 AND 180)", name="ck_quadrant_longitude"),
        Index("ix_quadrants_lat_lng", "latitude", "longitude"),
    )
