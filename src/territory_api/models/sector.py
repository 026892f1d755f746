"""Sector model — top-level patrol territory grouping subsectors and quadrants."""

from typing import Any

from sqlalchemy import JSON, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class Sector(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Patrol sector.

    Attributes:
        sector_code: Short unique code (e.g., "S01").
        name: Display name.
        polygon: GeoJSON geometry kept as opaque map metadata.
        centroid_latitude / centroid_longitude: Optional label point.
    """

    __tablename__ = "sectors"

    sector_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    polygon: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    centroid_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    centroid_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    map_color: Mapped[str | None] = mapped_column(String(7), nullable=True)

    subsectors = relationship("Subsector", back_populates="sector", lazy="raise")
    quadrants = relationship("Quadrant", back_populates="sector", lazy="raise")
