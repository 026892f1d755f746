"""Subsector model — intermediate grouping between a sector and its quadrants."""

import uuid
from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class Subsector(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Subsector of a patrol sector (newer catalog generation)."""

    __tablename__ = "subsectors"

    subsector_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    sector_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("sectors.id"), nullable=False, index=True)
    reference: Mapped[str | None] = mapped_column(Text, nullable=True)
    polygon: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    radius_meters: Mapped[int | None] = mapped_column(Integer, nullable=True)
    map_color: Mapped[str | None] = mapped_column(String(7), nullable=True)

    sector = relationship("Sector", back_populates="subsectors", lazy="raise")
    quadrants = relationship("Quadrant", back_populates="subsector", lazy="raise")
