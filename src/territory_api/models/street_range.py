"""StreetRange model — house-number range of a street mapped to a quadrant."""

import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class StreetRange(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Street segment range assigning house numbers to a quadrant.

    Null ``number_start``/``number_end`` make the range a catch-all for the
    street, used for block/lot addresses; ``block`` narrows a catch-all to a
    single block. The CHECK constraints mirror the shape rules enforced by
    the range registry so they also hold for writes that bypass it.
    """

    __tablename__ = "street_ranges"

    street_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("streets.id"), nullable=False)
    quadrant_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("quadrants.id"), nullable=False, index=True)
    number_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    side: Mapped[str] = mapped_column(String(5), nullable=False, default="BOTH", server_default="BOTH")
    priority: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1, server_default="1")
    block: Mapped[str | None] = mapped_column(String(10), nullable=True)
    from_intersection: Mapped[str | None] = mapped_column(String(200), nullable=True)
    to_intersection: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    street = relationship("Street", back_populates="ranges", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            "(number_start IS NULL AND number_end IS NULL) OR (number_start IS NOT NULL AND number_end IS NOT NULL)",
            name="ck_street_range_bounds_paired",
        ),
        CheckConstraint("number_end >= number_start", name="ck_street_range_ordered"),
        CheckConstraint("number_start >= 0", name="ck_street_range_non_negative"),
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_street_range_priority"),
        CheckConstraint("side IN ('BOTH', 'EVEN', 'ODD', 'ALL')", name="ck_street_range_side"),
        CheckConstraint("block IS NULL OR number_start IS NULL", name="ck_street_range_block_catch_all"),
        Index("ix_street_ranges_street_status", "street_id", "status"),
    )
