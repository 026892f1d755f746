"""Street model — a named way addresses and ranges hang off."""

from enum import StrEnum

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from territory_api.models.base import AuditMixin, Base, LifecycleMixin, TimestampMixin, UUIDMixin


class StreetClassification(StrEnum):
    ARTERIAL = "ARTERIAL"
    COLLECTOR = "COLLECTOR"
    LOCAL = "LOCAL"
    RESIDENTIAL = "RESIDENTIAL"


class Street(Base, UUIDMixin, TimestampMixin, LifecycleMixin, AuditMixin):
    """Street master record.

    Attributes:
        street_code: Unique catalog code.
        way_type: Way-type abbreviation (e.g., "AV", "JR", "CA").
        name: Street name without the way type.
        full_name: Display name including the way type.
        classification: Road classification.
        range_revision: Incremented on every range write for this street;
            writers compare-and-swap it so racing edits cannot both commit.
    """

    __tablename__ = "streets"
    __table_args__ = (
        CheckConstraint(
            "classification IN (" + ", ".join(f"'{c.value}'" for c in StreetClassification) + ")",
            name="ck_street_classification",
        ),
    )

    street_code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    way_type: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(250), nullable=False)
    classification: Mapped[str] = mapped_column(
        String(12), nullable=False, default=StreetClassification.LOCAL.value, server_default="LOCAL"
    )
    range_revision: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    ranges = relationship("StreetRange", back_populates="street", lazy="raise")
