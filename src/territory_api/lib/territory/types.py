"""Value types shared by the range registry, address resolver and proximity search.

These are plain in-memory structures. ORM rows are converted into them at the
service boundary so the resolution logic never touches a database session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum


class Side(StrEnum):
    """Which house numbers of a street segment a range covers."""

    BOTH = "BOTH"
    EVEN = "EVEN"
    ODD = "ODD"
    ALL = "ALL"

    @property
    def canonical(self) -> Side:
        """ALL is stored as written but behaves exactly like BOTH."""
        return Side.BOTH if self is Side.ALL else self


@dataclass(frozen=True)
class RangeRecord:
    """A street segment mapped to a patrol quadrant.

    Attributes:
        id: Record id, or None for a candidate that has not been persisted.
        street_id: Street the range belongs to.
        quadrant_id: Quadrant assigned to addresses inside the range.
        number_start: First house number (inclusive), None for a catch-all.
        number_end: Last house number (inclusive), None for a catch-all.
        side: Parity constraint on covered numbers.
        priority: 1 (highest) to 10 (lowest).
        block: Block label a catch-all is scoped to, if any.
        active: Whether the record takes part in resolution.
        from_intersection: Descriptive start of the segment.
        to_intersection: Descriptive end of the segment.
    """

    id: uuid.UUID | None
    street_id: uuid.UUID
    quadrant_id: uuid.UUID
    number_start: int | None = None
    number_end: int | None = None
    side: Side = Side.BOTH
    priority: int = 1
    block: str | None = None
    active: bool = True
    from_intersection: str | None = None
    to_intersection: str | None = None

    @property
    def is_catch_all(self) -> bool:
        return self.number_start is None and self.number_end is None

    @property
    def width(self) -> float:
        """Span of the numeric interval; catch-alls are infinitely wide."""
        if self.number_start is None or self.number_end is None:
            return float("inf")
        return self.number_end - self.number_start

    def contains(self, number: int) -> bool:
        """Return True if ``number`` falls in the closed interval (catch-alls contain everything)."""
        if self.number_start is None or self.number_end is None:
            return True
        return self.number_start <= number <= self.number_end

    def describe(self) -> str:
        """Human-readable segment description used in logs and CLI output."""
        parts: list[str] = []
        if not self.is_catch_all:
            parts.append(f"numbers {self.number_start}-{self.number_end}")
        if self.side.canonical is not Side.BOTH:
            parts.append(f"({self.side.value})")
        if self.block:
            parts.append(f"block {self.block}")
        if self.from_intersection or self.to_intersection:
            parts.append(f"from {self.from_intersection or '?'} to {self.to_intersection or '?'}")
        return " ".join(parts) or "whole street"


@dataclass(frozen=True)
class Numbered:
    """Municipal numbering: the house number drives resolution."""

    number: int


@dataclass(frozen=True)
class BlockLot:
    """Block/lot addressing for streets without municipal numbering."""

    block: str
    lot: str


@dataclass(frozen=True)
class Both:
    """Dual addressing; the number resolves, block/lot is display data."""

    number: int
    block: str
    lot: str


AddressKind = Numbered | BlockLot | Both


@dataclass(frozen=True)
class Assignment:
    """Resolver output: the quadrant and sector for an address."""

    quadrant_id: uuid.UUID
    sector_id: uuid.UUID
    matched_range_id: uuid.UUID | None


@dataclass(frozen=True)
class RangeConflict:
    """An existing range colliding with a candidate.

    ``overlap_start``/``overlap_end`` give the shared sub-interval; both None
    means the collision spans the whole street (catch-all vs catch-all).
    """

    range_id: uuid.UUID
    quadrant_id: uuid.UUID
    side: Side
    priority: int
    overlap_start: int | None
    overlap_end: int | None


@dataclass
class RangeValidation:
    """Outcome of checking a candidate range against a street's active ranges.

    Attributes:
        conflicts: Same-priority collisions; any entry blocks the write.
        overrides: Collisions resolved by a differing priority (informational).
    """

    conflicts: list[RangeConflict] = field(default_factory=list)
    overrides: list[RangeConflict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.conflicts


@dataclass(frozen=True)
class StreetRef:
    id: uuid.UUID
    name: str
    active: bool = True
    range_revision: int = 0


@dataclass(frozen=True)
class QuadrantRef:
    id: uuid.UUID
    code: str
    active: bool = True
    sector_id: uuid.UUID | None = None
    subsector_id: uuid.UUID | None = None


@dataclass(frozen=True)
class SectorRef:
    id: uuid.UUID
    code: str
    name: str
    active: bool = True


@dataclass(frozen=True)
class QuadrantPoint:
    """A quadrant reduced to what proximity search needs."""

    id: uuid.UUID
    code: str
    latitude: float
    longitude: float
    name: str | None = None
    sector_id: uuid.UUID | None = None
    subsector_id: uuid.UUID | None = None
    radius_meters: int | None = None
