"""Pydantic v2 schemas for street range operations."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from territory_api.lib.territory import RangeConflict, RangeValidation, Side


class StreetRangeCreateRequest(BaseModel):
    """Request body for creating a street range.

    Leave ``number_start`` and ``number_end`` empty for a catch-all range
    covering the whole street (used by block/lot addresses).
    """

    street_id: uuid.UUID
    quadrant_id: uuid.UUID
    number_start: int | None = Field(default=None, description="First house number, inclusive")
    number_end: int | None = Field(default=None, description="Last house number, inclusive")
    side: Side = Field(default=Side.BOTH, description="BOTH, EVEN, ODD or ALL")
    priority: int = Field(default=1, description="1 (highest) to 10 (lowest)")
    block: str | None = Field(default=None, max_length=10, description="Block a catch-all range is scoped to")
    from_intersection: str | None = Field(default=None, max_length=200)
    to_intersection: str | None = Field(default=None, max_length=200)
    notes: str | None = None


class StreetRangeValidateRequest(StreetRangeCreateRequest):
    """Request body for a validation-only check.

    Set ``range_id`` when checking an edit so the stored version of the
    range is not reported as a conflict with itself.
    """

    range_id: uuid.UUID | None = None


class StreetRangeUpdateRequest(BaseModel):
    """Request body for editing a street range. Only provided fields change."""

    quadrant_id: uuid.UUID | None = None
    number_start: int | None = None
    number_end: int | None = None
    side: Side | None = None
    priority: int | None = None
    block: str | None = Field(default=None, max_length=10)
    from_intersection: str | None = Field(default=None, max_length=200)
    to_intersection: str | None = Field(default=None, max_length=200)
    notes: str | None = None


class StreetRangeResponse(BaseModel):
    """A stored street range."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    street_id: uuid.UUID
    quadrant_id: uuid.UUID
    number_start: int | None = None
    number_end: int | None = None
    side: str
    priority: int
    block: str | None = None
    from_intersection: str | None = None
    to_intersection: str | None = None
    notes: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class RangeConflictResponse(BaseModel):
    """An existing range overlapping the candidate.

    Null ``overlap_start``/``overlap_end`` mean the overlap spans the whole street.
    """

    range_id: uuid.UUID
    quadrant_id: uuid.UUID
    side: str
    priority: int
    overlap_start: int | None = None
    overlap_end: int | None = None

    @classmethod
    def from_conflict(cls, conflict: RangeConflict) -> "RangeConflictResponse":
        return cls(
            range_id=conflict.range_id,
            quadrant_id=conflict.quadrant_id,
            side=conflict.side.value,
            priority=conflict.priority,
            overlap_start=conflict.overlap_start,
            overlap_end=conflict.overlap_end,
        )


class RangeValidationResponse(BaseModel):
    """Result of a validation-only range check."""

    ok: bool = Field(description="True when no same-priority conflict exists")
    conflicts: list[RangeConflictResponse] = Field(description="Overlaps that block the write")
    overrides: list[RangeConflictResponse] = Field(description="Overlaps resolved by a different priority")

    @classmethod
    def from_validation(cls, validation: RangeValidation) -> "RangeValidationResponse":
        return cls(
            ok=validation.ok,
            conflicts=[RangeConflictResponse.from_conflict(c) for c in validation.conflicts],
            overrides=[RangeConflictResponse.from_conflict(c) for c in validation.overrides],
        )
