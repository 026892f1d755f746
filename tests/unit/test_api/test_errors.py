"""Unit tests for territory error to HTTP response mapping."""

import uuid

import pytest

from territory_api.api.errors import error_body, status_for
from territory_api.lib.territory import (
    ConcurrentRangeEdit,
    ConflictError,
    GeocoderUnavailable,
    InvalidArgument,
    InvalidRange,
    NoCoverage,
    NoGeocodeMatch,
    NotFound,
    RangeConflict,
    Side,
    TerritoryError,
)


class TestStatusFor:
    """Tests for status_for."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (InvalidRange("bad", field="priority"), 422),
            (InvalidArgument("bad", field="lat"), 422),
            (NoCoverage(uuid.uuid4(), number=5), 422),
            (NotFound("street", uuid.uuid4()), 404),
            (ConflictError([]), 409),
            (ConcurrentRangeEdit(uuid.uuid4()), 409),
            (NoGeocodeMatch("CA VIEJA 10"), 422),
            (GeocoderUnavailable("nominatim", "timed out"), 503),
            (TerritoryError("something else"), 400),
        ],
    )
    def test_mapping(self, error: TerritoryError, expected: int) -> None:
        assert status_for(error) == expected


class TestErrorBody:
    """Tests for error_body."""

    def test_conflicts_listed(self) -> None:
        conflict = RangeConflict(
            range_id=uuid.uuid4(),
            quadrant_id=uuid.uuid4(),
            side=Side.EVEN,
            priority=3,
            overlap_start=None,
            overlap_end=None,
        )
        body = error_body(ConflictError([conflict]))
        assert body.code == "range_conflict"
        assert body.errors == [
            {
                "range_id": str(conflict.range_id),
                "quadrant_id": str(conflict.quadrant_id),
                "side": "EVEN",
                "priority": 3,
                "overlap_start": None,
                "overlap_end": None,
            }
        ]

    def test_field_errors(self) -> None:
        body = error_body(InvalidRange("priority must be between 1 and 10, got 11", field="priority"))
        assert body.errors == [{"field": "priority", "message": "priority must be between 1 and 10, got 11"}]

    def test_no_field_no_errors(self) -> None:
        body = error_body(NotFound("quadrant", uuid.uuid4()))
        assert body.errors is None
        assert body.detail.startswith("Quadrant ")
