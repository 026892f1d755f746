"""Unit tests for house-number helpers."""

import pytest

from territory_api.lib.territory.numbers import (
    interval_intersection,
    is_even,
    normalize_block,
    parse_municipal_number,
)


class TestParseMunicipalNumber:
    """Tests for parse_municipal_number."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("450", 450),
            ("450-A", 450),
            ("12-14", 12),
            ("  0  ", 0),
            ("S/N", None),
            ("", None),
            (None, None),
            (37, 37),
            (-3, None),
        ],
    )
    def test_parses_first_digit_run(self, value, expected) -> None:
        assert parse_municipal_number(value) == expected


class TestNormalizeBlock:
    """Tests for normalize_block."""

    def test_uppercases_and_trims(self) -> None:
        assert normalize_block("  m ") == "M"

    def test_blank_becomes_none(self) -> None:
        assert normalize_block("   ") is None
        assert normalize_block(None) is None


class TestIntervals:
    """Tests for parity and interval intersection."""

    def test_is_even(self) -> None:
        assert is_even(0)
        assert is_even(14)
        assert not is_even(15)

    def test_overlapping_intervals(self) -> None:
        assert interval_intersection(10, 30, 20, 40) == (20, 30)

    def test_touching_intervals_share_endpoint(self) -> None:
        assert interval_intersection(10, 20, 20, 30) == (20, 20)

    def test_contained_interval(self) -> None:
        assert interval_intersection(1, 100, 40, 60) == (40, 60)

    def test_disjoint_intervals(self) -> None:
        assert interval_intersection(10, 19, 20, 30) is None
