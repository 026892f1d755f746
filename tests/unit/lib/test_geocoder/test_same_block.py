"""Unit tests for same-block approximation from located neighbours."""

import uuid

from territory_api.lib.geocoder.address import ParsedAddress
from territory_api.lib.geocoder.base import GeocodeQuality
from territory_api.lib.geocoder.same_block import KnownLocation, approximate_from_neighbors


def _known(number: str | None = None, block: str | None = None, *, lat: float = -16.4, lng: float = -71.5):
    label = number or f"MZ {block}"
    return KnownLocation(
        address_id=uuid.uuid4(),
        full_address=f"CA SANTA TERESA {label}",
        latitude=lat,
        longitude=lng,
        municipal_number=number,
        block=block,
    )


class TestNumberedAddress:
    """Approximation by house number."""

    def test_nearest_number_in_same_hundred(self) -> None:
        far = _known("101", lat=-16.401)
        near = _known("119", lat=-16.402)
        other_hundred = _known("200", lat=-16.403)
        result = approximate_from_neighbors(
            ParsedAddress(street_name="SANTA TERESA", number="115"), [far, near, other_hundred]
        )
        assert result is not None
        assert result.latitude == -16.402
        assert result.reference_address_id == near.address_id
        assert result.matched_address == "CA SANTA TERESA 119"
        assert result.quality == GeocodeQuality.APPROXIMATE
        assert result.provider == "database"

    def test_other_hundred_never_used(self) -> None:
        result = approximate_from_neighbors(
            ParsedAddress(street_name="SANTA TERESA", number="115"), [_known("99"), _known("200")]
        )
        assert result is None

    def test_number_does_not_fall_back_to_block(self) -> None:
        same_block = _known(block="B")
        result = approximate_from_neighbors(
            ParsedAddress(street_name="SANTA TERESA", number="115", block="B"), [same_block]
        )
        assert result is None

    def test_tie_broken_by_address_text(self) -> None:
        below = _known("113")
        above = _known("117")
        result = approximate_from_neighbors(ParsedAddress(street_name="SANTA TERESA", number="115"), [above, below])
        assert result is not None
        assert result.reference_address_id == below.address_id

    def test_suffixed_numbers_compare_by_digits(self) -> None:
        suffixed = _known("450-A")
        result = approximate_from_neighbors(ParsedAddress(street_name="AREQUIPA", number="452"), [suffixed])
        assert result is not None
        assert result.reference_address_id == suffixed.address_id


class TestBlockAddress:
    """Approximation by block (manzana)."""

    def test_same_block_case_insensitive(self) -> None:
        lot_mate = _known(block="b")
        result = approximate_from_neighbors(
            ParsedAddress(street_name="LOS OLIVOS", block="B", lot="15"), [_known(block="C"), lot_mate]
        )
        assert result is not None
        assert result.reference_address_id == lot_mate.address_id

    def test_unknown_block(self) -> None:
        result = approximate_from_neighbors(ParsedAddress(street_name="LOS OLIVOS", block="Z"), [_known(block="B")])
        assert result is None


class TestNothingToMatch:
    def test_no_number_and_no_block(self) -> None:
        assert approximate_from_neighbors(ParsedAddress(street_name="SANTA TERESA"), [_known("115")]) is None

    def test_no_known_locations(self) -> None:
        assert approximate_from_neighbors(ParsedAddress(street_name="SANTA TERESA", number="115"), []) is None
