"""Approximate a point from already-located addresses on the same block.

Houses in the same hundred of a street ("cuadra") sit on the same city
block, so the nearest located neighbour there is a usable stand-in. Without
a number, an address on the same manzana serves the same purpose.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from territory_api.lib.geocoder.address import ParsedAddress
from territory_api.lib.geocoder.base import GeocodeQuality, GeocodingResult
from territory_api.lib.territory.numbers import normalize_block, parse_municipal_number

PROVIDER_NAME = "database"
NUMBERS_PER_BLOCK = 100


@dataclass(frozen=True)
class KnownLocation:
    """A catalog address that already has coordinates."""

    address_id: uuid.UUID
    full_address: str
    latitude: float
    longitude: float
    municipal_number: str | None = None
    block: str | None = None


def approximate_from_neighbors(
    address: ParsedAddress,
    known: Iterable[KnownLocation],
) -> GeocodingResult | None:
    """Borrow the coordinates of the closest known address on the same block.

    With a house number only numbers in the same hundred qualify; the
    nearest one wins, ties broken by address text. An address with a
    number never falls back to its block label. Without a number, the
    first address on the same block (case-insensitive) wins.

    Args:
        address: Address to locate.
        known: Located addresses on candidate streets.

    Returns:
        An APPROXIMATE result pointing at the reference address, or None.
    """
    number = address.house_number
    chosen: KnownLocation | None = None

    if number is not None:
        hundred = number // NUMBERS_PER_BLOCK
        best_key: tuple[int, str] | None = None
        for location in known:
            other = parse_municipal_number(location.municipal_number)
            if other is None or other // NUMBERS_PER_BLOCK != hundred:
                continue
            key = (abs(other - number), location.full_address)
            if best_key is None or key < best_key:
                best_key, chosen = key, location
    elif address.block:
        block = normalize_block(address.block)
        same_block = [loc for loc in known if loc.block and normalize_block(loc.block) == block]
        if same_block:
            chosen = min(same_block, key=lambda loc: loc.full_address)

    if chosen is None:
        return None
    return GeocodingResult(
        latitude=chosen.latitude,
        longitude=chosen.longitude,
        quality=GeocodeQuality.APPROXIMATE,
        provider=PROVIDER_NAME,
        matched_address=chosen.full_address,
        reference_address_id=chosen.address_id,
    )
