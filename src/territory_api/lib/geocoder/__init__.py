"""Geocoder library — free-text address parsing and pluggable point lookup.

Public API:
    - parse_address: Split "Av. Ejército 450-A" into way type, name and number
    - ParsedAddress: Parsed address component dataclass
    - expand_way_prefix / street_name_variants: spellings tried by providers
    - BaseGeocoder: Abstract provider interface
    - GeocodingResult: Result dataclass
    - GeocodeQuality: Precision level enum
    - GeocodingProviderError: Provider failure
    - NominatimGeocoder: OpenStreetMap Nominatim provider
    - KnownLocation / approximate_from_neighbors: same-block approximation
    - geocode_with_fallback: first answer from an ordered provider list
"""

from loguru import logger

from territory_api.lib.geocoder.address import (
    ParsedAddress,
    expand_way_prefix,
    parse_address,
    street_name_variants,
)
from territory_api.lib.geocoder.base import (
    QUALITY_RANK,
    BaseGeocoder,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)
from territory_api.lib.geocoder.nominatim import NominatimGeocoder
from territory_api.lib.geocoder.same_block import KnownLocation, approximate_from_neighbors


async def geocode_with_fallback(
    address: ParsedAddress,
    providers: list[BaseGeocoder],
) -> GeocodingResult | None:
    """Ask each provider in order and return the first match.

    A failing provider is logged and skipped so the next one still gets a
    chance.

    Raises:
        GeocodingProviderError: The last failure, when no provider matched
            and at least one failed.
    """
    errors: list[GeocodingProviderError] = []
    for provider in providers:
        try:
            result = await provider.geocode(address)
        except GeocodingProviderError as e:
            logger.warning(f"Geocoder {provider.provider_name} failed: {e.message}")
            errors.append(e)
            continue
        if result is not None:
            return result
    if errors:
        raise errors[-1]
    return None


__all__ = [
    "QUALITY_RANK",
    "BaseGeocoder",
    "GeocodeQuality",
    "GeocodingProviderError",
    "GeocodingResult",
    "KnownLocation",
    "NominatimGeocoder",
    "ParsedAddress",
    "approximate_from_neighbors",
    "expand_way_prefix",
    "geocode_with_fallback",
    "parse_address",
    "street_name_variants",
]
