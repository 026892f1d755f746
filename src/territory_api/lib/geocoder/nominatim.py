"""OpenStreetMap Nominatim geocoder provider.

Uses the Nominatim search API (https://nominatim.org/release-docs/develop/api/Search/).
Local street names often differ from OSM's ("Sta. Teresa" vs "Santa Teresa"),
so structured searches are tried with the spelled-out way type, without it,
and with name abbreviations, before a free-form query. The most precise hit
wins; a house-level hit stops the search. Nominatim's usage policy allows
one request per second.
"""

import asyncio
from typing import Any

import httpx
from loguru import logger

from territory_api.lib.geocoder.address import ParsedAddress, expand_way_prefix, street_name_variants
from territory_api.lib.geocoder.base import (
    BaseGeocoder,
    GeocodeQuality,
    GeocodingProviderError,
    GeocodingResult,
)

NOMINATIM_API_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "territory-api/1.0"

_HOUSE_TYPES = frozenset({"house", "building", "apartments", "house_number"})
_STREET_TYPES = frozenset(
    {
        "street",
        "road",
        "highway",
        "residential",
        "tertiary",
        "secondary",
        "primary",
        "unclassified",
        "pedestrian",
        "service",
    }
)


class NominatimGeocoder(BaseGeocoder):
    """Nominatim provider biased to one city.

    Args:
        city: District searched (``city`` parameter).
        county: Province searched (``county`` parameter).
        country: Country name.
        country_code: ISO 3166-1 alpha-2 code restricting results.
        timeout: Per-request timeout in seconds.
        email: Contact address sent to Nominatim, as its policy asks.
        user_agent: User-Agent header.
        min_interval: Seconds to wait between consecutive requests.
    """

    def __init__(
        self,
        *,
        city: str,
        county: str = "",
        country: str = "Peru",
        country_code: str = "pe",
        timeout: float = DEFAULT_TIMEOUT,
        email: str = "",
        user_agent: str = DEFAULT_USER_AGENT,
        min_interval: float = 1.0,
    ) -> None:
        self._city = city
        self._county = county
        self._country = country
        self._country_code = country_code.lower()
        self._timeout = timeout
        self._email = email
        self._user_agent = user_agent
        self._min_interval = min_interval

    @property
    def provider_name(self) -> str:
        return "nominatim"

    def structured_queries(self, address: ParsedAddress) -> list[str]:
        """``street`` values to try, in order, without duplicates."""
        if not address.street_name:
            return []
        number = address.number or ""
        queries: list[str] = []
        way_name = expand_way_prefix(address.way_prefix)
        if way_name:
            queries.append(f"{number} {way_name} {address.street_name}".strip())
        queries.extend(f"{number} {name}".strip() for name in street_name_variants(address.street_name))
        return list(dict.fromkeys(queries))

    async def geocode(self, address: ParsedAddress) -> GeocodingResult | None:
        """Search structured variants, then free text; return the most precise hit.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
        base: dict[str, str | int] = {"format": "json", "limit": 1, "addressdetails": 1}
        base["countrycodes"] = self._country_code
        if self._email:
            base["email"] = self._email

        best: GeocodingResult | None = None
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers()) as client:
            attempts = 0
            for street in self.structured_queries(address):
                params = {
                    **base,
                    "street": street,
                    "city": self._city,
                    "county": self._county,
                    "country": self._country,
                }
                result = await self._search(client, params, pause=attempts > 0)
                attempts += 1
                if result is not None and result.is_better_than(best):
                    best = result
                if best is not None and best.quality == GeocodeQuality.EXACT:
                    return best

            query = ", ".join(part for part in (address.display(), self._city, self._county, self._country) if part)
            result = await self._search(client, {**base, "q": query}, pause=attempts > 0)
            if result is not None and result.is_better_than(best):
                best = result
        return best

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent, "Accept-Language": "es"}

    async def _search(
        self,
        client: httpx.AsyncClient,
        params: dict[str, Any],
        *,
        pause: bool,
    ) -> GeocodingResult | None:
        if pause and self._min_interval > 0:
            await asyncio.sleep(self._min_interval)
        try:
            response = await client.get(NOMINATIM_API_URL, params=params)
            response.raise_for_status()
            return self._parse_response(response.json())
        except httpx.TimeoutException as e:
            logger.warning("Nominatim geocoder timeout for address (redacted)")
            raise GeocodingProviderError("nominatim", "Geocoding request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"Nominatim geocoder HTTP error {e.response.status_code}")
            raise GeocodingProviderError(
                "nominatim",
                f"Provider returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            logger.warning("Nominatim geocoder connection error")
            raise GeocodingProviderError("nominatim", "Connection to geocoding provider failed") from e
        except ValueError as e:
            raise GeocodingProviderError("nominatim", f"Unreadable response: {e}") from e

    def _parse_response(self, data: list[dict]) -> GeocodingResult | None:
        """Turn the first search hit into a result; None when there is none."""
        if not data:
            return None
        best = data[0]
        try:
            lat = round(float(best["lat"]), 8)
            lon = round(float(best["lon"]), 8)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Failed to parse Nominatim response: {e}")
            raise GeocodingProviderError("nominatim", f"Failed to parse response: {e}") from e
        return GeocodingResult(
            latitude=lat,
            longitude=lon,
            quality=self._map_quality(best.get("type"), best.get("class")),
            provider=self.provider_name,
            matched_address=best.get("display_name"),
            raw_response={"results": data},
        )

    @staticmethod
    def _map_quality(osm_type: str | None, osm_class: str | None) -> GeocodeQuality:
        """Map a hit's OSM type/class to a precision level."""
        if osm_type in _HOUSE_TYPES:
            return GeocodeQuality.EXACT
        if osm_type in _STREET_TYPES or osm_class == "highway":
            return GeocodeQuality.GEOMETRIC_CENTER
        return GeocodeQuality.APPROXIMATE
