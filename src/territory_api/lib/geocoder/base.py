"""Abstract geocoder interface and shared result types."""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum

from territory_api.lib.geocoder.address import ParsedAddress


class GeocodeQuality(StrEnum):
    """Precision of a geocoded point, from most to least precise."""

    EXACT = "exact"
    INTERPOLATED = "interpolated"
    GEOMETRIC_CENTER = "geometric_center"
    APPROXIMATE = "approximate"


# Lower is better
QUALITY_RANK: dict[GeocodeQuality, int] = {
    GeocodeQuality.EXACT: 0,
    GeocodeQuality.INTERPOLATED: 1,
    GeocodeQuality.GEOMETRIC_CENTER: 2,
    GeocodeQuality.APPROXIMATE: 3,
}


@dataclass
class GeocodingResult:
    """A point found for an address.

    Attributes:
        latitude: Latitude in degrees.
        longitude: Longitude in degrees.
        quality: Precision of the point.
        provider: Name of the provider that produced it.
        matched_address: Address text the provider matched.
        reference_address_id: Stored address the point was borrowed from,
            for approximations from the local catalog.
        raw_response: Provider payload, when there is one.
    """

    latitude: float
    longitude: float
    quality: GeocodeQuality
    provider: str
    matched_address: str | None = None
    reference_address_id: uuid.UUID | None = None
    raw_response: dict | None = None

    def __post_init__(self) -> None:
        if not (-90 <= self.latitude <= 90):
            msg = f"latitude must be between -90 and 90, got {self.latitude}"
            raise ValueError(msg)
        if not (-180 <= self.longitude <= 180):
            msg = f"longitude must be between -180 and 180, got {self.longitude}"
            raise ValueError(msg)

    def is_better_than(self, other: "GeocodingResult | None") -> bool:
        return other is None or QUALITY_RANK[self.quality] < QUALITY_RANK[other.quality]


class GeocodingProviderError(Exception):
    """Raised when a provider fails (timeout, HTTP error, unreadable payload).

    A successful response without a match is not an error; providers return
    None for that.

    Args:
        provider_name: Name of the failing provider.
        message: Human-readable error description.
        status_code: HTTP status code from the provider, if any.
    """

    def __init__(self, provider_name: str, message: str, status_code: int | None = None) -> None:
        self.provider_name = provider_name
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider_name}: {message}")


class BaseGeocoder(ABC):
    """Geocoder provider interface."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique provider name, stored as the address's geocode source."""

    @abstractmethod
    async def geocode(self, address: ParsedAddress) -> GeocodingResult | None:
        """Find a point for an address.

        Returns:
            GeocodingResult, or None if the provider has no match.

        Raises:
            GeocodingProviderError: On transport or service errors.
        """
