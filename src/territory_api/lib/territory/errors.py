"""Error taxonomy for territorial resolution.

Every class here is a legitimate business outcome the caller branches on.
The core *returns* instances of these instead of raising them, so a caller
can write ``if isinstance(result, NoCoverage): ...``; they subclass
``Exception`` so the service layer may still raise one where unwinding is
more natural. Storage failures are never wrapped in these types.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from territory_api.lib.territory.types import RangeConflict


class TerritoryError(Exception):
    """Base class for all resolution outcomes that are not a success."""

    code = "territory_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRange(TerritoryError):
    """Malformed range definition, rejected before any conflict check."""

    code = "invalid_range"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class ConflictError(TerritoryError):
    """One or more active ranges collide with a candidate at equal priority."""

    code = "range_conflict"

    def __init__(self, conflicts: list[RangeConflict]) -> None:
        self.conflicts = list(conflicts)
        ids = ", ".join(str(c.range_id) for c in self.conflicts)
        super().__init__(f"Range overlaps {len(self.conflicts)} existing range(s) with the same priority: {ids}")


class NoCoverage(TerritoryError):
    """No range covers the address; the operator must pick a quadrant manually."""

    code = "no_coverage"

    def __init__(self, street_id: uuid.UUID, number: int | None = None, block: str | None = None) -> None:
        self.street_id = street_id
        self.number = number
        self.block = block
        if number is not None:
            target = f"number {number}"
        elif block is not None:
            target = f"block {block}"
        else:
            target = "this address"
        super().__init__(f"No quadrant range covers {target} on street {street_id}")


class NotFound(TerritoryError):
    """A referenced street, quadrant or sector does not exist or is inactive."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: uuid.UUID) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found or inactive")


class InvalidArgument(TerritoryError):
    """Out-of-domain input such as bad coordinates or a non-positive radius."""

    code = "invalid_argument"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class ConcurrentRangeEdit(TerritoryError):
    """Another writer changed the street's ranges between validation and commit."""

    code = "concurrent_range_edit"

    def __init__(self, street_id: uuid.UUID) -> None:
        self.street_id = street_id
        super().__init__(f"Ranges for street {street_id} were modified concurrently; reload and retry")


class NoGeocodeMatch(TerritoryError):
    """Neither the catalog nor any provider could place the address."""

    code = "no_geocode_match"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No coordinates found for {address!r}")


class GeocoderUnavailable(TerritoryError):
    """Every configured geocoding provider failed."""

    code = "geocoder_unavailable"

    def __init__(self, provider_name: str, reason: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"Geocoding provider {provider_name} failed: {reason}")


ResolutionError = NoCoverage | NotFound | InvalidArgument
