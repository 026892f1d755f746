"""Interfaces the resolution core reads master data through.

Concrete implementations live in the service layer, where database sessions
are available; the core only depends on these abstractions.
"""

import uuid
from abc import ABC, abstractmethod

from territory_api.lib.territory.types import QuadrantRef, RangeRecord, SectorRef, StreetRef


class TerritorialCatalogGateway(ABC):
    """Read access to streets, quadrants and their owning sectors."""

    @abstractmethod
    async def get_street(self, street_id: uuid.UUID) -> StreetRef | None:
        """Return the street, or None if it does not exist."""

    @abstractmethod
    async def get_quadrant(self, quadrant_id: uuid.UUID) -> QuadrantRef | None:
        """Return the quadrant, or None if it does not exist."""

    @abstractmethod
    async def get_sector_for_quadrant(self, quadrant_id: uuid.UUID) -> SectorRef | None:
        """Return the sector owning a quadrant.

        Follows quadrant -> subsector -> sector when the quadrant belongs to a
        subsector, and quadrant -> sector otherwise.
        """


class RangeStore(ABC):
    """Persistence for street range records."""

    @abstractmethod
    async def list_active_ranges(self, street_id: uuid.UUID) -> list[RangeRecord]:
        """Return every active, non-deleted range of a street."""

    @abstractmethod
    async def upsert(self, record: RangeRecord) -> uuid.UUID:
        """Insert a new range (``record.id is None``) or update an existing one.

        Only called after the record passed validation.
        """
