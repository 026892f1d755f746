"""Pydantic v2 schemas for quadrant lookups and proximity search."""

import uuid

from pydantic import BaseModel, Field

from territory_api.lib.territory import NearbyQuadrant
from territory_api.models.quadrant import Quadrant


class NearbyQuadrantResponse(BaseModel):
    """A quadrant within the search radius."""

    id: uuid.UUID
    quadrant_code: str
    name: str | None = None
    sector_id: uuid.UUID | None = None
    subsector_id: uuid.UUID | None = None
    latitude: float
    longitude: float
    radius_meters: int | None = None
    distance_km: float = Field(description="Great-circle distance from the query point")

    @classmethod
    def from_hit(cls, hit: NearbyQuadrant) -> "NearbyQuadrantResponse":
        quadrant = hit.quadrant
        return cls(
            id=quadrant.id,
            quadrant_code=quadrant.code,
            name=quadrant.name,
            sector_id=quadrant.sector_id,
            subsector_id=quadrant.subsector_id,
            latitude=quadrant.latitude,
            longitude=quadrant.longitude,
            radius_meters=quadrant.radius_meters,
            distance_km=round(hit.distance_km, 4),
        )


class NearbyQuadrantListResponse(BaseModel):
    """Quadrants near a point, nearest first."""

    latitude: float
    longitude: float
    radius_km: float
    items: list[NearbyQuadrantResponse]


class QuadrantResponse(BaseModel):
    """A quadrant with its owning sector resolved through the subsector, if any."""

    id: uuid.UUID
    quadrant_code: str
    name: str | None = None
    sector_id: uuid.UUID | None = Field(None, description="Owning sector; None when the ownership chain is broken")
    subsector_id: uuid.UUID | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_meters: int | None = None
    status: str

    @classmethod
    def from_row(cls, quadrant: Quadrant, sector_id: uuid.UUID | None) -> "QuadrantResponse":
        return cls(
            id=quadrant.id,
            quadrant_code=quadrant.quadrant_code,
            name=quadrant.name,
            sector_id=sector_id,
            subsector_id=quadrant.subsector_id,
            latitude=quadrant.latitude,
            longitude=quadrant.longitude,
            radius_meters=quadrant.radius_meters,
            status=quadrant.status,
        )
