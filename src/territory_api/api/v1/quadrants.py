"""Quadrant API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.config import Settings, get_settings
from territory_api.core.dependencies import get_async_session, require_capability
from territory_api.core.permissions import Capability
from territory_api.lib.territory import InvalidArgument
from territory_api.models.user import User
from territory_api.schemas.common import ErrorResponse
from territory_api.schemas.quadrant import NearbyQuadrantListResponse, NearbyQuadrantResponse, QuadrantResponse
from territory_api.services.quadrant_service import find_nearby_quadrants, get_quadrant, owning_sector_ids

quadrants_router = APIRouter(prefix="/quadrants", tags=["quadrants"])


@quadrants_router.get(
    "/nearby",
    response_model=NearbyQuadrantListResponse,
    responses={422: {"model": ErrorResponse, "description": "Coordinates or radius out of range"}},
)
async def list_nearby_quadrants(
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    _current_user: Annotated[User, Depends(require_capability(Capability.QUADRANT_READ))],
    lat: float = Query(..., description="Latitude of the search point"),
    lng: float = Query(..., description="Longitude of the search point"),
    radius_km: float | None = Query(None, description="Search radius in kilometers"),
) -> NearbyQuadrantListResponse:
    """List active quadrants whose center is within the radius, nearest first."""
    radius = settings.proximity_default_radius_km if radius_km is None else radius_km
    if radius > settings.proximity_max_radius_km:
        raise InvalidArgument(
            f"Radius must not exceed {settings.proximity_max_radius_km} km, got {radius}",
            field="radius_km",
        )
    result = await find_nearby_quadrants(session, lat, lng, radius)
    if isinstance(result, InvalidArgument):
        raise result
    return NearbyQuadrantListResponse(
        latitude=lat,
        longitude=lng,
        radius_km=radius,
        items=[NearbyQuadrantResponse.from_hit(hit) for hit in result],
    )


@quadrants_router.get("/{quadrant_id}", response_model=QuadrantResponse)
async def get_quadrant_detail(
    quadrant_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.QUADRANT_READ))],
) -> QuadrantResponse:
    """Get a quadrant, inactive ones included, with its owning sector."""
    quadrant = await get_quadrant(session, quadrant_id)
    if quadrant is None:
        raise HTTPException(status_code=404, detail="Quadrant not found.")
    owners = await owning_sector_ids(session, [quadrant])
    return QuadrantResponse.from_row(quadrant, owners[quadrant.id])
