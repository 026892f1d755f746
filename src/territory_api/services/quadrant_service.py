"""Quadrant service — lookups and proximity search over active quadrants."""

import uuid

from loguru import logger
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.lib.territory import (
    GridIndex,
    InvalidArgument,
    NearbyQuadrant,
    QuadrantPoint,
    bounding_box,
    near,
    polygon_centroid,
    validate_coordinates,
)
from territory_api.lib.territory.geo import validate_radius
from territory_api.models.base import LifecycleStatus
from territory_api.models.quadrant import Quadrant
from territory_api.models.subsector import Subsector


def to_quadrant_point(quadrant: Quadrant, sector_id: uuid.UUID | None = None) -> QuadrantPoint | None:
    """Reduce a quadrant to its search point.

    Uses the stored center, falling back to the polygon centroid. Returns
    None when the quadrant has neither.

    Args:
        quadrant: Quadrant row.
        sector_id: Owning sector as resolved by :func:`owning_sector_ids`.
    """
    if quadrant.latitude is not None and quadrant.longitude is not None:
        lat, lng = quadrant.latitude, quadrant.longitude
    else:
        centroid = polygon_centroid(quadrant.polygon)
        if centroid is None:
            return None
        lat, lng = centroid
    return QuadrantPoint(
        id=quadrant.id,
        code=quadrant.quadrant_code,
        latitude=lat,
        longitude=lng,
        name=quadrant.name,
        sector_id=sector_id,
        subsector_id=quadrant.subsector_id,
        radius_meters=quadrant.radius_meters,
    )


async def owning_sector_ids(session: AsyncSession, quadrants: list[Quadrant]) -> dict[uuid.UUID, uuid.UUID | None]:
    """Map each quadrant to the sector that owns it.

    Quadrants under a subsector belong to the subsector's sector; an inactive
    or missing subsector leaves the quadrant without a sector. Subsectors are
    loaded in one query.
    """
    subsector_ids = {q.subsector_id for q in quadrants if q.subsector_id is not None}
    via_subsector: dict[uuid.UUID, uuid.UUID] = {}
    if subsector_ids:
        result = await session.execute(
            select(Subsector.id, Subsector.sector_id).where(
                Subsector.id.in_(subsector_ids),
                Subsector.status == LifecycleStatus.ACTIVE,
            )
        )
        via_subsector = {row.id: row.sector_id for row in result}

    owners: dict[uuid.UUID, uuid.UUID | None] = {}
    for quadrant in quadrants:
        if quadrant.subsector_id is None:
            owners[quadrant.id] = quadrant.sector_id
        else:
            owners[quadrant.id] = via_subsector.get(quadrant.subsector_id)
    return owners


async def _to_points(session: AsyncSession, quadrants: list[Quadrant]) -> list[QuadrantPoint]:
    owners = await owning_sector_ids(session, quadrants)
    points = []
    for quadrant in quadrants:
        point = to_quadrant_point(quadrant, owners[quadrant.id])
        if point is None:
            logger.debug(f"Quadrant {quadrant.quadrant_code} has no center or usable polygon; skipped")
            continue
        points.append(point)
    return points


async def get_quadrant(session: AsyncSession, quadrant_id: uuid.UUID) -> Quadrant | None:
    """Get a non-deleted quadrant by ID."""
    quadrant = await session.get(Quadrant, quadrant_id)
    if quadrant is None or quadrant.status == LifecycleStatus.DELETED:
        return None
    return quadrant


async def find_nearby_quadrants(
    session: AsyncSession,
    lat: float,
    lng: float,
    radius_km: float,
) -> list[NearbyQuadrant] | InvalidArgument:
    """Find active quadrants whose center is within ``radius_km`` of a point.

    A lat/lng bounding box narrows the rows loaded from the database;
    quadrants without a stored center are always loaded so their polygon
    centroid can be measured. Exact inclusion and ordering come from
    :func:`near`.

    Args:
        session: Database session.
        lat: Query latitude.
        lng: Query longitude.
        radius_km: Search radius in kilometers.

    Returns:
        ``(quadrant point, distance_km)`` pairs nearest first, or
        InvalidArgument for out-of-range input.
    """
    try:
        validate_coordinates(lat, lng)
        validate_radius(radius_km)
    except InvalidArgument as e:
        return e

    box = bounding_box(lat, lng, radius_km)
    query = select(Quadrant).where(
        Quadrant.status == LifecycleStatus.ACTIVE,
        or_(
            and_(
                Quadrant.latitude.between(box.min_lat, box.max_lat),
                Quadrant.longitude.between(box.min_lng, box.max_lng),
            ),
            and_(
                or_(Quadrant.latitude.is_(None), Quadrant.longitude.is_(None)),
                Quadrant.polygon.is_not(None),
            ),
        ),
    )
    quadrants = list((await session.execute(query)).scalars().all())
    return near(lat, lng, radius_km, await _to_points(session, quadrants))


async def build_grid_index(session: AsyncSession, cell_deg: float) -> GridIndex:
    """Load every active quadrant into an in-memory grid index."""
    result = await session.execute(
        select(Quadrant).where(Quadrant.status == LifecycleStatus.ACTIVE).order_by(Quadrant.quadrant_code)
    )
    index = GridIndex(await _to_points(session, list(result.scalars().all())), cell_deg=cell_deg)
    logger.info(f"Built quadrant grid index: {len(index)} quadrant(s), {cell_deg} deg cells")
    return index
