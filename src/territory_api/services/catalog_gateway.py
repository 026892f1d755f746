"""SQLAlchemy-backed catalog gateway and range store.

Implements the territory library's gateway interfaces on top of an
``AsyncSession``. Rows are converted to plain value types here so the
library never touches the ORM.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.lib.territory import (
    QuadrantRef,
    RangeRecord,
    RangeStore,
    SectorRef,
    Side,
    StreetRef,
    TerritorialCatalogGateway,
)
from territory_api.models.base import LifecycleStatus
from territory_api.models.quadrant import Quadrant
from territory_api.models.sector import Sector
from territory_api.models.street import Street
from territory_api.models.street_range import StreetRange
from territory_api.models.subsector import Subsector


def to_range_record(row: StreetRange) -> RangeRecord:
    """Convert a StreetRange row to the library's RangeRecord."""
    return RangeRecord(
        id=row.id,
        street_id=row.street_id,
        quadrant_id=row.quadrant_id,
        number_start=row.number_start,
        number_end=row.number_end,
        side=Side(row.side),
        priority=row.priority,
        block=row.block,
        active=row.status == LifecycleStatus.ACTIVE,
        from_intersection=row.from_intersection,
        to_intersection=row.to_intersection,
    )


class SqlCatalogGateway(TerritorialCatalogGateway):
    """Catalog gateway reading streets, quadrants and sectors from the database."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_street(self, street_id: uuid.UUID) -> StreetRef | None:
        street = await self._session.get(Street, street_id)
        if street is None:
            return None
        return StreetRef(
            id=street.id,
            name=street.full_name,
            active=street.is_active,
            range_revision=street.range_revision,
        )

    async def get_quadrant(self, quadrant_id: uuid.UUID) -> QuadrantRef | None:
        quadrant = await self._session.get(Quadrant, quadrant_id)
        if quadrant is None:
            return None
        return QuadrantRef(
            id=quadrant.id,
            code=quadrant.quadrant_code,
            active=quadrant.is_active,
            sector_id=quadrant.sector_id,
            subsector_id=quadrant.subsector_id,
        )

    async def get_sector_for_quadrant(self, quadrant_id: uuid.UUID) -> SectorRef | None:
        """Return the owning sector, going through the subsector when there is one.

        An inactive subsector breaks the chain and yields None.
        """
        quadrant = await self._session.get(Quadrant, quadrant_id)
        if quadrant is None:
            return None

        sector_id = quadrant.sector_id
        if quadrant.subsector_id is not None:
            subsector = await self._session.get(Subsector, quadrant.subsector_id)
            if subsector is None or not subsector.is_active:
                return None
            sector_id = subsector.sector_id
        if sector_id is None:
            return None

        sector = await self._session.get(Sector, sector_id)
        if sector is None:
            return None
        return SectorRef(id=sector.id, code=sector.sector_code, name=sector.name, active=sector.is_active)


class SqlRangeStore(RangeStore):
    """Range store over the ``street_ranges`` table.

    Writes are flushed, not committed; the caller owns the transaction.

    Args:
        session: Database session.
        actor_id: User recorded in ``created_by``/``updated_by`` on writes.
    """

    def __init__(self, session: AsyncSession, actor_id: uuid.UUID | None = None) -> None:
        self._session = session
        self._actor_id = actor_id

    async def list_active_ranges(self, street_id: uuid.UUID) -> list[RangeRecord]:
        result = await self._session.execute(
            select(StreetRange)
            .where(
                StreetRange.street_id == street_id,
                StreetRange.status == LifecycleStatus.ACTIVE,
            )
            .order_by(StreetRange.priority, StreetRange.id)
        )
        return [to_range_record(row) for row in result.scalars().all()]

    async def upsert(self, record: RangeRecord) -> uuid.UUID:
        values = {
            "street_id": record.street_id,
            "quadrant_id": record.quadrant_id,
            "number_start": record.number_start,
            "number_end": record.number_end,
            "side": record.side.value,
            "priority": record.priority,
            "block": record.block,
            "from_intersection": record.from_intersection,
            "to_intersection": record.to_intersection,
        }
        if record.id is None:
            row = StreetRange(**values, created_by=self._actor_id, updated_by=self._actor_id)
            self._session.add(row)
        else:
            row = await self._session.get(StreetRange, record.id)
            if row is None:
                msg = f"Street range {record.id} vanished during upsert"
                raise LookupError(msg)
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_by = self._actor_id
        await self._session.flush()
        return row.id
