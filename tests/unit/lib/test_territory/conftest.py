"""In-memory gateway and store fixtures for the territory library."""

import uuid
from dataclasses import replace

import pytest

from territory_api.lib.territory import (
    AddressResolver,
    QuadrantRef,
    RangeRecord,
    RangeRegistry,
    RangeStore,
    SectorRef,
    StreetRef,
    TerritorialCatalogGateway,
)


class InMemoryCatalog(TerritorialCatalogGateway):
    """Catalog gateway over plain dicts."""

    def __init__(self) -> None:
        self.streets: dict[uuid.UUID, StreetRef] = {}
        self.quadrants: dict[uuid.UUID, QuadrantRef] = {}
        self.sectors: dict[uuid.UUID, SectorRef] = {}
        self.subsector_sector: dict[uuid.UUID, uuid.UUID] = {}

    def add_street(self, name: str, *, active: bool = True) -> uuid.UUID:
        street_id = uuid.uuid4()
        self.streets[street_id] = StreetRef(id=street_id, name=name, active=active)
        return street_id

    def add_sector(self, code: str, *, active: bool = True) -> uuid.UUID:
        sector_id = uuid.uuid4()
        self.sectors[sector_id] = SectorRef(id=sector_id, code=code, name=f"Sector {code}", active=active)
        return sector_id

    def add_subsector(self, sector_id: uuid.UUID) -> uuid.UUID:
        subsector_id = uuid.uuid4()
        self.subsector_sector[subsector_id] = sector_id
        return subsector_id

    def add_quadrant(
        self,
        code: str,
        *,
        sector_id: uuid.UUID | None = None,
        subsector_id: uuid.UUID | None = None,
        active: bool = True,
    ) -> uuid.UUID:
        quadrant_id = uuid.uuid4()
        self.quadrants[quadrant_id] = QuadrantRef(
            id=quadrant_id,
            code=code,
            active=active,
            sector_id=sector_id,
            subsector_id=subsector_id,
        )
        return quadrant_id

    async def get_street(self, street_id: uuid.UUID) -> StreetRef | None:
        return self.streets.get(street_id)

    async def get_quadrant(self, quadrant_id: uuid.UUID) -> QuadrantRef | None:
        return self.quadrants.get(quadrant_id)

    async def get_sector_for_quadrant(self, quadrant_id: uuid.UUID) -> SectorRef | None:
        quadrant = self.quadrants.get(quadrant_id)
        if quadrant is None:
            return None
        sector_id = quadrant.sector_id
        if quadrant.subsector_id is not None:
            sector_id = self.subsector_sector.get(quadrant.subsector_id)
        return self.sectors.get(sector_id) if sector_id is not None else None


class InMemoryRangeStore(RangeStore):
    """Range store over a dict, recording upsert calls."""

    def __init__(self) -> None:
        self.records: dict[uuid.UUID, RangeRecord] = {}
        self.upserts = 0

    def seed(self, record: RangeRecord) -> RangeRecord:
        if record.id is None:
            record = replace(record, id=uuid.uuid4())
        self.records[record.id] = record  # type: ignore[index]
        return record

    async def list_active_ranges(self, street_id: uuid.UUID) -> list[RangeRecord]:
        return [r for r in self.records.values() if r.street_id == street_id and r.active]

    async def upsert(self, record: RangeRecord) -> uuid.UUID:
        self.upserts += 1
        stored = self.seed(record)
        return stored.id  # type: ignore[return-value]


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture
def store() -> InMemoryRangeStore:
    return InMemoryRangeStore()


@pytest.fixture
def registry(store: InMemoryRangeStore, catalog: InMemoryCatalog) -> RangeRegistry:
    return RangeRegistry(store, catalog)


@pytest.fixture
def resolver(registry: RangeRegistry, catalog: InMemoryCatalog) -> AddressResolver:
    return AddressResolver(registry, catalog)
