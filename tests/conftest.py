"""Shared test fixtures for async database, sessions, a seeded catalog, and auth tokens."""

import uuid
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from territory_api.core.config import Settings
from territory_api.core.database import engine_options
from territory_api.core.security import create_access_token
from territory_api.models import Quadrant, Sector, Street, StreetRange, Subsector, User
from territory_api.models.base import Base, LifecycleStatus


@pytest.fixture
def settings() -> Settings:
    """Test application settings."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        jwt_algorithm="HS256",
        jwt_access_token_expire_minutes=30,
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine shared by every session of a test."""
    url = "sqlite+aiosqlite:///:memory:"
    engine = create_async_engine(url, **engine_options(url))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
async def async_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    """Create a per-test async session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def territory(async_session: AsyncSession) -> SimpleNamespace:
    """Seed a small territorial catalog and return the ids of its rows.

    Layout (Lima, Cercado):
        S01 sector
        ├── Q01 quadrant (direct), center -12.0464, -77.0428
        ├── SS01 subsector
        │   └── Q02 quadrant, center -12.0560, -77.0350
        └── Q09 quadrant, inactive
        S02 sector, inactive
        └── Q05 quadrant (active, but its sector is not)
        AV AREQUIPA street (active), JR CUSCO street (active), CA VIEJA street (inactive)
    """
    s01 = Sector(id=uuid.uuid4(), sector_code="S01", name="Cercado Norte")
    s02 = Sector(id=uuid.uuid4(), sector_code="S02", name="Retired", status=LifecycleStatus.INACTIVE.value)
    ss01 = Subsector(id=uuid.uuid4(), subsector_code="SS01", name="Centro Histórico", sector_id=s01.id)
    q01 = Quadrant(
        id=uuid.uuid4(),
        quadrant_code="Q01",
        name="Plaza Mayor",
        sector_id=s01.id,
        latitude=-12.0464,
        longitude=-77.0428,
    )
    q02 = Quadrant(
        id=uuid.uuid4(),
        quadrant_code="Q02",
        name="Barrios Altos",
        subsector_id=ss01.id,
        latitude=-12.0560,
        longitude=-77.0350,
    )
    q09 = Quadrant(
        id=uuid.uuid4(),
        quadrant_code="Q09",
        name="Closed",
        sector_id=s01.id,
        latitude=-12.0470,
        longitude=-77.0430,
        status=LifecycleStatus.INACTIVE.value,
    )
    q05 = Quadrant(
        id=uuid.uuid4(),
        quadrant_code="Q05",
        name="Orphaned",
        sector_id=s02.id,
        latitude=-12.2000,
        longitude=-77.0000,
    )
    arequipa = Street(id=uuid.uuid4(), street_code="ST-001", way_type="AV", name="AREQUIPA", full_name="AV AREQUIPA")
    cusco = Street(id=uuid.uuid4(), street_code="ST-002", way_type="JR", name="CUSCO", full_name="JR CUSCO")
    vieja = Street(
        id=uuid.uuid4(),
        street_code="ST-003",
        way_type="CA",
        name="VIEJA",
        full_name="CA VIEJA",
        status=LifecycleStatus.INACTIVE.value,
    )
    admin = User(id=uuid.uuid4(), username="testadmin", email="admin@test.com", role="admin", is_active=True)

    async_session.add_all([s01, s02])
    await async_session.flush()
    async_session.add(ss01)
    await async_session.flush()
    async_session.add_all([q01, q02, q09, q05, arequipa, cusco, vieja, admin])
    await async_session.commit()

    return SimpleNamespace(
        sector=s01.id,
        inactive_sector=s02.id,
        subsector=ss01.id,
        q01=q01.id,
        q02=q02.id,
        inactive_quadrant=q09.id,
        orphan_quadrant=q05.id,
        street=arequipa.id,
        other_street=cusco.id,
        inactive_street=vieja.id,
        admin=admin.id,
    )


@pytest.fixture
def add_range(async_session: AsyncSession):  # noqa: ANN201
    """Insert a range row directly, bypassing validation."""

    async def _add(street_id: uuid.UUID, quadrant_id: uuid.UUID, **fields: object) -> uuid.UUID:
        row = StreetRange(id=uuid.uuid4(), street_id=street_id, quadrant_id=quadrant_id, **fields)
        async_session.add(row)
        await async_session.commit()
        return row.id

    return _add


def _token(settings: Settings, username: str, role: str) -> str:
    return create_access_token(
        subject=username,
        role=role,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


@pytest.fixture
def admin_token(settings: Settings) -> str:
    """Generate a JWT access token for an admin user."""
    return _token(settings, "testadmin", "admin")


@pytest.fixture
def operator_token(settings: Settings) -> str:
    """Generate a JWT access token for an operator user."""
    return _token(settings, "testoperator", "operator")


@pytest.fixture
def viewer_token(settings: Settings) -> str:
    """Generate a JWT access token for a viewer user."""
    return _token(settings, "testviewer", "viewer")
