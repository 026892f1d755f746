"""Unit tests for street API endpoints."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from territory_api.api.errors import register_exception_handlers
from territory_api.api.v1.streets import streets_router
from territory_api.core.dependencies import get_async_session, get_current_user
from territory_api.lib.territory import NotFound


def _mock_range(street_id: uuid.UUID, number_start: int | None) -> MagicMock:
    row = MagicMock()
    row.id = uuid.uuid4()
    row.street_id = street_id
    row.quadrant_id = uuid.uuid4()
    row.number_start = number_start
    row.number_end = None if number_start is None else number_start + 99
    row.side = "BOTH"
    row.priority = 1
    row.block = None
    row.from_intersection = None
    row.to_intersection = None
    row.notes = None
    row.status = "active"
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


@pytest.fixture
def client() -> AsyncClient:
    user = MagicMock()
    user.username = "testviewer"
    user.role = "viewer"
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(streets_router, prefix="/api/v1")
    app.dependency_overrides[get_async_session] = lambda: AsyncMock()
    app.dependency_overrides[get_current_user] = lambda: user
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestListStreetRanges:
    """Tests for GET /api/v1/streets/{street_id}/ranges."""

    async def test_lists_ranges(self, client: AsyncClient) -> None:
        street_id = uuid.uuid4()
        rows = [_mock_range(street_id, 1), _mock_range(street_id, None)]
        with patch("territory_api.api.v1.streets.list_street_ranges", new_callable=AsyncMock, return_value=rows):
            resp = await client.get(f"/api/v1/streets/{street_id}/ranges")

        assert resp.status_code == 200
        data = resp.json()
        assert [r["number_start"] for r in data] == [1, None]

    async def test_unknown_street(self, client: AsyncClient) -> None:
        street_id = uuid.uuid4()
        with patch(
            "territory_api.api.v1.streets.list_street_ranges",
            new_callable=AsyncMock,
            return_value=NotFound("street", street_id),
        ):
            resp = await client.get(f"/api/v1/streets/{street_id}/ranges")

        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    async def test_malformed_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/streets/not-a-uuid/ranges")
        assert resp.status_code == 422
