"""Unit tests for street range API endpoints."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from territory_api.api.errors import register_exception_handlers
from territory_api.api.v1.street_ranges import street_ranges_router
from territory_api.core.dependencies import get_async_session, get_current_user
from territory_api.lib.territory import (
    ConcurrentRangeEdit,
    ConflictError,
    InvalidRange,
    NotFound,
    RangeConflict,
    RangeValidation,
    Side,
)

STREET_ID = uuid.uuid4()
QUADRANT_ID = uuid.uuid4()


def _mock_user(role: str = "supervisor") -> MagicMock:
    user = MagicMock()
    user.id = uuid.uuid4()
    user.username = f"test{role}"
    user.role = role
    user.is_active = True
    return user


def _mock_range(**overrides) -> MagicMock:
    """Create a mock StreetRange."""
    defaults = {
        "id": uuid.uuid4(),
        "street_id": STREET_ID,
        "quadrant_id": QUADRANT_ID,
        "number_start": 100,
        "number_end": 199,
        "side": "EVEN",
        "priority": 1,
        "block": None,
        "from_intersection": "JR CUSCO",
        "to_intersection": "JR ICA",
        "notes": None,
        "status": "active",
        "created_at": datetime.now(UTC),
        "updated_at": datetime.now(UTC),
    }
    defaults.update(overrides)
    row = MagicMock()
    for k, v in defaults.items():
        setattr(row, k, v)
    return row


def _conflict(range_id: uuid.UUID | None = None) -> RangeConflict:
    return RangeConflict(
        range_id=range_id or uuid.uuid4(),
        quadrant_id=QUADRANT_ID,
        side=Side.BOTH,
        priority=1,
        overlap_start=150,
        overlap_end=199,
    )


def _build_app(user: MagicMock) -> FastAPI:
    test_app = FastAPI()
    register_exception_handlers(test_app)
    test_app.include_router(street_ranges_router, prefix="/api/v1")
    test_app.dependency_overrides[get_async_session] = lambda: AsyncMock()
    test_app.dependency_overrides[get_current_user] = lambda: user
    return test_app


@pytest.fixture
def supervisor() -> MagicMock:
    return _mock_user("supervisor")


@pytest.fixture
def client(supervisor: MagicMock) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=_build_app(supervisor)), base_url="http://test")


@pytest.fixture
def operator_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=_build_app(_mock_user("operator"))), base_url="http://test")


def _body(**overrides) -> dict:
    body = {
        "street_id": str(STREET_ID),
        "quadrant_id": str(QUADRANT_ID),
        "number_start": 100,
        "number_end": 199,
        "side": "EVEN",
    }
    body.update(overrides)
    return body


class TestValidateStreetRange:
    """Tests for POST /api/v1/street-ranges/validate."""

    async def test_reports_conflicts_and_overrides(self, operator_client: AsyncClient) -> None:
        validation = RangeValidation(conflicts=[_conflict()], overrides=[_conflict()])
        with patch(
            "territory_api.api.v1.street_ranges.validate_range_definition",
            new_callable=AsyncMock,
            return_value=validation,
        ):
            resp = await operator_client.post("/api/v1/street-ranges/validate", json=_body())

        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is False
        assert len(data["conflicts"]) == 1
        assert data["conflicts"][0]["overlap_start"] == 150
        assert len(data["overrides"]) == 1

    async def test_range_id_passed_for_edits(self, operator_client: AsyncClient) -> None:
        range_id = uuid.uuid4()
        with patch(
            "territory_api.api.v1.street_ranges.validate_range_definition",
            new_callable=AsyncMock,
            return_value=RangeValidation(),
        ) as mock_validate:
            resp = await operator_client.post(
                "/api/v1/street-ranges/validate", json=_body(range_id=str(range_id), block=None)
            )

        assert resp.status_code == 200
        assert resp.json()["ok"] is True
        candidate = mock_validate.call_args.args[1]
        assert candidate.id == range_id
        assert candidate.side is Side.EVEN

    async def test_malformed_range_422(self, operator_client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.validate_range_definition",
            new_callable=AsyncMock,
            return_value=InvalidRange("number_end (5) is lower than number_start (9)", field="number_end"),
        ):
            resp = await operator_client.post("/api/v1/street-ranges/validate", json=_body())

        assert resp.status_code == 422
        data = resp.json()
        assert data["code"] == "invalid_range"
        assert data["errors"] == [{"field": "number_end", "message": "number_end (5) is lower than number_start (9)"}]

    async def test_unknown_side_rejected_by_schema(self, operator_client: AsyncClient) -> None:
        resp = await operator_client.post("/api/v1/street-ranges/validate", json=_body(side="LEFT"))
        assert resp.status_code == 422


class TestCreateStreetRange:
    """Tests for POST /api/v1/street-ranges."""

    async def test_created(self, client: AsyncClient, supervisor: MagicMock) -> None:
        row = _mock_range(notes="survey")
        with patch(
            "territory_api.api.v1.street_ranges.create_range",
            new_callable=AsyncMock,
            return_value=row,
        ) as mock_create:
            resp = await client.post("/api/v1/street-ranges", json=_body(notes="survey"))

        assert resp.status_code == 201
        data = resp.json()
        assert data["id"] == str(row.id)
        assert data["side"] == "EVEN"
        assert data["notes"] == "survey"
        assert mock_create.call_args.kwargs["actor_id"] == supervisor.id
        assert mock_create.call_args.kwargs["notes"] == "survey"

    async def test_conflict_lists_every_range(self, client: AsyncClient) -> None:
        first, second = uuid.uuid4(), uuid.uuid4()
        with patch(
            "territory_api.api.v1.street_ranges.create_range",
            new_callable=AsyncMock,
            return_value=ConflictError([_conflict(first), _conflict(second)]),
        ):
            resp = await client.post("/api/v1/street-ranges", json=_body())

        assert resp.status_code == 409
        data = resp.json()
        assert data["code"] == "range_conflict"
        assert [e["range_id"] for e in data["errors"]] == [str(first), str(second)]

    async def test_concurrent_edit_409(self, client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.create_range",
            new_callable=AsyncMock,
            return_value=ConcurrentRangeEdit(STREET_ID),
        ):
            resp = await client.post("/api/v1/street-ranges", json=_body())

        assert resp.status_code == 409
        assert resp.json()["code"] == "concurrent_range_edit"

    async def test_unknown_street_404(self, client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.create_range",
            new_callable=AsyncMock,
            return_value=NotFound("street", STREET_ID),
        ):
            resp = await client.post("/api/v1/street-ranges", json=_body())

        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    async def test_unexpected_error_500(self, client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.create_range",
            new_callable=AsyncMock,
            side_effect=RuntimeError("database gone"),
        ):
            resp = await client.post("/api/v1/street-ranges", json=_body())

        assert resp.status_code == 500
        assert "database gone" not in resp.text

    async def test_operator_cannot_create(self, operator_client: AsyncClient) -> None:
        resp = await operator_client.post("/api/v1/street-ranges", json=_body())
        assert resp.status_code == 403
        assert "territory.street_range.write" in resp.json()["detail"]


class TestGetStreetRange:
    """Tests for GET /api/v1/street-ranges/{range_id}."""

    async def test_found(self, operator_client: AsyncClient) -> None:
        row = _mock_range()
        with patch("territory_api.api.v1.street_ranges.get_range", new_callable=AsyncMock, return_value=row):
            resp = await operator_client.get(f"/api/v1/street-ranges/{row.id}")

        assert resp.status_code == 200
        assert resp.json()["number_end"] == 199

    async def test_missing(self, operator_client: AsyncClient) -> None:
        with patch("territory_api.api.v1.street_ranges.get_range", new_callable=AsyncMock, return_value=None):
            resp = await operator_client.get(f"/api/v1/street-ranges/{uuid.uuid4()}")

        assert resp.status_code == 404


class TestUpdateStreetRange:
    """Tests for PUT /api/v1/street-ranges/{range_id}."""

    async def test_only_sent_fields_forwarded(self, client: AsyncClient) -> None:
        row = _mock_range(priority=2)
        with patch(
            "territory_api.api.v1.street_ranges.update_range",
            new_callable=AsyncMock,
            return_value=row,
        ) as mock_update:
            resp = await client.put(f"/api/v1/street-ranges/{row.id}", json={"priority": 2, "notes": None})

        assert resp.status_code == 200
        assert resp.json()["priority"] == 2
        assert mock_update.call_args.args[2] == {"priority": 2, "notes": None}

    async def test_conflict(self, client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.update_range",
            new_callable=AsyncMock,
            return_value=ConflictError([_conflict()]),
        ):
            resp = await client.put(f"/api/v1/street-ranges/{uuid.uuid4()}", json={"number_start": 1})

        assert resp.status_code == 409


class TestDeleteStreetRange:
    """Tests for DELETE /api/v1/street-ranges/{range_id}."""

    async def test_supervisor_deletes(self, client: AsyncClient) -> None:
        with patch(
            "territory_api.api.v1.street_ranges.delete_range",
            new_callable=AsyncMock,
            return_value=_mock_range(status="deleted"),
        ):
            resp = await client.delete(f"/api/v1/street-ranges/{uuid.uuid4()}")

        assert resp.status_code == 204

    async def test_missing_range(self, client: AsyncClient) -> None:
        range_id = uuid.uuid4()
        with patch(
            "territory_api.api.v1.street_ranges.delete_range",
            new_callable=AsyncMock,
            return_value=NotFound("street range", range_id),
        ):
            resp = await client.delete(f"/api/v1/street-ranges/{range_id}")

        assert resp.status_code == 404

    async def test_viewer_forbidden(self) -> None:
        app = _build_app(_mock_user("viewer"))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as viewer_client:
            resp = await viewer_client.delete(f"/api/v1/street-ranges/{uuid.uuid4()}")

        assert resp.status_code == 403
