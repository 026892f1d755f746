"""Street range API endpoints — validation, create, edit and soft delete."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.dependencies import get_async_session, require_capability
from territory_api.core.permissions import Capability
from territory_api.lib.territory import TerritoryError
from territory_api.models.user import User
from territory_api.schemas.common import ErrorResponse
from territory_api.schemas.street_range import (
    RangeValidationResponse,
    StreetRangeCreateRequest,
    StreetRangeResponse,
    StreetRangeUpdateRequest,
    StreetRangeValidateRequest,
)
from territory_api.services.range_service import (
    build_candidate,
    create_range,
    delete_range,
    get_range,
    update_range,
    validate_range_definition,
)

street_ranges_router = APIRouter(prefix="/street-ranges", tags=["street-ranges"])

_WRITE_RESPONSES: dict[int | str, dict] = {
    404: {"model": ErrorResponse, "description": "Street, quadrant or range not found"},
    409: {"model": ErrorResponse, "description": "Conflicting ranges or concurrent edit"},
    422: {"model": ErrorResponse, "description": "Malformed range"},
}


def _internal_error(action: str, exc: Exception) -> HTTPException:
    logger.error(f"Unexpected error {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal server error {action}.",
    )


@street_ranges_router.post("/validate", response_model=RangeValidationResponse, responses=_WRITE_RESPONSES)
async def validate_street_range(
    body: StreetRangeValidateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_VALIDATE))],
) -> RangeValidationResponse:
    """Check a range definition without saving it.

    Returns every conflicting range and every overlap resolved by priority.
    """
    candidate = build_candidate(
        range_id=body.range_id,
        street_id=body.street_id,
        quadrant_id=body.quadrant_id,
        number_start=body.number_start,
        number_end=body.number_end,
        side=body.side,
        priority=body.priority,
        block=body.block,
        from_intersection=body.from_intersection,
        to_intersection=body.to_intersection,
    )
    try:
        result = await validate_range_definition(session, candidate)
    except Exception as e:
        raise _internal_error("validating street range", e) from e
    if isinstance(result, TerritoryError):
        raise result
    return RangeValidationResponse.from_validation(result)


@street_ranges_router.post(
    "",
    response_model=StreetRangeResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_WRITE_RESPONSES,
)
async def create_street_range(
    body: StreetRangeCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_WRITE))],
) -> StreetRangeResponse:
    """Create a street range. Rejected with 409 and the full conflict list on overlap."""
    candidate = build_candidate(
        street_id=body.street_id,
        quadrant_id=body.quadrant_id,
        number_start=body.number_start,
        number_end=body.number_end,
        side=body.side,
        priority=body.priority,
        block=body.block,
        from_intersection=body.from_intersection,
        to_intersection=body.to_intersection,
    )
    try:
        result = await create_range(session, candidate, actor_id=current_user.id, notes=body.notes)
    except Exception as e:
        raise _internal_error("creating street range", e) from e
    if isinstance(result, TerritoryError):
        raise result
    return StreetRangeResponse.model_validate(result)


@street_ranges_router.get("/{range_id}", response_model=StreetRangeResponse)
async def get_street_range(
    range_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_READ))],
) -> StreetRangeResponse:
    row = await get_range(session, range_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Street range not found.")
    return StreetRangeResponse.model_validate(row)


@street_ranges_router.put("/{range_id}", response_model=StreetRangeResponse, responses=_WRITE_RESPONSES)
async def update_street_range(
    range_id: uuid.UUID,
    body: StreetRangeUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_WRITE))],
) -> StreetRangeResponse:
    """Edit a range. The edited range is re-validated against the street's other ranges."""
    changes = body.model_dump(exclude_unset=True)
    try:
        result = await update_range(session, range_id, changes, actor_id=current_user.id)
    except Exception as e:
        raise _internal_error("updating street range", e) from e
    if isinstance(result, TerritoryError):
        raise result
    return StreetRangeResponse.model_validate(result)


@street_ranges_router.delete(
    "/{range_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_street_range(
    range_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_DELETE))],
) -> Response:
    """Soft-delete a range. Addresses matched to it keep their assignment until re-resolved."""
    try:
        result = await delete_range(session, range_id, actor_id=current_user.id)
    except Exception as e:
        raise _internal_error("deleting street range", e) from e
    if isinstance(result, TerritoryError):
        raise result
    return Response(status_code=status.HTTP_204_NO_CONTENT)
