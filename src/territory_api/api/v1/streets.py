"""Street API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.dependencies import get_async_session, require_capability
from territory_api.core.permissions import Capability
from territory_api.lib.territory import NotFound
from territory_api.models.user import User
from territory_api.schemas.common import ErrorResponse
from territory_api.schemas.street_range import StreetRangeResponse
from territory_api.services.range_service import list_street_ranges

streets_router = APIRouter(prefix="/streets", tags=["streets"])


@streets_router.get(
    "/{street_id}/ranges",
    response_model=list[StreetRangeResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_ranges_for_street(
    street_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.STREET_RANGE_READ))],
) -> list[StreetRangeResponse]:
    """List a street's active ranges: numeric ranges by start number, then catch-alls."""
    result = await list_street_ranges(session, street_id)
    if isinstance(result, NotFound):
        raise result
    return [StreetRangeResponse.model_validate(row) for row in result]
