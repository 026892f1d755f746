"""Address API endpoints — preview, create, update, lookup and geocoding."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.config import Settings, get_settings
from territory_api.core.dependencies import get_async_session, require_capability
from territory_api.core.permissions import Capability
from territory_api.lib.territory import TerritoryError
from territory_api.models.user import User
from territory_api.schemas.address import (
    AddressCreateRequest,
    AddressGeocodeRequest,
    AddressResolveRequest,
    AddressResponse,
    AddressUpdateRequest,
    AssignmentResponse,
    GeocodeRequest,
    GeocodeResponse,
)
from territory_api.schemas.common import ErrorResponse
from territory_api.services.address_service import create_address, get_address, preview_assignment, update_address
from territory_api.services.geocoding_service import geocode_address, geocode_text

addresses_router = APIRouter(prefix="/addresses", tags=["addresses"])


@addresses_router.post(
    "/resolve",
    response_model=AssignmentResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Street, quadrant or sector not found or inactive"},
        422: {"model": ErrorResponse, "description": "No range covers the address, or invalid draft"},
    },
)
async def resolve_address_preview(
    body: AddressResolveRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_RESOLVE))],
) -> AssignmentResponse:
    """Preview the quadrant and sector an address would get. Nothing is saved.

    Uncovered addresses answer 422 with code ``no_coverage`` so the form can
    ask for a manual quadrant.
    """
    result = await preview_assignment(
        session,
        body.street_id,
        municipal_number=body.municipal_number,
        block=body.block,
        lot=body.lot,
    )
    if isinstance(result, TerritoryError):
        raise result
    return AssignmentResponse(
        quadrant_id=result.quadrant_id,
        sector_id=result.sector_id,
        matched_range_id=result.matched_range_id,
    )


@addresses_router.post(
    "",
    response_model=AddressResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_new_address(
    body: AddressCreateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_WRITE))],
) -> AddressResponse:
    """Create an address with automatic quadrant assignment.

    Addresses no range covers are stored unassigned unless a manual quadrant
    is supplied.
    """
    try:
        result = await create_address(
            session,
            actor_id=current_user.id,
            **body.model_dump(),
        )
    except Exception as e:
        logger.error(f"Unexpected error creating address: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error creating address.",
        ) from e
    if isinstance(result, TerritoryError):
        raise result
    return AddressResponse.model_validate(result)


@addresses_router.get("/{address_id}", response_model=AddressResponse)
async def get_address_by_id(
    address_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    _current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_READ))],
) -> AddressResponse:
    address = await get_address(session, address_id)
    if address is None:
        raise HTTPException(status_code=404, detail="Address not found.")
    return AddressResponse.model_validate(address)


@addresses_router.patch(
    "/{address_id}",
    response_model=AddressResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_existing_address(
    address_id: uuid.UUID,
    body: AddressUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_WRITE))],
) -> AddressResponse:
    """Update an address; changing street, number, block, lot or manual quadrant re-resolves it."""
    changes = body.model_dump(exclude_unset=True)
    try:
        result = await update_address(session, address_id, changes, actor_id=current_user.id)
    except Exception as e:
        logger.error(f"Unexpected error updating address {address_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error updating address.",
        ) from e
    if isinstance(result, TerritoryError):
        raise result
    return AddressResponse.model_validate(result)


@addresses_router.post(
    "/geocode",
    response_model=GeocodeResponse,
    responses={
        422: {"model": ErrorResponse, "description": "No street name, or no provider could place the address"},
        503: {"model": ErrorResponse, "description": "Every geocoding provider failed"},
    },
)
async def geocode_address_text(
    body: GeocodeRequest,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    _current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_RESOLVE))],
) -> GeocodeResponse:
    """Locate a free-text address. Nothing is saved.

    Located addresses on the same block are tried first, then the
    configured external providers.
    """
    result = await geocode_text(session, body.address, settings)
    if isinstance(result, TerritoryError):
        raise result
    return GeocodeResponse(
        latitude=result.latitude,
        longitude=result.longitude,
        quality=result.quality.value,
        provider=result.provider,
        matched_address=result.matched_address,
        reference_address_id=result.reference_address_id,
    )


@addresses_router.post(
    "/{address_id}/geocode",
    response_model=AddressResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def geocode_stored_address(
    address_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    current_user: Annotated[User, Depends(require_capability(Capability.ADDRESS_WRITE))],
    body: AddressGeocodeRequest | None = None,
) -> AddressResponse:
    """Locate a stored address and save the point with its source and quality."""
    force = body.force if body is not None else False
    result = await geocode_address(session, address_id, settings, actor_id=current_user.id, force=force)
    if isinstance(result, TerritoryError):
        raise result
    return AddressResponse.model_validate(result)
