"""Pydantic v2 schemas for address operations."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class AddressResolveRequest(BaseModel):
    """Address draft to preview. Give a municipal number, a block and lot, or both."""

    street_id: uuid.UUID
    municipal_number: str | None = Field(default=None, max_length=10, description="Number as printed, e.g. 450-A")
    block: str | None = Field(default=None, max_length=10)
    lot: str | None = Field(default=None, max_length=10)


class AddressCreateRequest(AddressResolveRequest):
    """Request body for creating an address."""

    neighborhood: str | None = Field(default=None, max_length=150)
    unit_type: str | None = Field(default=None, max_length=20)
    unit_number: str | None = Field(default=None, max_length=20)
    reference: str | None = Field(default=None, max_length=255)
    latitude: float | None = None
    longitude: float | None = None
    manual_quadrant_id: uuid.UUID | None = Field(
        default=None,
        description="Quadrant to assign when no street range covers the address",
    )


class AddressUpdateRequest(BaseModel):
    """Request body for updating an address. Only provided fields change."""

    street_id: uuid.UUID | None = None
    municipal_number: str | None = Field(default=None, max_length=10)
    block: str | None = Field(default=None, max_length=10)
    lot: str | None = Field(default=None, max_length=10)
    neighborhood: str | None = Field(default=None, max_length=150)
    unit_type: str | None = Field(default=None, max_length=20)
    unit_number: str | None = Field(default=None, max_length=20)
    reference: str | None = Field(default=None, max_length=255)
    latitude: float | None = None
    longitude: float | None = None
    manual_quadrant_id: uuid.UUID | None = None


class AssignmentResponse(BaseModel):
    """Quadrant and sector an address resolves to."""

    quadrant_id: uuid.UUID
    sector_id: uuid.UUID
    matched_range_id: uuid.UUID | None = None


class AddressResponse(BaseModel):
    """A stored address with its derived assignment."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    street_id: uuid.UUID
    municipal_number: str | None = None
    block: str | None = None
    lot: str | None = None
    neighborhood: str | None = None
    unit_type: str | None = None
    unit_number: str | None = None
    reference: str | None = None
    full_address: str
    latitude: float | None = None
    longitude: float | None = None
    geocode_source: str | None = None
    geocode_quality: str | None = None
    geocode_reference_id: uuid.UUID | None = None
    quadrant_id: uuid.UUID | None = None
    sector_id: uuid.UUID | None = None
    matched_range_id: uuid.UUID | None = None
    assignment_source: str
    status: str
    created_at: datetime
    updated_at: datetime


class GeocodeRequest(BaseModel):
    """Free-text address to locate."""

    address: str = Field(min_length=3, max_length=500, description="Address as typed, e.g. 'Ca. Santa Teresa 115'")


class AddressGeocodeRequest(BaseModel):
    """Options for geocoding a stored address."""

    force: bool = Field(default=False, description="Replace coordinates the address already has")


class GeocodeResponse(BaseModel):
    """A point found for an address and where it came from."""

    latitude: float
    longitude: float
    quality: str
    provider: str
    matched_address: str | None = None
    reference_address_id: uuid.UUID | None = Field(
        default=None,
        description="Stored address the point was borrowed from, for catalog approximations",
    )
