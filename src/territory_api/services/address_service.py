"""Address service — operator-entered addresses and their derived patrol assignment.

The quadrant, sector and matched range of an address are never taken from
input: they are recomputed by the resolver whenever a resolving field
(street, municipal number, block, lot or manual quadrant) changes, and can
be recomputed in bulk after range edits with :func:`reresolve_addresses`.
"""

import uuid
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.lib.territory import (
    AddressKind,
    AddressResolver,
    Assignment,
    InvalidArgument,
    NoCoverage,
    NotFound,
    RangeRegistry,
    ResolutionError,
    address_kind_from_fields,
    normalize_block,
    validate_coordinates,
)
from territory_api.models.address import MANUAL_GEOCODE_SOURCE, Address, AssignmentSource
from territory_api.models.base import LifecycleStatus
from territory_api.models.street import Street
from territory_api.services.catalog_gateway import SqlCatalogGateway, SqlRangeStore

# Fields that may be set via the update endpoint.  Derived assignment
# columns are deliberately absent.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "street_id",
        "municipal_number",
        "block",
        "lot",
        "neighborhood",
        "unit_type",
        "unit_number",
        "reference",
        "latitude",
        "longitude",
        "manual_quadrant_id",
    }
)

_RESOLVING_FIELDS: frozenset[str] = frozenset({"street_id", "municipal_number", "block", "lot", "manual_quadrant_id"})


def build_full_address(
    street_name: str,
    *,
    municipal_number: str | None = None,
    block: str | None = None,
    lot: str | None = None,
    unit_type: str | None = None,
    unit_number: str | None = None,
    neighborhood: str | None = None,
) -> str:
    """Compose the display address.

    Example: ``"AV AREQUIPA 450, MZ B LT 12, DPTO 301, URB SANTA ROSA"``.
    """
    head = street_name.strip()
    if municipal_number:
        head = f"{head} {municipal_number.strip()}"
    parts = [head]
    if block and lot:
        parts.append(f"MZ {block} LT {lot}")
    if unit_number:
        parts.append(f"{(unit_type or 'INT').strip().upper()} {unit_number.strip()}")
    if neighborhood:
        parts.append(neighborhood.strip().upper())
    return ", ".join(parts)


def _resolver(session: AsyncSession) -> tuple[AddressResolver, SqlCatalogGateway]:
    gateway = SqlCatalogGateway(session)
    registry = RangeRegistry(SqlRangeStore(session), gateway)
    return AddressResolver(registry, gateway), gateway


async def resolve_address(
    session: AsyncSession,
    street_id: uuid.UUID,
    kind: AddressKind,
) -> Assignment | ResolutionError:
    """Resolve an address against the street's current active ranges.

    Args:
        session: Database session.
        street_id: Street of the address.
        kind: Numbered, BlockLot or Both.

    Returns:
        The Assignment, or NoCoverage / NotFound / InvalidArgument.
    """
    resolver, _ = _resolver(session)
    return await resolver.resolve(street_id, kind)


async def preview_assignment(
    session: AsyncSession,
    street_id: uuid.UUID,
    *,
    municipal_number: str | None = None,
    block: str | None = None,
    lot: str | None = None,
) -> Assignment | ResolutionError:
    """Preview the assignment an address draft would get, without saving it.

    Runs the same resolution as :func:`create_address`.
    """
    kind = address_kind_from_fields(municipal_number, block, lot)
    if isinstance(kind, InvalidArgument):
        return kind
    resolver, _ = _resolver(session)
    return await resolver.validate(street_id, kind)


async def _manual_assignment(gateway: SqlCatalogGateway, quadrant_id: uuid.UUID) -> Assignment | NotFound:
    quadrant = await gateway.get_quadrant(quadrant_id)
    if quadrant is None or not quadrant.active:
        return NotFound("quadrant", quadrant_id)
    sector = await gateway.get_sector_for_quadrant(quadrant_id)
    if sector is None or not sector.active:
        return NotFound("sector for quadrant", quadrant_id)
    return Assignment(quadrant_id=quadrant.id, sector_id=sector.id, matched_range_id=None)


async def _apply_resolution(
    session: AsyncSession,
    address: Address,
    manual_quadrant_id: uuid.UUID | None,
) -> NotFound | InvalidArgument | None:
    """Recompute the derived assignment of ``address`` in place.

    A range match always wins. Without coverage the manual quadrant is used
    when given, otherwise the derived fields are cleared.

    Returns:
        None on success (including an unassigned result), or the error that
        prevented resolution; the address is left untouched in that case.
    """
    kind = address_kind_from_fields(address.municipal_number, address.block, address.lot)
    if isinstance(kind, InvalidArgument):
        return kind

    resolver, gateway = _resolver(session)
    result = await resolver.resolve(address.street_id, kind)

    if isinstance(result, Assignment):
        source = AssignmentSource.RANGE
    elif isinstance(result, NoCoverage):
        if manual_quadrant_id is None:
            address.quadrant_id = None
            address.sector_id = None
            address.matched_range_id = None
            address.assignment_source = AssignmentSource.NONE.value
            logger.info(f"{result.message}; address left unassigned")
            return None
        result = await _manual_assignment(gateway, manual_quadrant_id)
        if isinstance(result, NotFound):
            return result
        source = AssignmentSource.MANUAL
    else:
        return result

    address.quadrant_id = result.quadrant_id
    address.sector_id = result.sector_id
    address.matched_range_id = result.matched_range_id
    address.assignment_source = source.value
    return None


def _check_coordinates(latitude: float | None, longitude: float | None) -> InvalidArgument | None:
    if (latitude is None) != (longitude is None):
        return InvalidArgument("latitude and longitude must be given together", field="latitude")
    if latitude is None or longitude is None:
        return None
    try:
        validate_coordinates(latitude, longitude)
    except InvalidArgument as e:
        return e
    return None


def _mark_coordinates(address: Address) -> None:
    """Record operator-entered coordinates as a manual placement."""
    if address.latitude is None:
        address.geocode_source = None
    else:
        address.geocode_source = MANUAL_GEOCODE_SOURCE
    address.geocode_quality = None
    address.geocode_reference_id = None


async def _active_street(session: AsyncSession, street_id: uuid.UUID) -> Street | NotFound:
    street = await session.get(Street, street_id)
    if street is None or not street.is_active:
        return NotFound("street", street_id)
    return street


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


async def create_address(
    session: AsyncSession,
    *,
    street_id: uuid.UUID,
    actor_id: uuid.UUID,
    municipal_number: str | None = None,
    block: str | None = None,
    lot: str | None = None,
    neighborhood: str | None = None,
    unit_type: str | None = None,
    unit_number: str | None = None,
    reference: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    manual_quadrant_id: uuid.UUID | None = None,
) -> Address | NotFound | InvalidArgument:
    """Create an address and assign it to a quadrant.

    An address no range covers is still stored, unassigned, unless
    ``manual_quadrant_id`` is given, in which case that quadrant and its
    sector are recorded with ``assignment_source="manual"``.

    Args:
        session: Database session.
        street_id: Street of the address.
        actor_id: User performing the write.
        municipal_number: Municipal number as printed (e.g., "450-A").
        block: Block label.
        lot: Lot label.
        neighborhood: Neighborhood or urbanization name.
        unit_type: Unit type (e.g., "DPTO").
        unit_number: Unit number.
        reference: Free-text locating reference.
        latitude: Optional latitude.
        longitude: Optional longitude.
        manual_quadrant_id: Quadrant to use when no range covers the address.

    Returns:
        The created Address, or NotFound / InvalidArgument.
    """
    street = await _active_street(session, street_id)
    if isinstance(street, NotFound):
        return street
    problem = _check_coordinates(latitude, longitude)
    if problem is not None:
        return problem

    municipal_number = _clean(municipal_number)
    block = normalize_block(block)
    lot = _clean(lot)

    address = Address(
        street_id=street_id,
        municipal_number=municipal_number,
        block=block,
        lot=lot,
        neighborhood=neighborhood,
        unit_type=unit_type,
        unit_number=unit_number,
        reference=reference,
        latitude=latitude,
        longitude=longitude,
        full_address=build_full_address(
            street.full_name,
            municipal_number=municipal_number,
            block=block,
            lot=lot,
            unit_type=unit_type,
            unit_number=unit_number,
            neighborhood=neighborhood,
        ),
        created_by=actor_id,
        updated_by=actor_id,
    )
    _mark_coordinates(address)

    problem = await _apply_resolution(session, address, manual_quadrant_id)
    if problem is not None:
        return problem

    session.add(address)
    await session.commit()
    await session.refresh(address)
    logger.info(
        f"Created address {address.id} ({address.full_address}) "
        f"-> quadrant {address.quadrant_id} [{address.assignment_source}]"
    )
    return address


async def get_address(session: AsyncSession, address_id: uuid.UUID) -> Address | None:
    """Get a non-deleted address by ID."""
    result = await session.execute(
        select(Address).where(Address.id == address_id, Address.status != LifecycleStatus.DELETED)
    )
    return result.scalar_one_or_none()


async def update_address(
    session: AsyncSession,
    address_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    actor_id: uuid.UUID,
) -> Address | NotFound | InvalidArgument:
    """Update an address, re-resolving it when a resolving field changes.

    A previous manual assignment is kept as the fallback quadrant unless the
    update supplies a new ``manual_quadrant_id``.

    Args:
        session: Database session.
        address_id: Address to update.
        changes: Field updates; keys outside the updatable set are ignored.
        actor_id: User performing the write.

    Returns:
        The updated Address, or NotFound / InvalidArgument. On error nothing
        is written.
    """
    address = await get_address(session, address_id)
    if address is None:
        return NotFound("address", address_id)

    fields = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS}
    if "street_id" in fields and fields["street_id"] is None:
        return InvalidArgument("street_id cannot be cleared", field="street_id")
    if "municipal_number" in fields:
        fields["municipal_number"] = _clean(fields["municipal_number"])
    if "block" in fields:
        fields["block"] = normalize_block(fields["block"])
    if "lot" in fields:
        fields["lot"] = _clean(fields["lot"])

    latitude = fields.get("latitude", address.latitude)
    longitude = fields.get("longitude", address.longitude)
    problem = _check_coordinates(latitude, longitude)
    if problem is not None:
        return problem

    street = await _active_street(session, fields.get("street_id", address.street_id))
    if isinstance(street, NotFound):
        return street

    if "manual_quadrant_id" in fields:
        manual_quadrant_id = fields.pop("manual_quadrant_id")
    elif address.assignment_source == AssignmentSource.MANUAL:
        manual_quadrant_id = address.quadrant_id
    else:
        manual_quadrant_id = None

    resolving = bool(_RESOLVING_FIELDS & changes.keys())
    for key, value in fields.items():
        setattr(address, key, value)
    if "latitude" in fields or "longitude" in fields:
        _mark_coordinates(address)
    address.full_address = build_full_address(
        street.full_name,
        municipal_number=address.municipal_number,
        block=address.block,
        lot=address.lot,
        unit_type=address.unit_type,
        unit_number=address.unit_number,
        neighborhood=address.neighborhood,
    )
    address.updated_by = actor_id

    if resolving:
        problem = await _apply_resolution(session, address, manual_quadrant_id)
        if problem is not None:
            await session.rollback()
            return problem

    await session.commit()
    await session.refresh(address)
    logger.info(f"Updated address {address_id}{' (re-resolved)' if resolving else ''}")
    return address


async def reresolve_addresses(
    session: AsyncSession,
    *,
    street_id: uuid.UUID | None = None,
    range_id: uuid.UUID | None = None,
    batch_size: int = 500,
) -> dict[str, int]:
    """Recompute derived assignments after range edits.

    Selects non-deleted addresses of a street, addresses matched to a range,
    or every address when neither filter is given, and re-runs resolution on
    each. Manual assignments are kept as the fallback quadrant. Addresses that
    can no longer be resolved (street retired, quadrant inactive) are cleared
    so no stale assignment survives.

    Idempotent and safe to re-run.

    Args:
        session: Database session.
        street_id: Restrict to one street.
        range_id: Restrict to addresses currently matched to this range.
        batch_size: Addresses per processing batch.

    Returns:
        Dict with counts: changed, unchanged, unassigned, total.
    """
    filters = [Address.status != LifecycleStatus.DELETED]
    if street_id is not None:
        filters.append(Address.street_id == street_id)
    if range_id is not None:
        filters.append(Address.matched_range_id == range_id)

    total = (await session.execute(select(func.count(Address.id)).where(*filters))).scalar_one()
    if total == 0:
        logger.info("No addresses to re-resolve")
        return {"changed": 0, "unchanged": 0, "unassigned": 0, "total": 0}

    logger.info(f"Re-resolving {total} address(es)")
    changed = unchanged = unassigned = 0
    processed = 0
    last_id: uuid.UUID | None = None

    # Keyset pagination: re-resolving moves rows out of a matched_range_id filter
    while True:
        query = select(Address).where(*filters).order_by(Address.id).limit(batch_size)
        if last_id is not None:
            query = query.where(Address.id > last_id)
        addresses = list((await session.execute(query)).scalars().all())
        if not addresses:
            break

        for address in addresses:
            before = (address.quadrant_id, address.sector_id, address.matched_range_id, address.assignment_source)
            manual = address.quadrant_id if address.assignment_source == AssignmentSource.MANUAL else None
            problem = await _apply_resolution(session, address, manual)
            if problem is not None:
                logger.warning(f"Address {address.id} could not be resolved: {problem.message}")
                address.quadrant_id = None
                address.sector_id = None
                address.matched_range_id = None
                address.assignment_source = AssignmentSource.NONE.value

            after = (address.quadrant_id, address.sector_id, address.matched_range_id, address.assignment_source)
            if address.quadrant_id is None:
                unassigned += 1
            if after == before:
                unchanged += 1
            else:
                changed += 1

        await session.commit()
        processed += len(addresses)
        last_id = addresses[-1].id
        logger.debug(f"Re-resolve progress: {processed}/{total} processed, {changed} changed")

    logger.info(f"Re-resolve complete: {changed} changed, {unchanged} unchanged, {unassigned} unassigned of {total}")
    return {"changed": changed, "unchanged": unchanged, "unassigned": unassigned, "total": total}
