"""Geocoding service — place catalog and free-text addresses on the map.

Providers run in fallback order: the catalog's own same-block approximation
first, then Nominatim when enabled. Points borrowed from a neighbour are
stored with source ``"database"`` and never serve as a reference for
another approximation.
"""

import uuid

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.config import Settings
from territory_api.lib.geocoder import (
    BaseGeocoder,
    GeocodingProviderError,
    GeocodingResult,
    KnownLocation,
    NominatimGeocoder,
    ParsedAddress,
    approximate_from_neighbors,
    geocode_with_fallback,
    parse_address,
)
from territory_api.lib.geocoder.same_block import PROVIDER_NAME as SAME_BLOCK_PROVIDER
from territory_api.lib.territory import GeocoderUnavailable, InvalidArgument, NoGeocodeMatch, NotFound
from territory_api.models.address import Address
from territory_api.models.base import LifecycleStatus
from territory_api.models.street import Street

MAX_CANDIDATE_STREETS = 10
MAX_NEIGHBORS = 200


class SameBlockGeocoder(BaseGeocoder):
    """Approximates a point from located addresses on the same street block.

    Args:
        session: Database session.
        street_ids: Streets to search; when None, active streets whose name
            contains the parsed street name are used.
        exclude_address_id: Address never used as its own reference.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        street_ids: list[uuid.UUID] | None = None,
        exclude_address_id: uuid.UUID | None = None,
    ) -> None:
        self._session = session
        self._street_ids = street_ids
        self._exclude_address_id = exclude_address_id

    @property
    def provider_name(self) -> str:
        return SAME_BLOCK_PROVIDER

    async def geocode(self, address: ParsedAddress) -> GeocodingResult | None:
        if address.house_number is None and not address.block:
            return None
        street_ids = self._street_ids
        if street_ids is None:
            street_ids = await self._matching_streets(address.street_name)
        if not street_ids:
            return None

        filters = [
            Address.street_id.in_(street_ids),
            Address.status != LifecycleStatus.DELETED,
            Address.latitude.is_not(None),
            Address.longitude.is_not(None),
            or_(Address.geocode_source.is_(None), Address.geocode_source != SAME_BLOCK_PROVIDER),
        ]
        if self._exclude_address_id is not None:
            filters.append(Address.id != self._exclude_address_id)
        rows = await self._session.execute(
            select(
                Address.id,
                Address.full_address,
                Address.latitude,
                Address.longitude,
                Address.municipal_number,
                Address.block,
            )
            .where(*filters)
            .order_by(Address.full_address)
            .limit(MAX_NEIGHBORS)
        )
        known = [
            KnownLocation(
                address_id=row.id,
                full_address=row.full_address,
                latitude=row.latitude,
                longitude=row.longitude,
                municipal_number=row.municipal_number,
                block=row.block,
            )
            for row in rows
        ]
        result = approximate_from_neighbors(address, known)
        if result is not None:
            logger.debug(f"Approximated {address.display()!r} from address {result.reference_address_id}")
        return result

    async def _matching_streets(self, name: str) -> list[uuid.UUID]:
        if not name:
            return []
        result = await self._session.execute(
            select(Street.id)
            .where(
                or_(Street.name.icontains(name, autoescape=True), Street.full_name.icontains(name, autoescape=True)),
                Street.status == LifecycleStatus.ACTIVE,
            )
            .order_by(Street.full_name)
            .limit(MAX_CANDIDATE_STREETS)
        )
        return list(result.scalars().all())


def get_configured_geocoders(
    session: AsyncSession,
    settings: Settings,
    *,
    street_ids: list[uuid.UUID] | None = None,
    exclude_address_id: uuid.UUID | None = None,
) -> list[BaseGeocoder]:
    """Providers in fallback order: catalog approximation, then Nominatim if enabled."""
    providers: list[BaseGeocoder] = [
        SameBlockGeocoder(session, street_ids=street_ids, exclude_address_id=exclude_address_id)
    ]
    if settings.geocoder_nominatim_enabled:
        providers.append(
            NominatimGeocoder(
                city=settings.geocoder_city,
                county=settings.geocoder_county,
                country=settings.geocoder_country,
                country_code=settings.geocoder_country_code,
                timeout=settings.geocoder_nominatim_timeout,
                email=settings.geocoder_nominatim_email,
                user_agent=settings.geocoder_nominatim_user_agent,
                min_interval=settings.geocoder_nominatim_min_interval,
            )
        )
    return providers


def parsed_from_address(address: Address, street: Street) -> ParsedAddress:
    """Components of a stored address, taken from its fields rather than its display text."""
    return ParsedAddress(
        street_name=street.name,
        way_prefix=street.way_type,
        number=address.municipal_number,
        block=address.block,
        lot=address.lot,
    )


async def _locate(
    parsed: ParsedAddress,
    providers: list[BaseGeocoder],
) -> GeocodingResult | NoGeocodeMatch | GeocoderUnavailable:
    try:
        result = await geocode_with_fallback(parsed, providers)
    except GeocodingProviderError as e:
        return GeocoderUnavailable(e.provider_name, e.message)
    if result is None:
        return NoGeocodeMatch(parsed.display())
    return result


async def geocode_text(
    session: AsyncSession,
    text: str,
    settings: Settings,
) -> GeocodingResult | InvalidArgument | NoGeocodeMatch | GeocoderUnavailable:
    """Find coordinates for a free-text address without storing anything.

    Args:
        session: Database session.
        text: Address as typed, e.g. ``"Ca. Santa Teresa 115"``.
        settings: Application settings (provider configuration).

    Returns:
        The GeocodingResult, or InvalidArgument / NoGeocodeMatch /
        GeocoderUnavailable.
    """
    parsed = parse_address(text)
    if not parsed.street_name:
        return InvalidArgument("Address has no street name", field="address")
    return await _locate(parsed, get_configured_geocoders(session, settings))


def _store_result(address: Address, result: GeocodingResult) -> None:
    address.latitude = result.latitude
    address.longitude = result.longitude
    address.geocode_source = result.provider
    address.geocode_quality = result.quality.value
    address.geocode_reference_id = result.reference_address_id


async def geocode_address(
    session: AsyncSession,
    address_id: uuid.UUID,
    settings: Settings,
    *,
    actor_id: uuid.UUID,
    force: bool = False,
) -> Address | NotFound | NoGeocodeMatch | GeocoderUnavailable:
    """Geocode a stored address and save the point with its provenance.

    An address that already has coordinates is returned unchanged unless
    ``force`` is set.

    Args:
        session: Database session.
        address_id: Address to locate.
        settings: Application settings (provider configuration).
        actor_id: User performing the write.
        force: Replace existing coordinates.

    Returns:
        The updated Address, or NotFound / NoGeocodeMatch / GeocoderUnavailable.
    """
    address = await session.get(Address, address_id)
    if address is None or address.status == LifecycleStatus.DELETED:
        return NotFound("address", address_id)
    if address.latitude is not None and not force:
        return address

    street = await session.get(Street, address.street_id)
    if street is None:
        return NotFound("street", address.street_id)

    providers = get_configured_geocoders(session, settings, street_ids=[street.id], exclude_address_id=address.id)
    result = await _locate(parsed_from_address(address, street), providers)
    if not isinstance(result, GeocodingResult):
        return result

    _store_result(address, result)
    address.updated_by = actor_id
    await session.commit()
    await session.refresh(address)
    logger.info(f"Geocoded address {address_id} via {result.provider} ({result.quality.value})")
    return address


async def geocode_missing(
    session: AsyncSession,
    settings: Settings,
    *,
    actor_id: uuid.UUID | None = None,
    street_id: uuid.UUID | None = None,
    batch_size: int = 100,
) -> dict[str, int]:
    """Geocode every non-deleted address that has no coordinates yet.

    Provider failures are counted and skipped so one bad response does not
    stop the run. Safe to re-run: located addresses are not revisited.

    Args:
        session: Database session.
        settings: Application settings (provider configuration).
        actor_id: User recorded as the updater, if any.
        street_id: Restrict to one street.
        batch_size: Addresses per commit.

    Returns:
        Dict with counts: located, unmatched, failed, total.
    """
    filters = [Address.status != LifecycleStatus.DELETED, Address.latitude.is_(None)]
    if street_id is not None:
        filters.append(Address.street_id == street_id)

    located = unmatched = failed = total = 0
    last_id: uuid.UUID | None = None
    streets: dict[uuid.UUID, Street | None] = {}

    while True:
        query = select(Address).where(*filters).order_by(Address.id).limit(batch_size)
        if last_id is not None:
            query = query.where(Address.id > last_id)
        addresses = list((await session.execute(query)).scalars().all())
        if not addresses:
            break

        for address in addresses:
            total += 1
            if address.street_id not in streets:
                streets[address.street_id] = await session.get(Street, address.street_id)
            street = streets[address.street_id]
            if street is None:
                unmatched += 1
                continue
            providers = get_configured_geocoders(
                session, settings, street_ids=[street.id], exclude_address_id=address.id
            )
            result = await _locate(parsed_from_address(address, street), providers)
            if isinstance(result, GeocoderUnavailable):
                logger.warning(f"Address {address.id} not geocoded: {result.message}")
                failed += 1
            elif isinstance(result, NoGeocodeMatch):
                unmatched += 1
            else:
                _store_result(address, result)
                if actor_id is not None:
                    address.updated_by = actor_id
                located += 1

        await session.commit()
        last_id = addresses[-1].id
        logger.debug(f"Geocode progress: {total} processed, {located} located")

    logger.info(f"Geocoding complete: {located} located, {unmatched} unmatched, {failed} failed of {total}")
    return {"located": located, "unmatched": unmatched, "failed": failed, "total": total}
