"""Address resolver — maps a street address to its patrol quadrant and sector.

Resolution is a pure function of the street's current active ranges:
identical input against unchanged ranges yields identical output, and the
preview path (:meth:`AddressResolver.validate`) runs exactly the same code as
the path used when an address is saved.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from loguru import logger

from territory_api.lib.territory.errors import InvalidArgument, NoCoverage, NotFound, ResolutionError
from territory_api.lib.territory.numbers import normalize_block, parse_municipal_number
from territory_api.lib.territory.types import AddressKind, Assignment, BlockLot, Both, Numbered, RangeRecord

if TYPE_CHECKING:
    from territory_api.lib.territory.gateway import TerritorialCatalogGateway
    from territory_api.lib.territory.ranges import RangeRegistry


def address_kind_from_fields(
    municipal_number: str | int | None,
    block: str | None,
    lot: str | None,
) -> AddressKind | InvalidArgument:
    """Build the addressing kind from an operator's draft.

    An address needs a municipal number, or a block and a lot, or both.

    Args:
        municipal_number: Number as printed (``"450-A"``) or None.
        block: Block label or None.
        lot: Lot label or None.

    Returns:
        Numbered, BlockLot or Both; InvalidArgument when neither addressing
        system is complete or the municipal number has no digits.
    """
    has_number = municipal_number is not None and str(municipal_number).strip() != ""
    block = normalize_block(block)
    lot = lot.strip().upper() if lot is not None and lot.strip() else None
    has_block_lot = block is not None and lot is not None

    if not has_number and not has_block_lot:
        return InvalidArgument(
            "An address needs a municipal number or a block and lot",
            field="municipal_number",
        )

    number: int | None = None
    if has_number:
        number = parse_municipal_number(municipal_number)
        if number is None:
            return InvalidArgument(
                f"Municipal number {municipal_number!r} contains no digits",
                field="municipal_number",
            )

    if number is not None and has_block_lot:
        return Both(number=number, block=block, lot=lot)  # type: ignore[arg-type]
    if number is not None:
        return Numbered(number=number)
    return BlockLot(block=block, lot=lot)  # type: ignore[arg-type]


class AddressResolver:
    """Resolve addresses against the range registry and the territorial catalog.

    Args:
        registry: Range registry for candidate lookup.
        catalog: Catalog gateway for quadrant and sector lookups.
    """

    def __init__(self, registry: RangeRegistry, catalog: TerritorialCatalogGateway) -> None:
        self._registry = registry
        self._catalog = catalog

    async def resolve(self, street_id: uuid.UUID, kind: AddressKind) -> Assignment | ResolutionError:
        """Resolve an address to ``(quadrant, sector, matched range)``.

        ``Numbered`` and ``Both`` use the house number; ``Both`` never falls
        back to catch-all ranges when the number is not covered. ``BlockLot``
        only considers catch-all ranges.

        Args:
            street_id: Street of the address.
            kind: Addressing kind.

        Returns:
            An Assignment, or NoCoverage / NotFound / InvalidArgument.
        """
        matched = await self._select_range(street_id, kind)
        if not isinstance(matched, RangeRecord):
            return matched
        return await self._assign(matched)

    async def validate(self, street_id: uuid.UUID, kind: AddressKind) -> Assignment | ResolutionError:
        """Preview a resolution without persisting anything.

        Same code path and outcomes as :meth:`resolve`.
        """
        result = await self.resolve(street_id, kind)
        logger.debug(f"Previewed resolution for street {street_id} ({kind}): {result!r}")
        return result

    async def _select_range(self, street_id: uuid.UUID, kind: AddressKind) -> RangeRecord | ResolutionError:
        if isinstance(kind, Numbered | Both):
            if kind.number < 0:
                return InvalidArgument(f"House number must be zero or greater, got {kind.number}", field="number")
            candidates = await self._registry.find_candidates(street_id, kind.number)
            if isinstance(candidates, NotFound):
                return candidates
            if not candidates:
                return NoCoverage(street_id, number=kind.number)
            return candidates[0]

        block = normalize_block(kind.block)
        candidates = await self._registry.find_catch_all_candidates(street_id, block)
        if isinstance(candidates, NotFound):
            return candidates
        if not candidates:
            return NoCoverage(street_id, block=block)
        return candidates[0]

    async def _assign(self, matched: RangeRecord) -> Assignment | NotFound:
        quadrant = await self._catalog.get_quadrant(matched.quadrant_id)
        if quadrant is None or not quadrant.active:
            return NotFound("quadrant", matched.quadrant_id)
        sector = await self._catalog.get_sector_for_quadrant(quadrant.id)
        if sector is None or not sector.active:
            return NotFound("sector for quadrant", quadrant.id)
        return Assignment(quadrant_id=quadrant.id, sector_id=sector.id, matched_range_id=matched.id)

