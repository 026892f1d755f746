"""Range registry — validation and candidate ordering for street ranges.

A street is split into segments, each mapped to a patrol quadrant. Two
active segments of the same street may cover the same house numbers only
when their sides cannot both hold a given number (EVEN vs ODD) or when the
operator gave them different priorities, which turns the overlap into an
explicit override chain. Everything else is a conflict.

The pure functions here (:func:`validate_range`, :func:`find_candidates`,
:func:`find_catch_all_candidates`) take the current range list as input;
:class:`RangeRegistry` wires them to a :class:`RangeStore`.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from loguru import logger

from territory_api.lib.territory.errors import ConflictError, InvalidRange, NotFound
from territory_api.lib.territory.numbers import interval_intersection, is_even
from territory_api.lib.territory.types import RangeConflict, RangeRecord, RangeValidation, Side

if TYPE_CHECKING:
    from territory_api.lib.territory.gateway import RangeStore, TerritorialCatalogGateway

MIN_PRIORITY = 1
MAX_PRIORITY = 10


def sides_overlap(a: Side, b: Side) -> bool:
    """Return True if some house number could be covered by both sides."""
    a, b = a.canonical, b.canonical
    if a is Side.BOTH or b is Side.BOTH:
        return True
    return a is b


def side_accepts(side: Side, number: int) -> bool:
    """Return True if a range on ``side`` covers ``number``'s parity."""
    side = side.canonical
    if side is Side.BOTH:
        return True
    return (side is Side.EVEN) == is_even(number)


def check_range_shape(candidate: RangeRecord) -> InvalidRange | None:
    """Check a range's own invariants.

    Args:
        candidate: Range to check.

    Returns:
        An InvalidRange describing the first problem, or None if well formed.
    """
    start, end = candidate.number_start, candidate.number_end
    if (start is None) != (end is None):
        missing = "number_end" if end is None else "number_start"
        return InvalidRange("number_start and number_end must be given together", field=missing)
    if start is not None and end is not None:
        if start < 0 or end < 0:
            field = "number_start" if start < 0 else "number_end"
            return InvalidRange("House numbers must be zero or greater", field=field)
        if end < start:
            return InvalidRange(f"number_end ({end}) is lower than number_start ({start})", field="number_end")
    if not (MIN_PRIORITY <= candidate.priority <= MAX_PRIORITY):
        return InvalidRange(
            f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {candidate.priority}",
            field="priority",
        )
    if candidate.block is not None and not candidate.is_catch_all:
        return InvalidRange("Only ranges without house numbers can be scoped to a block", field="block")
    return None


def _number_overlap(a: RangeRecord, b: RangeRecord) -> tuple[bool, int | None, int | None]:
    """Shared house-number span of two ranges.

    A catch-all covers the whole street, so it overlaps everything and the
    shared span is the other range's interval. Block-scoped catch-alls only
    serve block/lot addresses: they never meet numeric ranges and only meet
    catch-alls for the same block or unscoped ones.

    Returns:
        ``(overlaps, start, end)``; start/end are None when the shared span
        is the whole street.
    """
    if a.is_catch_all and b.is_catch_all:
        if a.block is not None and b.block is not None and a.block != b.block:
            return False, None, None
        return True, None, None
    if a.is_catch_all or b.is_catch_all:
        catch_all, numeric = (a, b) if a.is_catch_all else (b, a)
        if catch_all.block is not None:
            return False, None, None
        return True, numeric.number_start, numeric.number_end

    shared = interval_intersection(a.number_start, a.number_end, b.number_start, b.number_end)  # type: ignore[arg-type]
    if shared is None:
        return False, None, None
    return True, shared[0], shared[1]


def validate_range(candidate: RangeRecord, existing: Iterable[RangeRecord]) -> RangeValidation | InvalidRange:
    """Check a candidate range against the active ranges of its street.

    Every colliding range is reported, not just the first, so an operator
    can fix all problems in one pass.

    Args:
        candidate: New or edited range.
        existing: Current ranges; other streets, inactive rows and the
            candidate's own stored row are ignored.

    Returns:
        InvalidRange when the candidate is malformed; otherwise a
        RangeValidation whose ``conflicts`` block the write and whose
        ``overrides`` list overlaps disambiguated by priority.
    """
    problem = check_range_shape(candidate)
    if problem is not None:
        return problem

    result = RangeValidation()
    for other in existing:
        if other.street_id != candidate.street_id or not other.active:
            continue
        if candidate.id is not None and other.id == candidate.id:
            continue
        if not sides_overlap(candidate.side, other.side):
            continue
        overlaps, start, end = _number_overlap(candidate, other)
        if not overlaps:
            continue

        entry = RangeConflict(
            range_id=other.id,  # type: ignore[arg-type]
            quadrant_id=other.quadrant_id,
            side=other.side,
            priority=other.priority,
            overlap_start=start,
            overlap_end=end,
        )
        if other.priority == candidate.priority:
            result.conflicts.append(entry)
        else:
            result.overrides.append(entry)

    return result


def candidate_sort_key(record: RangeRecord) -> tuple[int, float, str]:
    """Priority first, then narrowest interval, then id so ordering is total."""
    return record.priority, record.width, str(record.id)


def find_candidates(ranges: Iterable[RangeRecord], number: int) -> list[RangeRecord]:
    """Order the ranges that could assign ``number``.

    Includes active ranges whose closed interval contains the number and
    unscoped catch-alls, keeps only those whose side accepts the number's
    parity, and sorts by ascending priority then narrowest interval.

    Args:
        ranges: Ranges of a single street.
        number: House number.

    Returns:
        Matching ranges, best first.
    """
    matches = [
        r
        for r in ranges
        if r.active and r.block is None and r.contains(number) and side_accepts(r.side, number)
    ]
    matches.sort(key=candidate_sort_key)
    return matches


def find_catch_all_candidates(ranges: Iterable[RangeRecord], block: str | None = None) -> list[RangeRecord]:
    """Order the catch-all ranges usable for a block/lot address.

    Unscoped catch-alls always qualify; block-scoped ones only for their own
    block. Lower priority value wins, and at equal priority a block-scoped
    range beats an unscoped one.
    """
    matches = [r for r in ranges if r.active and r.is_catch_all and (r.block is None or r.block == block)]
    matches.sort(key=lambda r: (r.priority, 0 if r.block is not None else 1, str(r.id)))
    return matches


class RangeRegistry:
    """Street ranges backed by a store, with street existence checks.

    Args:
        store: Range persistence.
        catalog: Catalog gateway used to confirm the street exists.
    """

    def __init__(self, store: RangeStore, catalog: TerritorialCatalogGateway) -> None:
        self._store = store
        self._catalog = catalog

    async def active_ranges(self, street_id: uuid.UUID) -> list[RangeRecord] | NotFound:
        """Return the street's active ranges, or NotFound for an unknown or inactive street."""
        street = await self._catalog.get_street(street_id)
        if street is None or not street.active:
            return NotFound("street", street_id)
        return await self._store.list_active_ranges(street_id)

    async def find_candidates(self, street_id: uuid.UUID, number: int) -> list[RangeRecord] | NotFound:
        ranges = await self.active_ranges(street_id)
        if isinstance(ranges, NotFound):
            return ranges
        return find_candidates(ranges, number)

    async def find_catch_all_candidates(
        self,
        street_id: uuid.UUID,
        block: str | None = None,
    ) -> list[RangeRecord] | NotFound:
        ranges = await self.active_ranges(street_id)
        if isinstance(ranges, NotFound):
            return ranges
        return find_catch_all_candidates(ranges, block)

    async def validate(self, candidate: RangeRecord) -> RangeValidation | InvalidRange | NotFound:
        """Validate a candidate against the store's current ranges for its street.

        Shape problems are reported before the street is even looked up.
        """
        problem = check_range_shape(candidate)
        if problem is not None:
            return problem
        quadrant = await self._catalog.get_quadrant(candidate.quadrant_id)
        if quadrant is None or not quadrant.active:
            return NotFound("quadrant", candidate.quadrant_id)
        existing = await self.active_ranges(candidate.street_id)
        if isinstance(existing, NotFound):
            return existing
        result = validate_range(candidate, existing)
        if isinstance(result, RangeValidation) and result.overrides:
            logger.info(
                f"Range on street {candidate.street_id} overrides {len(result.overrides)} range(s) by priority"
            )
        return result

    async def register(self, candidate: RangeRecord) -> uuid.UUID | InvalidRange | NotFound | ConflictError:
        """Validate and persist a range.

        Returns:
            The stored range id on success, otherwise the failing outcome.
        """
        result = await self.validate(candidate)
        if not isinstance(result, RangeValidation):
            return result
        if not result.ok:
            logger.warning(
                f"Rejected range on street {candidate.street_id}: {len(result.conflicts)} conflict(s)"
            )
            return ConflictError(result.conflicts)
        return await self._store.upsert(candidate)
