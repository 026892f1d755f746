"""Street range service — validated, per-street serialized range writes.

Every write runs the same sequence inside one transaction:

1. lock the street row (``SELECT ... FOR UPDATE``) and remember its
   ``range_revision``;
2. validate the candidate against the street's active ranges;
3. persist it and compare-and-swap ``range_revision`` (``UPDATE ... WHERE
   range_revision = :seen``).

A racing writer that slipped past the lock makes the swap miss, and the
write is rolled back as ``ConcurrentRangeEdit``.
"""

import uuid
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, NamedTuple

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.lib.territory import (
    ConcurrentRangeEdit,
    ConflictError,
    InvalidRange,
    NotFound,
    RangeConflict,
    RangeRecord,
    RangeRegistry,
    RangeValidation,
    Side,
    normalize_block,
    validate_range,
)
from territory_api.models.address import Address
from territory_api.models.base import LifecycleStatus
from territory_api.models.street import Street
from territory_api.models.street_range import StreetRange
from territory_api.services.catalog_gateway import SqlCatalogGateway, SqlRangeStore, to_range_record

RangeWriteError = InvalidRange | NotFound | ConflictError | ConcurrentRangeEdit

# Fields an edit may change. The street is fixed for the life of a range.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "quadrant_id",
        "number_start",
        "number_end",
        "side",
        "priority",
        "block",
        "from_intersection",
        "to_intersection",
        "notes",
    }
)

# Fields that decide which addresses a range matches.
_MATCHING_FIELDS: tuple[str, ...] = ("quadrant_id", "number_start", "number_end", "side", "priority", "block")


class RangeAuditFinding(NamedTuple):
    """A pair of active ranges on one street that collide at equal priority."""

    street_id: uuid.UUID
    street_name: str
    range_id: uuid.UUID
    conflict: RangeConflict


def build_candidate(
    *,
    street_id: uuid.UUID,
    quadrant_id: uuid.UUID,
    number_start: int | None = None,
    number_end: int | None = None,
    side: Side | str = Side.BOTH,
    priority: int = 1,
    block: str | None = None,
    from_intersection: str | None = None,
    to_intersection: str | None = None,
    range_id: uuid.UUID | None = None,
) -> RangeRecord:
    """Assemble a RangeRecord from request fields, normalizing side and block."""
    return RangeRecord(
        id=range_id,
        street_id=street_id,
        quadrant_id=quadrant_id,
        number_start=number_start,
        number_end=number_end,
        side=Side(side),
        priority=priority,
        block=normalize_block(block),
        from_intersection=from_intersection,
        to_intersection=to_intersection,
    )


def _registry(session: AsyncSession, actor_id: uuid.UUID | None = None) -> RangeRegistry:
    return RangeRegistry(SqlRangeStore(session, actor_id), SqlCatalogGateway(session))


async def validate_range_definition(
    session: AsyncSession,
    candidate: RangeRecord,
) -> RangeValidation | InvalidRange | NotFound:
    """Check a candidate range without writing anything.

    Args:
        session: Database session.
        candidate: New range (``id`` None) or edited range (``id`` set).

    Returns:
        RangeValidation listing conflicts and priority overrides, or the
        InvalidRange / NotFound outcome.
    """
    return await _registry(session).validate(candidate)


async def _lock_street(session: AsyncSession, street_id: uuid.UUID) -> Street | None:
    # The identity map may hold a stale range_revision
    result = await session.execute(
        select(Street).where(Street.id == street_id).with_for_update().execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _bump_revision(session: AsyncSession, street_id: uuid.UUID, seen: int) -> bool:
    result = await session.execute(
        update(Street)
        .where(Street.id == street_id, Street.range_revision == seen)
        .values(range_revision=seen + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _write_range(
    session: AsyncSession,
    candidate: RangeRecord,
    *,
    actor_id: uuid.UUID,
    notes: str | None,
    validate: bool = True,
) -> StreetRange | RangeWriteError:
    street = await _lock_street(session, candidate.street_id)
    if street is None or not street.is_active:
        await session.rollback()
        return NotFound("street", candidate.street_id)
    seen = street.range_revision

    if validate:
        outcome = await _registry(session, actor_id).register(candidate)
    else:
        outcome = await SqlRangeStore(session, actor_id).upsert(candidate)
    if not isinstance(outcome, uuid.UUID):
        await session.rollback()
        return outcome

    if not await _bump_revision(session, candidate.street_id, seen):
        await session.rollback()
        logger.warning(f"Concurrent range edit on street {candidate.street_id} (revision {seen})")
        return ConcurrentRangeEdit(candidate.street_id)

    row = await session.get(StreetRange, outcome)
    if row is None:
        msg = f"Street range {outcome} missing after write"
        raise LookupError(msg)
    row.notes = notes
    await session.commit()
    await session.refresh(row)
    return row


async def create_range(
    session: AsyncSession,
    candidate: RangeRecord,
    *,
    actor_id: uuid.UUID,
    notes: str | None = None,
) -> StreetRange | RangeWriteError:
    """Validate and store a new street range.

    Args:
        session: Database session.
        candidate: Range to create; its ``id`` is ignored.
        actor_id: User performing the write.
        notes: Free-text operator notes.

    Returns:
        The stored StreetRange, or the outcome that blocked the write.
    """
    candidate = replace(candidate, id=None, active=True)
    result = await _write_range(session, candidate, actor_id=actor_id, notes=notes)
    if isinstance(result, StreetRange):
        logger.info(f"Created street range {result.id} on street {result.street_id}: {candidate.describe()}")
    return result


async def update_range(
    session: AsyncSession,
    range_id: uuid.UUID,
    changes: dict[str, Any],
    *,
    actor_id: uuid.UUID,
) -> StreetRange | RangeWriteError:
    """Apply changes to an active range and re-validate it.

    The edited range is checked against the street's other active ranges;
    its own stored version never counts as a conflict. Edits that leave the
    matching fields untouched (notes, intersections) skip the check, so a
    street with legacy overlaps can still be annotated.

    Args:
        session: Database session.
        range_id: Range to edit.
        changes: Field updates; keys outside the updatable set are ignored.
        actor_id: User performing the write.

    Returns:
        The updated StreetRange, or the outcome that blocked the write.
    """
    row = await session.get(StreetRange, range_id)
    if row is None or row.status != LifecycleStatus.ACTIVE:
        return NotFound("street range", range_id)

    current = to_range_record(row)
    fields = {k: v for k, v in changes.items() if k in _UPDATABLE_FIELDS and k != "notes"}
    for key in ("quadrant_id", "side", "priority"):
        if key in fields and fields[key] is None:
            return InvalidRange(f"{key} cannot be cleared", field=key)
    if "side" in fields:
        fields["side"] = Side(fields["side"])
    if "block" in fields:
        fields["block"] = normalize_block(fields["block"])
    candidate = replace(current, **fields)
    notes = changes["notes"] if "notes" in changes else row.notes
    rematch = any(getattr(candidate, key) != getattr(current, key) for key in _MATCHING_FIELDS)

    result = await _write_range(session, candidate, actor_id=actor_id, notes=notes, validate=rematch)
    if isinstance(result, StreetRange):
        logger.info(f"Updated street range {range_id}: {candidate.describe()}")
    return result


async def delete_range(
    session: AsyncSession,
    range_id: uuid.UUID,
    *,
    actor_id: uuid.UUID,
) -> StreetRange | NotFound | ConcurrentRangeEdit:
    """Soft-delete a range.

    Removing a range can never introduce a conflict, so no validation runs,
    but the street revision is still bumped so concurrent editors notice.
    Addresses matched to the range keep their assignment until re-resolved.
    """
    row = await session.get(StreetRange, range_id)
    if row is None or row.status == LifecycleStatus.DELETED:
        return NotFound("street range", range_id)

    street = await _lock_street(session, row.street_id)
    if street is None:
        await session.rollback()
        return NotFound("street", row.street_id)
    seen = street.range_revision

    row.status = LifecycleStatus.DELETED.value
    row.deleted_at = datetime.now(UTC)
    row.deleted_by = actor_id
    row.updated_by = actor_id
    await session.flush()

    if not await _bump_revision(session, row.street_id, seen):
        await session.rollback()
        return ConcurrentRangeEdit(row.street_id)

    affected = (
        await session.execute(
            select(func.count(Address.id)).where(
                Address.matched_range_id == range_id,
                Address.status != LifecycleStatus.DELETED,
            )
        )
    ).scalar_one()
    await session.commit()
    await session.refresh(row)
    logger.info(f"Deleted street range {range_id}; {affected} address(es) still reference it")
    return row


async def get_range(session: AsyncSession, range_id: uuid.UUID) -> StreetRange | None:
    """Get a non-deleted range by ID."""
    row = await session.get(StreetRange, range_id)
    if row is None or row.status == LifecycleStatus.DELETED:
        return None
    return row


async def list_street_ranges(session: AsyncSession, street_id: uuid.UUID) -> list[StreetRange] | NotFound:
    """List a street's active ranges in display order.

    Numeric ranges come first by start number, then catch-alls; ties by
    priority.
    """
    street = await session.get(Street, street_id)
    if street is None or street.status == LifecycleStatus.DELETED:
        return NotFound("street", street_id)
    result = await session.execute(
        select(StreetRange)
        .where(StreetRange.street_id == street_id, StreetRange.status == LifecycleStatus.ACTIVE)
        .order_by(
            StreetRange.number_start.is_(None),
            StreetRange.number_start,
            StreetRange.priority,
            StreetRange.side,
        )
    )
    return list(result.scalars().all())


async def audit_street_ranges(
    session: AsyncSession,
    street_id: uuid.UUID | None = None,
) -> list[RangeAuditFinding]:
    """Re-validate stored ranges and report same-priority collisions.

    Rows written before the validation rules existed, or loaded in bulk, can
    collide. Each colliding pair is reported once.

    Args:
        session: Database session.
        street_id: Restrict the audit to one street.

    Returns:
        Findings ordered by street name.
    """
    query = select(Street).where(Street.status == LifecycleStatus.ACTIVE).order_by(Street.full_name, Street.id)
    if street_id is not None:
        query = query.where(Street.id == street_id)
    streets = list((await session.execute(query)).scalars().all())

    store = SqlRangeStore(session)
    findings: list[RangeAuditFinding] = []
    for street in streets:
        ranges = await store.list_active_ranges(street.id)
        seen_pairs: set[frozenset[uuid.UUID]] = set()
        for record in ranges:
            result = validate_range(record, ranges)
            if not isinstance(result, RangeValidation):
                logger.warning(f"Stored range {record.id} is malformed: {result.message}")
                continue
            for conflict in result.conflicts:
                pair = frozenset({record.id, conflict.range_id})
                if pair in seen_pairs:
                    continue
                seen_pairs.add(pair)
                findings.append(
                    RangeAuditFinding(street.id, street.full_name, record.id, conflict)  # type: ignore[arg-type]
                )

    logger.info(f"Range audit checked {len(streets)} street(s): {len(findings)} conflict(s)")
    return findings
