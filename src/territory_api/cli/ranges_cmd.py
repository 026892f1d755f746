"""Street range maintenance CLI commands."""

import asyncio
import json
import uuid

import typer

ranges_app = typer.Typer()


@ranges_app.command("audit")
def audit(
    street_id: str | None = typer.Option(None, "--street-id", help="Only audit this street"),
    as_json: bool = typer.Option(False, "--json", help="Print findings as JSON lines"),
) -> None:
    """Re-validate stored ranges and report same-priority overlaps.

    Exits with status 1 when any conflict is found.
    """
    parsed = uuid.UUID(street_id) if street_id else None
    conflicts = asyncio.run(_audit(parsed, as_json=as_json))
    if conflicts:
        raise typer.Exit(code=1)


async def _audit(street_id: uuid.UUID | None, *, as_json: bool) -> int:
    """Async implementation of the range audit."""
    from territory_api.core.config import get_settings
    from territory_api.core.database import dispose_engine, get_session_factory, init_engine
    from territory_api.services.range_service import audit_street_ranges

    settings = get_settings()
    init_engine(
        settings.database_url,
        schema=settings.database_schema,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

    try:
        factory = get_session_factory()
        async with factory() as session:
            findings = await audit_street_ranges(session, street_id)
    finally:
        await dispose_engine()

    for finding in findings:
        conflict = finding.conflict
        if as_json:
            typer.echo(
                json.dumps(
                    {
                        "street_id": str(finding.street_id),
                        "street": finding.street_name,
                        "range_id": str(finding.range_id),
                        "conflicting_range_id": str(conflict.range_id),
                        "side": conflict.side.value,
                        "priority": conflict.priority,
                        "overlap_start": conflict.overlap_start,
                        "overlap_end": conflict.overlap_end,
                    }
                )
            )
            continue
        span = (
            "whole street"
            if conflict.overlap_start is None
            else f"numbers {conflict.overlap_start}-{conflict.overlap_end}"
        )
        typer.echo(
            f"{finding.street_name}: range {finding.range_id} overlaps {conflict.range_id} "
            f"on {span} at priority {conflict.priority}"
        )

    if not as_json:
        typer.echo(f"{len(findings)} conflict(s) found")
    return len(findings)
