"""Address assignment CLI commands."""

import asyncio
import uuid

import typer

addresses_app = typer.Typer()


@addresses_app.command("reresolve")
def reresolve(
    street_id: str | None = typer.Option(None, "--street-id", help="Only addresses on this street"),
    range_id: str | None = typer.Option(None, "--range-id", help="Only addresses matched to this range"),
    batch_size: int | None = typer.Option(None, "--batch-size", help="Addresses per batch"),
) -> None:
    """Recompute quadrant and sector assignments after range edits."""
    asyncio.run(
        _reresolve(
            uuid.UUID(street_id) if street_id else None,
            uuid.UUID(range_id) if range_id else None,
            batch_size,
        )
    )


async def _reresolve(street_id: uuid.UUID | None, range_id: uuid.UUID | None, batch_size: int | None) -> None:
    """Async implementation of address re-resolution."""
    from territory_api.core.config import get_settings
    from territory_api.core.database import dispose_engine, get_session_factory, init_engine
    from territory_api.services.address_service import reresolve_addresses

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
            counts = await reresolve_addresses(
                session,
                street_id=street_id,
                range_id=range_id,
                batch_size=batch_size or settings.reresolve_batch_size,
            )
    finally:
        await dispose_engine()

    typer.echo(
        f"Re-resolved {counts['total']} address(es): {counts['changed']} changed, "
        f"{counts['unchanged']} unchanged, {counts['unassigned']} unassigned"
    )


@addresses_app.command("geocode")
def geocode(
    street_id: str | None = typer.Option(None, "--street-id", help="Only addresses on this street"),
    batch_size: int | None = typer.Option(None, "--batch-size", help="Addresses per commit"),
) -> None:
    """Locate every address that has no coordinates yet."""
    asyncio.run(_geocode(uuid.UUID(street_id) if street_id else None, batch_size))


async def _geocode(street_id: uuid.UUID | None, batch_size: int | None) -> None:
    from territory_api.core.config import get_settings
    from territory_api.core.database import dispose_engine, get_session_factory, init_engine
    from territory_api.services.geocoding_service import geocode_missing

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
            counts = await geocode_missing(
                session,
                settings,
                street_id=street_id,
                batch_size=batch_size or settings.geocoder_batch_size,
            )
    finally:
        await dispose_engine()

    typer.echo(
        f"Geocoded {counts['total']} address(es): {counts['located']} located, "
        f"{counts['unmatched']} unmatched, {counts['failed']} failed"
    )
    if counts["failed"]:
        raise typer.Exit(code=1)
