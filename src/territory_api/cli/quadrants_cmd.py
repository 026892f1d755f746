"""Quadrant lookup CLI commands."""

import asyncio

import typer

quadrants_app = typer.Typer()


@quadrants_app.command("nearby")
def nearby(
    lat: float = typer.Option(..., "--lat", help="Latitude"),
    lng: float = typer.Option(..., "--lng", help="Longitude"),
    radius_km: float | None = typer.Option(None, "--radius-km", help="Search radius in kilometers"),
) -> None:
    """List active quadrants near a point using the in-memory grid index."""
    asyncio.run(_nearby(lat, lng, radius_km))


async def _nearby(lat: float, lng: float, radius_km: float | None) -> None:
    """Async implementation of the nearby lookup."""
    from territory_api.core.config import get_settings
    from territory_api.core.database import dispose_engine, get_session_factory, init_engine
    from territory_api.lib.territory import InvalidArgument
    from territory_api.services.quadrant_service import build_grid_index

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
            index = await build_grid_index(session, settings.proximity_grid_cell_deg)
    finally:
        await dispose_engine()

    result = index.query(lat, lng, radius_km or settings.proximity_default_radius_km)
    if isinstance(result, InvalidArgument):
        typer.echo(f"Error: {result.message}", err=True)
        raise typer.Exit(code=2)

    if not result:
        typer.echo("No quadrants in range")
        return
    for hit in result:
        typer.echo(f"{hit.quadrant.code:<10} {hit.distance_km:8.3f} km  {hit.quadrant.name or ''}")
