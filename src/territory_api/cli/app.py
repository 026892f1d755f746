"""Typer CLI root application with serve command."""

import typer

from territory_api.core.config import get_settings
from territory_api.core.logging import setup_logging

app = typer.Typer(name="territory-api", help="Patrol territory catalog and address resolution CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, log_format=settings.log_format)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "territory_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from territory_api.cli.addresses_cmd import addresses_app
    from territory_api.cli.db_cmd import db_app
    from territory_api.cli.quadrants_cmd import quadrants_app
    from territory_api.cli.ranges_cmd import ranges_app
    from territory_api.cli.user_cmd import user_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(user_app, name="user", help="Operator accounts and access tokens")
    app.add_typer(ranges_app, name="ranges", help="Street range maintenance commands")
    app.add_typer(addresses_app, name="addresses", help="Address assignment commands")
    app.add_typer(quadrants_app, name="quadrants", help="Quadrant lookup commands")


_register_subcommands()
