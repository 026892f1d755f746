"""Database migration CLI commands using Alembic programmatically."""

import typer
from alembic import command
from alembic.config import Config
from loguru import logger

db_app = typer.Typer()

_CONFIG_OPTION = typer.Option("alembic.ini", "--config", "-c", help="Path to the Alembic config file")


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    config: str = _CONFIG_OPTION,
) -> None:
    """Apply migrations up to the target revision (creates the territorial catalog tables)."""
    logger.info(f"Upgrading territory database to {revision}")
    command.upgrade(Config(config), revision)
    logger.info("Territory database upgrade complete")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    config: str = _CONFIG_OPTION,
) -> None:
    """Roll migrations back to the target revision."""
    logger.info(f"Downgrading territory database to {revision}")
    command.downgrade(Config(config), revision)
    logger.info("Territory database downgrade complete")


@db_app.command()
def current(config: str = _CONFIG_OPTION) -> None:
    """Show the revision the database is at."""
    command.current(Config(config), verbose=True)
