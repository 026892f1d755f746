"""Async engine and session factory for the territorial catalog.

``init_engine`` is the only place an engine is built. PostgreSQL (asyncpg)
gets a sized, pre-pinged pool and an optional schema search path; SQLite
(aiosqlite, used by tests and local runs) gets a single shared connection
for in-memory databases so every session sees the same tables.
"""

from typing import Any

from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

APPLICATION_NAME = "territory-api"

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(
    database_url: str,
    *,
    schema: str | None = None,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` suited to the URL's backend.

    Args:
        database_url: Async connection string.
        schema: PostgreSQL schema searched before ``public`` (e.g. ``pr_42``).
            Ignored for SQLite.
        pool_size: Pooled connections (PostgreSQL only).
        max_overflow: Connections allowed above ``pool_size`` (PostgreSQL only).
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
        return options

    server_settings = {"application_name": APPLICATION_NAME}
    if schema is not None:
        server_settings["search_path"] = f"{schema},public"
    return {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "connect_args": {"server_settings": server_settings},
    }


def get_engine() -> AsyncEngine:
    """Return the current async engine.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the current session factory.

    Raises:
        RuntimeError: If the engine has not been initialized.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def init_engine(
    database_url: str,
    *,
    schema: str | None = None,
    pool_size: int = 10,
    max_overflow: int = 5,
    echo: bool = False,
) -> AsyncEngine:
    """Build the process-wide engine and session factory.

    Sessions do not expire objects on commit; services re-read what they
    need after a rollback.

    Returns:
        The created async engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    options = engine_options(database_url, schema=schema, pool_size=pool_size, max_overflow=max_overflow)
    _engine = create_async_engine(database_url, echo=echo, **options)
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    logger.debug(f"Database engine ready: {make_url(database_url).render_as_string(hide_password=True)}")
    return _engine


async def dispose_engine() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
