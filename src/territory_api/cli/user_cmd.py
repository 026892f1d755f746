"""Operator account CLI commands.

Passwords live in the identity service; these commands only register the
operator's role here and mint access tokens for scripts and local testing.
"""

import asyncio

import typer

from territory_api.core.permissions import ROLE_CAPABILITIES

user_app = typer.Typer()


def _check_role(role: str) -> str:
    if role not in ROLE_CAPABILITIES:
        msg = f"Unknown role {role!r}; expected one of {', '.join(sorted(ROLE_CAPABILITIES))}"
        raise typer.BadParameter(msg)
    return role


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., help="Username as issued by the identity service"),
    email: str = typer.Option(..., help="Email address"),
    role: str = typer.Option("operator", callback=_check_role, help="Role (admin/supervisor/operator/viewer)"),
) -> None:
    """Register an operator and their role."""
    asyncio.run(_create_user(username, email, role))


async def _create_user(username: str, email: str, role: str) -> None:
    """Async implementation of user registration."""
    from sqlalchemy.exc import IntegrityError

    from territory_api.core.config import get_settings
    from territory_api.core.database import dispose_engine, get_session_factory, init_engine
    from territory_api.models.user import User

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
            session.add(User(username=username, email=email, role=role, is_active=True))
            try:
                await session.commit()
            except IntegrityError as e:
                typer.echo(f"Error: user '{username}' or email '{email}' already exists", err=True)
                raise typer.Exit(code=1) from e
            typer.echo(f"User '{username}' registered with role '{role}'")
    finally:
        await dispose_engine()


@user_app.command("token")
def issue_token(
    username: str = typer.Option(..., help="Token subject"),
    role: str = typer.Option(..., callback=_check_role, help="Role claim"),
    expires_minutes: int | None = typer.Option(None, "--expires-minutes", help="Override token lifetime"),
) -> None:
    """Print a signed access token for a registered operator."""
    from territory_api.core.config import get_settings
    from territory_api.core.security import create_access_token

    settings = get_settings()
    token = create_access_token(
        subject=username,
        role=role,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=expires_minutes or settings.jwt_access_token_expire_minutes,
    )
    typer.echo(token)
