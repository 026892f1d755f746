"""FastAPI dependency injection for database sessions, auth, and access control.

Provides get_async_session, get_current_user, and the require_capability
factory used by every router.
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from territory_api.core.config import Settings, get_settings
from territory_api.core.database import get_session_factory
from territory_api.core.permissions import Capability, has_capability
from territory_api.core.security import decode_token
from territory_api.models.user import User

# Tokens are issued by the identity service; the URL is only advertised in OpenAPI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Decode JWT and return the authenticated user.

    Args:
        token: The JWT bearer token.
        session: The database session.
        settings: Application settings.

    Returns:
        The authenticated User model instance.

    Raises:
        HTTPException: If the token is invalid or user not found.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
        username: str | None = payload.get("sub")
        if username is None:
            raise credentials_exception
    except Exception as exc:
        raise credentials_exception from exc

    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def require_capability(capability: Capability) -> Callable[..., Any]:
    """Factory that creates a dependency requiring a single capability.

    Args:
        capability: The capability the endpoint needs.

    Returns:
        A FastAPI dependency function that validates the user's role grants it.
    """

    async def capability_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not has_capability(current_user.role, capability):
            logger.warning(f"User {current_user.username} ({current_user.role}) denied {capability.slug}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' lacks capability '{capability.slug}'",
            )
        return current_user

    return capability_checker
