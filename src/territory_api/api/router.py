"""Root API router with /api/v1 prefix and middleware registration."""

from fastapi import APIRouter, FastAPI

from territory_api.api.middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    setup_cors,
)
from territory_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from territory_api.api.v1.addresses import addresses_router
    from territory_api.api.v1.quadrants import quadrants_router
    from territory_api.api.v1.street_ranges import street_ranges_router
    from territory_api.api.v1.streets import streets_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(street_ranges_router)
    root_router.include_router(streets_router)
    root_router.include_router(addresses_router)
    root_router.include_router(quadrants_router)

    return root_router


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware on the FastAPI app.

    Args:
        app: The FastAPI application.
        settings: Application settings.
    """
    setup_cors(app, settings)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_minute=settings.rate_limit_per_minute,
        trusted_proxy_headers=settings.trusted_proxy_header_list,
    )
    app.add_middleware(RequestLoggingMiddleware)
