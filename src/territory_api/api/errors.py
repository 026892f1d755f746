"""Mapping from territory outcomes to HTTP error responses.

Services return territory errors as values; routers raise them and the
handler registered here turns them into an ``ErrorResponse`` body.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from territory_api.lib.territory import (
    ConcurrentRangeEdit,
    ConflictError,
    GeocoderUnavailable,
    InvalidArgument,
    InvalidRange,
    NoCoverage,
    NoGeocodeMatch,
    NotFound,
    TerritoryError,
)
from territory_api.schemas.common import ErrorResponse
from territory_api.schemas.street_range import RangeConflictResponse

_STATUS_BY_ERROR: dict[type[TerritoryError], int] = {
    InvalidRange: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidArgument: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoCoverage: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoGeocodeMatch: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ConcurrentRangeEdit: status.HTTP_409_CONFLICT,
    GeocoderUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(error: TerritoryError) -> int:
    """HTTP status for a territory error; unknown subclasses map to 400."""
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def error_body(error: TerritoryError) -> ErrorResponse:
    """Build the response body, listing every conflicting range for ConflictError."""
    errors: list[dict] | None = None
    if isinstance(error, ConflictError):
        errors = [RangeConflictResponse.from_conflict(c).model_dump(mode="json") for c in error.conflicts]
    elif isinstance(error, InvalidRange | InvalidArgument) and error.field:
        errors = [{"field": error.field, "message": error.message}]
    return ErrorResponse(detail=error.message, code=error.code, errors=errors)


async def territory_error_handler(request: Request, exc: TerritoryError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content=error_body(exc).model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the territory error handler on an app."""
    app.add_exception_handler(TerritoryError, territory_error_handler)  # type: ignore[arg-type]
