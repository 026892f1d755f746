"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="PostgreSQL async connection string",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )
    database_pool_size: int = Field(default=10, description="Connections kept open per process", gt=0)
    database_max_overflow: int = Field(default=5, description="Extra connections allowed under load", ge=0)

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # JWT
    jwt_secret_key: str = Field(min_length=32, description="Secret key for verifying JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=30,
        description="Access token expiration in minutes",
        gt=0,
    )

    # Proximity search
    proximity_default_radius_km: float = Field(
        default=5.0,
        description="Radius used by the nearby-quadrants endpoint when none is given",
        gt=0,
    )
    proximity_max_radius_km: float = Field(
        default=50.0,
        description="Largest radius the nearby-quadrants endpoint accepts",
        gt=0,
    )
    proximity_grid_cell_deg: float = Field(
        default=0.05,
        description="Grid cell size in degrees for the in-memory quadrant index",
        gt=0,
        le=10,
    )

    # Address re-resolution
    reresolve_batch_size: int = Field(
        default=500,
        description="Addresses per batch when recomputing derived assignments",
        gt=0,
    )

    # Geocoding — catalog approximation runs first, then the providers below
    geocoder_city: str = Field(default="Arequipa", description="District searches are biased to")
    geocoder_county: str = Field(default="Arequipa", description="Province searches are biased to")
    geocoder_country: str = Field(default="Peru", description="Country searches are restricted to")
    geocoder_country_code: str = Field(
        default="pe",
        description="ISO 3166-1 alpha-2 country code searches are restricted to",
        min_length=2,
        max_length=2,
    )
    geocoder_batch_size: int = Field(
        default=100,
        description="Addresses per batch when geocoding the catalog",
        gt=0,
    )

    # Geocoding — Nominatim (OpenStreetMap)
    geocoder_nominatim_enabled: bool = Field(
        default=True,
        description="Enable Nominatim (OpenStreetMap) geocoder",
    )
    geocoder_nominatim_email: str = Field(
        default="",
        description="Email for Nominatim usage policy compliance",
    )
    geocoder_nominatim_timeout: float = Field(
        default=10.0,
        description="Nominatim request timeout in seconds",
        gt=0,
    )
    geocoder_nominatim_user_agent: str = Field(
        default="territory-api/1.0",
        description="User-Agent sent to Nominatim",
    )
    geocoder_nominatim_min_interval: float = Field(
        default=1.0,
        description="Seconds between consecutive Nominatim requests",
        ge=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="stderr log format: human-readable text or JSON lines",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )
    cors_origin_regex: str = Field(
        default="",
        description="Regex pattern for allowed CORS origins",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )
    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="X-Forwarded-For,X-Real-IP",
        description="Comma-separated list of HTTP headers to check for real client IP, in priority order",
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        """Parse trusted proxy headers string into a list."""
        if not self.trusted_proxy_headers.strip():
            return []
        return [h.strip() for h in self.trusted_proxy_headers.split(",") if h.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
