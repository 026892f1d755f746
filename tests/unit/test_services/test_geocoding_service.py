"""Tests for the geocoding service: catalog approximation, provider fallback and provenance."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from territory_api.core.config import Settings
from territory_api.lib.geocoder import GeocodeQuality, GeocodingProviderError, GeocodingResult, NominatimGeocoder
from territory_api.lib.territory import GeocoderUnavailable, InvalidArgument, NoGeocodeMatch, NotFound
from territory_api.models.address import Address
from territory_api.services.address_service import create_address, update_address
from territory_api.services.geocoding_service import (
    SameBlockGeocoder,
    geocode_address,
    geocode_missing,
    geocode_text,
    get_configured_geocoders,
)


@pytest.fixture
def local_settings(settings: Settings) -> Settings:
    """Settings with external providers switched off."""
    return settings.model_copy(update={"geocoder_nominatim_enabled": False})


async def _add(
    session,
    street_id: uuid.UUID,
    *,
    number: str | None = None,
    block: str | None = None,
    lot: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    source: str | None = None,
) -> Address:
    label = " ".join(part for part in (number, block and f"MZ {block}", lot and f"LT {lot}") if part)
    address = Address(
        street_id=street_id,
        municipal_number=number,
        block=block,
        lot=lot,
        full_address=f"ADDR {label}",
        latitude=lat,
        longitude=lng,
        geocode_source=source,
    )
    session.add(address)
    await session.commit()
    return address


def _nominatim_hit() -> GeocodingResult:
    return GeocodingResult(
        latitude=-12.0500,
        longitude=-77.0400,
        quality=GeocodeQuality.EXACT,
        provider="nominatim",
        matched_address="450, Avenida Arequipa, Lima",
    )


class TestConfiguredGeocoders:
    def test_catalog_first_then_nominatim(self, async_session, settings) -> None:
        providers = get_configured_geocoders(async_session, settings)
        assert [type(p) for p in providers] == [SameBlockGeocoder, NominatimGeocoder]

    def test_nominatim_disabled(self, async_session, local_settings) -> None:
        providers = get_configured_geocoders(async_session, local_settings)
        assert [p.provider_name for p in providers] == ["database"]


class TestGeocodeText:
    """Tests for free-text geocoding."""

    async def test_borrows_nearest_located_neighbor(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.street, number="401", lat=-12.0401, lng=-77.0401)
        neighbor = await _add(async_session, territory.street, number="449", lat=-12.0449, lng=-77.0449)
        await _add(async_session, territory.street, number="520", lat=-12.0520, lng=-77.0520)

        result = await geocode_text(async_session, "Av. Arequipa 450", local_settings)

        assert isinstance(result, GeocodingResult)
        assert (result.latitude, result.longitude) == (-12.0449, -77.0449)
        assert result.provider == "database"
        assert result.quality == GeocodeQuality.APPROXIMATE
        assert result.reference_address_id == neighbor.id

    async def test_approximations_never_seed_approximations(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.street, number="449", lat=-12.0449, lng=-77.0449, source="database")

        result = await geocode_text(async_session, "Av. Arequipa 450", local_settings)

        assert isinstance(result, NoGeocodeMatch)

    async def test_inactive_street_ignored(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.inactive_street, number="10", lat=-12.01, lng=-77.01)

        result = await geocode_text(async_session, "Ca. Vieja 12", local_settings)

        assert isinstance(result, NoGeocodeMatch)

    async def test_same_block(self, async_session, territory, local_settings) -> None:
        lot_mate = await _add(async_session, territory.other_street, block="B", lot="1", lat=-12.03, lng=-77.03)

        result = await geocode_text(async_session, "Jr. Cusco Mz b Lt 3", local_settings)

        assert isinstance(result, GeocodingResult)
        assert result.reference_address_id == lot_mate.id

    async def test_no_street_name(self, async_session, territory, local_settings) -> None:
        result = await geocode_text(async_session, "Mz B Lt 3", local_settings)
        assert isinstance(result, InvalidArgument)
        assert result.field == "address"

    async def test_falls_back_to_nominatim(self, async_session, territory, settings) -> None:
        with patch.object(NominatimGeocoder, "geocode", new_callable=AsyncMock, return_value=_nominatim_hit()) as mock:
            result = await geocode_text(async_session, "Av. Arequipa 450", settings)

        assert isinstance(result, GeocodingResult)
        assert result.provider == "nominatim"
        parsed = mock.call_args.args[0]
        assert (parsed.way_prefix, parsed.street_name, parsed.number) == ("Av.", "Arequipa", "450")

    async def test_catalog_match_skips_nominatim(self, async_session, territory, settings) -> None:
        await _add(async_session, territory.street, number="449", lat=-12.0449, lng=-77.0449)

        with patch.object(NominatimGeocoder, "geocode", new_callable=AsyncMock) as mock:
            result = await geocode_text(async_session, "Av. Arequipa 450", settings)

        assert isinstance(result, GeocodingResult)
        assert result.provider == "database"
        mock.assert_not_awaited()

    async def test_provider_failure_reported(self, async_session, territory, settings) -> None:
        with patch.object(
            NominatimGeocoder,
            "geocode",
            new_callable=AsyncMock,
            side_effect=GeocodingProviderError("nominatim", "Geocoding request timed out"),
        ):
            result = await geocode_text(async_session, "Av. Arequipa 450", settings)

        assert isinstance(result, GeocoderUnavailable)
        assert result.provider_name == "nominatim"


class TestGeocodeAddress:
    """Tests for geocoding a stored address."""

    async def test_stores_point_and_provenance(self, async_session, territory, local_settings) -> None:
        neighbor = await _add(async_session, territory.street, number="455", lat=-12.0455, lng=-77.0455)
        address = await _add(async_session, territory.street, number="450")

        result = await geocode_address(async_session, address.id, local_settings, actor_id=territory.admin)

        assert isinstance(result, Address)
        assert (result.latitude, result.longitude) == (-12.0455, -77.0455)
        assert result.geocode_source == "database"
        assert result.geocode_quality == "approximate"
        assert result.geocode_reference_id == neighbor.id
        assert result.updated_by == territory.admin

    async def test_uses_stored_street_not_name_search(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.other_street, number="455", lat=-12.0455, lng=-77.0455)
        address = await _add(async_session, territory.street, number="450")

        result = await geocode_address(async_session, address.id, local_settings, actor_id=territory.admin)

        assert isinstance(result, NoGeocodeMatch)
        await async_session.refresh(address)
        assert address.latitude is None
        assert address.geocode_source is None

    async def test_located_address_kept_without_force(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.street, number="455", lat=-12.0455, lng=-77.0455)
        address = await _add(async_session, territory.street, number="450", lat=-12.1, lng=-77.1, source="manual")

        result = await geocode_address(async_session, address.id, local_settings, actor_id=territory.admin)

        assert isinstance(result, Address)
        assert (result.latitude, result.geocode_source) == (-12.1, "manual")

    async def test_force_replaces_and_skips_itself(self, async_session, territory, local_settings) -> None:
        neighbor = await _add(async_session, territory.street, number="455", lat=-12.0455, lng=-77.0455)
        address = await _add(async_session, territory.street, number="450", lat=-12.1, lng=-77.1, source="manual")

        result = await geocode_address(
            async_session, address.id, local_settings, actor_id=territory.admin, force=True
        )

        assert isinstance(result, Address)
        assert result.geocode_reference_id == neighbor.id
        assert result.latitude == -12.0455

    async def test_unknown_address(self, async_session, territory, local_settings) -> None:
        result = await geocode_address(async_session, uuid.uuid4(), local_settings, actor_id=territory.admin)
        assert isinstance(result, NotFound)


class TestGeocodeMissing:
    """Tests for batch geocoding."""

    async def test_counts(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.street, number="455", lat=-12.0455, lng=-77.0455)
        locatable = await _add(async_session, territory.street, number="450")
        await _add(async_session, territory.street, number="900")

        counts = await geocode_missing(async_session, local_settings, actor_id=territory.admin, batch_size=1)

        assert counts == {"located": 1, "unmatched": 1, "failed": 0, "total": 2}
        await async_session.refresh(locatable)
        assert locatable.geocode_source == "database"
        assert locatable.updated_by == territory.admin

    async def test_rerun_is_noop_for_located(self, async_session, territory, local_settings) -> None:
        await _add(async_session, territory.street, number="455", lat=-12.0455, lng=-77.0455)
        await _add(async_session, territory.street, number="450")

        await geocode_missing(async_session, local_settings)
        counts = await geocode_missing(async_session, local_settings)

        assert counts["total"] == 0

    async def test_provider_failures_counted(self, async_session, territory, settings) -> None:
        await _add(async_session, territory.street, number="900")
        await _add(async_session, territory.other_street, number="12")

        with patch.object(
            NominatimGeocoder,
            "geocode",
            new_callable=AsyncMock,
            side_effect=GeocodingProviderError("nominatim", "Provider returned HTTP 429", status_code=429),
        ):
            counts = await geocode_missing(async_session, settings, street_id=territory.street)

        assert counts == {"located": 0, "unmatched": 0, "failed": 1, "total": 1}


class TestCoordinateProvenance:
    """Operator-entered coordinates are recorded as a manual placement."""

    async def test_create_with_coordinates(self, async_session, territory) -> None:
        address = await create_address(
            async_session,
            street_id=territory.street,
            actor_id=territory.admin,
            municipal_number="450",
            latitude=-12.05,
            longitude=-77.04,
        )
        assert isinstance(address, Address)
        assert address.geocode_source == "manual"

    async def test_create_without_coordinates(self, async_session, territory) -> None:
        address = await create_address(
            async_session, street_id=territory.street, actor_id=territory.admin, municipal_number="450"
        )
        assert isinstance(address, Address)
        assert address.geocode_source is None

    async def test_manual_edit_replaces_geocoded_point(self, async_session, territory) -> None:
        address = await _add(
            async_session, territory.street, number="450", lat=-12.0455, lng=-77.0455, source="database"
        )
        address.geocode_quality = "approximate"
        address.geocode_reference_id = uuid.uuid4()
        await async_session.commit()

        result = await update_address(
            async_session, address.id, {"latitude": -12.06, "longitude": -77.05}, actor_id=territory.admin
        )

        assert isinstance(result, Address)
        assert result.geocode_source == "manual"
        assert result.geocode_quality is None
        assert result.geocode_reference_id is None

    async def test_clearing_coordinates_clears_source(self, async_session, territory) -> None:
        address = await _add(async_session, territory.street, number="450", lat=-12.0455, lng=-77.0455, source="manual")

        result = await update_address(
            async_session, address.id, {"latitude": None, "longitude": None}, actor_id=territory.admin
        )

        assert isinstance(result, Address)
        assert result.latitude is None
        assert result.geocode_source is None

    async def test_unrelated_edit_keeps_source(self, async_session, territory) -> None:
        address = await _add(
            async_session, territory.street, number="450", lat=-12.0455, lng=-77.0455, source="database"
        )

        result = await update_address(
            async_session, address.id, {"reference": "Frente al parque"}, actor_id=territory.admin
        )

        assert isinstance(result, Address)
        assert result.geocode_source == "database"
