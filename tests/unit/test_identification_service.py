"""Unit tests for AudioIdentificationService -- fallback chain and venue handling."""

from __future__ import annotations

import math

import pytest

from src.models.identification import IdentifyLinks, IdentifyResult
from src.services.identification_service import AudioIdentificationService
from src.utils.errors import InvalidAudioError, ProviderUnavailableError
from tests.conftest import NOW, FakeGeocoder, FakeRecognitionProvider

SAMPLE = b"RIFF" + b"\x00" * 1024

ACR_MATCH = IdentifyResult(
    found=True,
    source="acrcloud",
    artist="Fred again..",
    title="Rumble",
    links=IdentifyLinks(spotify="https://open.spotify.com/track/abc"),
)
AUDD_MATCH = IdentifyResult(found=True, source="audd", artist="Skrillex", title="Rumble")


def _service(*providers: FakeRecognitionProvider, geocoder: FakeGeocoder | None = None, **kwargs):  # noqa: ANN003, ANN202
    return AudioIdentificationService(list(providers), geocoder=geocoder, clock=lambda: NOW, **kwargs)


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_no_match_anywhere_is_not_an_error(self) -> None:
        acr = FakeRecognitionProvider("acrcloud")
        audd = FakeRecognitionProvider("audd")

        result = await _service(acr, audd).identify(SAMPLE)

        assert result.found is False
        assert result.identified_at == NOW
        assert (acr.calls, audd.calls) == (1, 1)

    @pytest.mark.asyncio
    async def test_first_match_wins(self) -> None:
        acr = FakeRecognitionProvider("acrcloud", ACR_MATCH)
        audd = FakeRecognitionProvider("audd", AUDD_MATCH)

        result = await _service(acr, audd).identify(SAMPLE)

        assert result.source == "acrcloud"
        assert result.artist == "Fred again.."
        assert audd.calls == 0

    @pytest.mark.asyncio
    async def test_falls_back_when_primary_finds_nothing(self) -> None:
        acr = FakeRecognitionProvider("acrcloud")
        audd = FakeRecognitionProvider("audd", AUDD_MATCH)

        result = await _service(acr, audd).identify(SAMPLE)

        assert result.source == "audd"

    @pytest.mark.asyncio
    async def test_falls_back_when_primary_fails(self) -> None:
        acr = FakeRecognitionProvider(
            "acrcloud", error=ProviderUnavailableError("down", provider_name="acrcloud")
        )
        audd = FakeRecognitionProvider("audd", AUDD_MATCH)

        result = await _service(acr, audd).identify(SAMPLE)

        assert result.source == "audd"

    @pytest.mark.asyncio
    async def test_unconfigured_provider_skipped(self) -> None:
        acr = FakeRecognitionProvider("acrcloud", ACR_MATCH, available=False)
        audd = FakeRecognitionProvider("audd", AUDD_MATCH)

        result = await _service(acr, audd).identify(SAMPLE)

        assert acr.calls == 0
        assert result.source == "audd"

    @pytest.mark.asyncio
    async def test_no_providers(self) -> None:
        result = await _service().identify(SAMPLE)
        assert result.found is False


class TestAudioValidation:
    @pytest.mark.asyncio
    async def test_empty_audio_rejected(self) -> None:
        acr = FakeRecognitionProvider("acrcloud")
        with pytest.raises(InvalidAudioError):
            await _service(acr).identify(b"")
        assert acr.calls == 0

    @pytest.mark.asyncio
    async def test_oversized_audio_rejected(self) -> None:
        acr = FakeRecognitionProvider("acrcloud")
        service = _service(acr, max_audio_bytes=2 * 1024 * 1024)

        with pytest.raises(InvalidAudioError, match="max 2MB"):
            await service.identify(b"\x00" * (2 * 1024 * 1024 + 1))
        assert acr.calls == 0

    @pytest.mark.asyncio
    async def test_exactly_at_limit_accepted(self) -> None:
        service = _service(FakeRecognitionProvider("acrcloud"), max_audio_bytes=16)
        result = await service.identify(b"\x00" * 16)
        assert result.found is False


class TestVenue:
    @pytest.mark.asyncio
    async def test_explicit_venue_wins(self) -> None:
        geocoder = FakeGeocoder("Somewhere Else")
        service = _service(FakeRecognitionProvider("acrcloud", ACR_MATCH), geocoder=geocoder)

        result = await service.identify(SAMPLE, 52.51, 13.44, venue_name="  Berghain ")

        assert result.venue == "Berghain"
        assert geocoder.calls == []

    @pytest.mark.asyncio
    async def test_gps_reverse_geocoded(self) -> None:
        geocoder = FakeGeocoder("Fabric")
        service = _service(FakeRecognitionProvider("acrcloud", ACR_MATCH), geocoder=geocoder)

        result = await service.identify(SAMPLE, latitude=51.52, longitude=-0.10)

        assert result.venue == "Fabric"
        assert geocoder.calls == [(51.52, -0.10)]
        assert "latitude" not in result.model_dump()

    @pytest.mark.asyncio
    async def test_venue_attached_even_without_match(self) -> None:
        service = _service(FakeRecognitionProvider("acrcloud"), geocoder=FakeGeocoder("Fabric"))
        result = await service.identify(SAMPLE, latitude=51.52, longitude=-0.10)
        assert result.found is False
        assert result.venue == "Fabric"

    @pytest.mark.asyncio
    async def test_geocoder_failure_ignored(self) -> None:
        geocoder = FakeGeocoder(error=ProviderUnavailableError("timeout"))
        service = _service(FakeRecognitionProvider("acrcloud", ACR_MATCH), geocoder=geocoder)

        result = await service.identify(SAMPLE, latitude=51.52, longitude=-0.10)

        assert result.found is True
        assert result.venue is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("lat", "lon"),
        [(None, -0.10), (51.52, None), (math.nan, 1.0), (1.0, math.inf)],
    )
    async def test_incomplete_coordinates_skip_geocoder(
        self, lat: float | None, lon: float | None
    ) -> None:
        geocoder = FakeGeocoder("Fabric")
        service = _service(FakeRecognitionProvider("acrcloud"), geocoder=geocoder)

        result = await service.identify(SAMPLE, latitude=lat, longitude=lon)

        assert result.venue is None
        assert geocoder.calls == []

    @pytest.mark.asyncio
    async def test_blank_venue_falls_back_to_gps(self) -> None:
        geocoder = FakeGeocoder("Fabric")
        service = _service(FakeRecognitionProvider("acrcloud"), geocoder=geocoder)

        result = await service.identify(SAMPLE, 51.52, -0.10, venue_name="   ")

        assert result.venue == "Fabric"
