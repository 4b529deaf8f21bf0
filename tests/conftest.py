"""Shared pytest fixtures for the Traxscout test suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from src.config.settings import Settings
from src.interfaces.geocoding_provider import IGeocodingProvider
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.interfaces.scanner import IScanner
from src.interfaces.track_store import ITrackStore
from src.models.identification import IdentifyResult
from src.models.track import FilterOptions, ScanResult, Track, UserPreferences

# Fixed "now" used by every clock-dependent test.
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)  # noqa: UP017

MASTER_KEY = "k" * 16 + "traxscout-test-key"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeScanner(IScanner):
    """Scanner returning canned tracks, or raising, after an optional delay."""

    def __init__(
        self,
        source_id: str,
        tracks: list[Track] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self._source_id = source_id
        self._tracks = tracks or []
        self._error = error
        self._delay = delay
        self.calls: list[FilterOptions | None] = []

    @property
    def source_id(self) -> str:
        return self._source_id

    async def scan(self, options: FilterOptions | None = None) -> ScanResult:
        self.calls.append(options)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return ScanResult(source=self._source_id, tracks=self._tracks)


class FakeRecognitionProvider(IAudioRecognitionProvider):
    def __init__(
        self,
        name: str,
        result: IdentifyResult | None = None,
        error: Exception | None = None,
        available: bool = True,
    ) -> None:
        self._name = name
        self._result = result or IdentifyResult(found=False)
        self._error = error
        self._available = available
        self.calls = 0

    async def recognize(self, audio: bytes) -> IdentifyResult:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._result

    def get_provider_name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available


class FakeGeocoder(IGeocodingProvider):
    def __init__(self, venue: str | None = None, error: Exception | None = None) -> None:
        self._venue = venue
        self._error = error
        self.calls: list[tuple[float, float]] = []

    async def reverse(self, latitude: float, longitude: float) -> str | None:
        self.calls.append((latitude, longitude))
        if self._error is not None:
            raise self._error
        return self._venue

    def get_provider_name(self) -> str:
        return "fake-geocoder"


class InMemoryTrackStore(ITrackStore):
    """List-backed track store keyed by source."""

    def __init__(self, tracks: list[Track] | None = None) -> None:
        self.tracks: list[Track] = list(tracks or [])
        self.fetch_calls: list[tuple[list[str], int]] = []

    async def fetch_recent(self, source_ids: list[str], limit: int = 50) -> list[Track]:
        self.fetch_calls.append((list(source_ids), limit))
        rows = [t for t in self.tracks if t.source in source_ids]
        rows.sort(key=lambda t: t.created_at, reverse=True)
        return rows[:limit]

    async def save_tracks(self, tracks: list[Track]) -> int:
        self.tracks.extend(tracks)
        return len(tracks)

    async def delete_older_than(self, cutoff: datetime) -> int:
        before = len(self.tracks)
        self.tracks = [t for t in self.tracks if t.created_at >= cutoff]
        return before - len(self.tracks)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_track(**overrides: Any) -> Track:
    """Build a track released and seen two weeks before ``NOW``."""
    old = NOW - timedelta(days=14)
    fields: dict[str, Any] = {
        "source": "traxsource",
        "artist": "Test Artist",
        "title": "Test Title",
        "label": "Test Label",
        "genre": "Breaks",
        "bpm": 0,
        "release_date": old,
        "created_at": old,
    }
    fields.update(overrides)
    return Track(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def master_key() -> str:
    return MASTER_KEY


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with every provider configured and databases under tmp_path."""
    return Settings(
        _env_file=None,
        encryption_key=MASTER_KEY,
        acrcloud_access_key="acr-access",
        acrcloud_secret_key="acr-secret",
        acrcloud_host="identify.example.test",
        audd_api_key="audd-token",
        track_store_db_path=str(tmp_path / "tracks.db"),
        connections_db_path=str(tmp_path / "connections.db"),
    )


@pytest.fixture
def house_prefs() -> UserPreferences:
    return UserPreferences(
        genres=["Tech House"],
        bpm_min=120,
        bpm_max=130,
        labels=["Drumcode"],
        saved_artists=["Adam Beyer"],
    )
