"""Track, scan and ranking models.

A :class:`Track` is one release/song record normalized from one source.
Scanners build them, the scanner service merges them, and the scorer
wraps them in :class:`ScoredTrack`.  All models are frozen; absent
descriptive fields use ``""`` / ``0`` sentinels instead of ``None`` so the
duplicate-richness comparison never has to special-case missing values.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes (e.g. a bare ``"2025-06-15"`` release date) are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)  # noqa: UP017
    return value


def _new_id() -> str:
    return str(uuid.uuid4())


class Track(BaseModel):
    """A single release normalized from one source.

    Identity is ``(source, external_id)``.  ``bpm`` is ``0`` when the source
    does not publish tempo; ``key`` and the URL fields are ``""`` when absent.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    source: str
    artist: str
    title: str
    label: str = ""
    genre: str = ""
    bpm: int = Field(default=0, ge=0)
    key: str = ""                          # Musical key, e.g. "8A" or "F min"
    release_date: datetime = Field(default_factory=_utcnow)
    external_id: str = ""
    store_url: str = ""                    # Purchase page (we never host files)
    preview_url: str = ""                  # Store's embed player
    artwork_url: str = ""                  # CDN link
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("release_date", "created_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def match_key(self) -> str:
        """Cross-source duplicate key: lowercase, trimmed ``artist-title``."""
        return f"{self.artist}-{self.title}".lower().strip()

    @property
    def richness(self) -> int:
        """Count of enrichment fields present (BPM, key, store link), 0-3."""
        return int(self.bpm > 0) + int(bool(self.key)) + int(bool(self.store_url))


class ScoredTrack(Track):
    """A :class:`Track` with a relevance score and human-readable reasons.

    ``reason`` is always ``reasons[0]``.
    """

    score: int = Field(ge=0, le=100)
    reason: str
    reasons: list[str] = Field(default_factory=list)


class ScanResult(BaseModel):
    """Outcome of one scanner invocation.  ``error`` is advisory."""

    model_config = ConfigDict(frozen=True)

    source: str
    tracks: list[Track] = Field(default_factory=list)
    scanned_at: datetime = Field(default_factory=_utcnow)
    error: str | None = None

    @field_validator("scanned_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def ok(self) -> bool:
        return self.error is None


class FilterOptions(BaseModel):
    """Listing filters applied by every scanner before it returns."""

    model_config = ConfigDict(frozen=True)

    genres: list[str] | None = None
    bpm_min: int | None = None
    bpm_max: int | None = None
    labels: list[str] | None = None
    release_days_ago: int | None = None


class UserPreferences(BaseModel):
    """Taste profile used by the scorer.

    BPM defaults match the feed endpoint's defaults for users who never set
    a range.
    """

    model_config = ConfigDict(frozen=True)

    genres: list[str] = Field(default_factory=list)
    bpm_min: int = 100
    bpm_max: int = 140
    labels: list[str] = Field(default_factory=list)
    saved_artists: list[str] = Field(default_factory=list)


class SourceScanStatus(BaseModel):
    """Per-source line of the scan status summary."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: str                     # "ok" | "error"
    track_count: int = 0


class ScanAllResult(BaseModel):
    """Aggregate result of a multi-source scan."""

    model_config = ConfigDict(frozen=True)

    results: dict[str, ScanResult] = Field(default_factory=dict)
    combined: list[Track] = Field(default_factory=list)
    sources: list[SourceScanStatus] = Field(default_factory=list)
