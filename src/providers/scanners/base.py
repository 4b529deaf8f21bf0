"""Shared scanner behaviour: genre normalization, filtering, error capture.

Every concrete scanner implements :meth:`BaseScanner._collect`; the public
:meth:`BaseScanner.scan` wraps it so that no exception ever leaves a
scanner.  A failing source yields ``ScanResult(tracks=[], error=...)``.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from datetime import datetime, timedelta, timezone

import structlog

from src.interfaces.scanner import IScanner
from src.models.track import FilterOptions, ScanResult, Track
from src.utils.errors import TraxscoutError
from src.utils.logging import get_logger

# Lookup keys are lowercase with whitespace runs collapsed to "-".
_GENRE_SYNONYMS: dict[str, str] = {
    "tech-house": "Tech House",
    "techhouse": "Tech House",
    "deep-house": "Deep House",
    "deephouse": "Deep House",
    "afro-house": "Afro House",
    "afrohouse": "Afro House",
    "minimal-deep-tech": "Minimal / Deep Tech",
}

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_genre(genre: str) -> str:
    """Map known genre spellings to their canonical name.

    Unknown genres are returned unchanged.

    >>> normalize_genre("tech house")
    'Tech House'
    >>> normalize_genre("Breaks")
    'Breaks'
    """
    lookup = _WHITESPACE_RE.sub("-", genre.lower())
    return _GENRE_SYNONYMS.get(lookup, genre)


def track_matches(track: Track, options: FilterOptions, now: datetime) -> bool:
    """Return ``True`` when *track* passes every filter set in *options*."""
    if options.genres:
        genre = normalize_genre(track.genre).lower()
        if not any(wanted.lower() in genre for wanted in options.genres):
            return False

    # Tracks without a published tempo are never excluded by BPM.
    if track.bpm > 0:
        if options.bpm_min is not None and track.bpm < options.bpm_min:
            return False
        if options.bpm_max is not None and track.bpm > options.bpm_max:
            return False

    if options.labels:
        label = track.label.lower()
        if not any(wanted.lower() in label for wanted in options.labels):
            return False

    if options.release_days_ago:
        cutoff = now - timedelta(days=options.release_days_ago)
        if track.release_date < cutoff:
            return False

    return True


def dedupe_by_artist_title(tracks: list[Track]) -> list[Track]:
    """Drop repeated artist/title pairs within one listing, first wins."""
    seen: set[str] = set()
    unique: list[Track] = []
    for track in tracks:
        if track.match_key in seen:
            continue
        seen.add(track.match_key)
        unique.append(track)
    return unique


class BaseScanner(IScanner):
    """Template for scanners.

    Parameters
    ----------
    source_id:
        Registry id stamped on every :class:`ScanResult`.
    """

    def __init__(self, source_id: str) -> None:
        self._source_id = source_id
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def source_id(self) -> str:
        return self._source_id

    async def scan(self, options: FilterOptions | None = None) -> ScanResult:
        try:
            tracks = await self._collect(options)
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                "scan_source_failed",
                source=self._source_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            message = exc.message if isinstance(exc, TraxscoutError) else str(exc)
            return ScanResult(source=self._source_id, error=message or type(exc).__name__)

        self._logger.debug("scan_source_complete", source=self._source_id, tracks=len(tracks))
        return ScanResult(source=self._source_id, tracks=tracks)

    @abstractmethod
    async def _collect(self, options: FilterOptions | None) -> list[Track]:
        """Fetch the listing and return filtered tracks.  May raise."""

    @staticmethod
    def normalize_genre(genre: str) -> str:
        return normalize_genre(genre)

    @staticmethod
    def filter_tracks(
        tracks: list[Track],
        options: FilterOptions | None,
        now: datetime | None = None,
    ) -> list[Track]:
        """Apply *options* to *tracks*, preserving order."""
        if options is None:
            return list(tracks)
        current = now or datetime.now(tz=timezone.utc)  # noqa: UP017
        return [t for t in tracks if track_matches(t, options, current)]
