"""Track scoring and ranking with human-readable reasons.

The feed is a curator, not a search engine: every track gets an additive
relevance score from fixed weights, the best ``DAILY_TRACK_LIMIT`` are
kept, and each carries the reasons it earned so the UI can say *why* it
was picked.

Rules are evaluated in a fixed order because that order is the order of
``reasons``, and ``reason`` is always ``reasons[0]``:

    genre match           +30  "Matches your genres"
    BPM in range          +20  "Matched your BPM range"   (only when bpm > 0)
    label match           +15  "From {label}"
    saved artist          +25  "Artist you saved before"
    age < 1 / 3 / 7 days  +10 / +7 / +4
    promo-pool source     +5   "From your promo pool"
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from src.config.sources import get_promo_pool_source_ids
from src.models.track import ScoredTrack, Track, UserPreferences
from src.utils.logging import get_logger

DAILY_TRACK_LIMIT = 20

GENRE_POINTS = 30
BPM_POINTS = 20
LABEL_POINTS = 15
SAVED_ARTIST_POINTS = 25
PROMO_POOL_POINTS = 5

# (max age, points, reason); first matching tier wins.
_RECENCY_TIERS: tuple[tuple[timedelta, int, str], ...] = (
    (timedelta(days=1), 10, "Released today"),
    (timedelta(days=3), 7, "New release"),
    (timedelta(days=7), 4, "This week"),
)

_FALLBACK_REASON = "Curated pick"
_MAX_SCORE = 100


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _contains_any(haystack: str, needles: list[str]) -> bool:
    lowered = haystack.lower()
    return any(needle.lower() in lowered for needle in needles)


class TrackScorer:
    """Score and rank tracks against a user's taste profile.

    Parameters
    ----------
    promo_sources:
        Source ids that earn the promo-pool bonus.  Defaults to every
        registry source flagged ``promo_pool``.
    clock:
        Returns the current UTC time; injected by tests.
    """

    def __init__(
        self,
        promo_sources: frozenset[str] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._promo_sources = (
            promo_sources if promo_sources is not None else get_promo_pool_source_ids()
        )
        self._clock = clock
        self._logger = get_logger(__name__)

    def score_track(self, track: Track, prefs: UserPreferences) -> ScoredTrack:
        return self._score(track, prefs, self._clock())

    def rank_tracks(
        self,
        tracks: list[Track],
        prefs: UserPreferences,
        limit: int = DAILY_TRACK_LIMIT,
    ) -> list[ScoredTrack]:
        """Score every track and return the best *limit*.

        Order is score descending, then newest release first, then
        ``(source, external_id)`` so equal scores rank the same way on
        every run.
        """
        now = self._clock()
        scored = [self._score(track, prefs, now) for track in tracks]
        scored.sort(
            key=lambda s: (-s.score, -s.release_date.timestamp(), s.source, s.external_id)
        )
        ranked = scored[: max(0, limit)]
        self._logger.debug("tracks_ranked", candidates=len(tracks), returned=len(ranked))
        return ranked

    def _score(self, track: Track, prefs: UserPreferences, now: datetime) -> ScoredTrack:
        score = 0
        reasons: list[str] = []

        if prefs.genres and _contains_any(track.genre, prefs.genres):
            score += GENRE_POINTS
            reasons.append("Matches your genres")

        if track.bpm > 0 and prefs.bpm_min <= track.bpm <= prefs.bpm_max:
            score += BPM_POINTS
            reasons.append("Matched your BPM range")

        if prefs.labels and _contains_any(track.label, prefs.labels):
            score += LABEL_POINTS
            reasons.append(f"From {track.label}")

        if prefs.saved_artists and _contains_any(track.artist, prefs.saved_artists):
            score += SAVED_ARTIST_POINTS
            reasons.append("Artist you saved before")

        age = now - max(track.release_date, track.created_at)
        for max_age, points, reason in _RECENCY_TIERS:
            if age < max_age:
                score += points
                reasons.append(reason)
                break

        if track.source in self._promo_sources:
            score += PROMO_POOL_POINTS
            if not any("promo" in r.lower() for r in reasons):
                reasons.append("From your promo pool")

        if not reasons:
            reasons.append(_FALLBACK_REASON)

        return ScoredTrack(
            **track.model_dump(exclude={"score", "reason", "reasons"}),
            score=min(_MAX_SCORE, max(0, score)),
            reason=reasons[0],
            reasons=reasons,
        )
