"""FastAPI routes for Traxscout.

Service dependencies are resolved from ``app.state`` (populated by
``_build_all`` in ``main.py``) through ``Depends`` using the ``Annotated``
pattern.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint             Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/health       GET     Health check + provider status
# /api/v1/sources      GET     Registry sources available to a tier
# /api/v1/tracks       POST    Scan connected sources, score, rank (rate limited)
# /api/v1/identify     POST    Identify a track from an audio sample (rate limited)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from src.api.schemas import (
    AvailableSource,
    HealthResponse,
    SourceResponse,
    SourcesResponse,
    TrackFeedRequest,
    TrackFeedResponse,
)
from src.config.sources import get_sources_for_tier
from src.models.identification import IdentifyResult
from src.models.track import FilterOptions
from src.services.connection_service import ConnectionService
from src.services.identification_service import AudioIdentificationService
from src.services.scanner_service import ScannerService
from src.services.scoring import DAILY_TRACK_LIMIT, TrackScorer
from src.utils.errors import InvalidAudioError, RateLimitError
from src.utils.logging import get_logger
from src.utils.rate_limiter import FixedWindowRateLimiter, RateLimitRule

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_scanner_service(request: Request) -> ScannerService:
    return request.app.state.scanner_service


def _get_scorer(request: Request) -> TrackScorer:
    return request.app.state.scorer


def _get_identification_service(request: Request) -> AudioIdentificationService:
    return request.app.state.identification_service


def _get_connection_service(request: Request) -> ConnectionService | None:
    return getattr(request.app.state, "connection_service", None)


def _get_feed_config(request: Request) -> dict[str, Any]:
    return getattr(request.app.state, "feed_config", {})


ScannerDep = Annotated[ScannerService, Depends(_get_scanner_service)]
ScorerDep = Annotated[TrackScorer, Depends(_get_scorer)]
IdentifyDep = Annotated[AudioIdentificationService, Depends(_get_identification_service)]
ConnectionsDep = Annotated[ConnectionService | None, Depends(_get_connection_service)]
FeedConfigDep = Annotated[dict[str, Any], Depends(_get_feed_config)]


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limited(rule_name: str) -> Callable[[Request], Awaitable[None]]:
    """Dependency that counts the request against ``rate_limits[rule_name]``.

    Keys are ``"{rule_name}:{client ip}"``.  A denial raises
    :class:`RateLimitError`, which the error middleware turns into a 429.
    """

    async def _enforce(request: Request) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
        rule: RateLimitRule = request.app.state.rate_limit_rules[rule_name]
        decision = limiter.hit(f"{rule_name}:{_client_ip(request)}", rule)
        if not decision.success:
            raise RateLimitError(
                message="Too many requests. Try again later.",
                retry_after_ms=decision.reset_in,
            )

    return _enforce


def _parse_coordinate(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    return HealthResponse(status="healthy", version=_VERSION, providers=providers)


@router.get(
    "/sources",
    response_model=SourcesResponse,
    summary="Sources available to a subscription tier",
)
async def list_sources(tier: Annotated[str, Query()] = "basic") -> SourcesResponse:
    sources = [
        SourceResponse(
            id=s.id,
            name=s.name,
            description=s.description,
            status=s.status.value,
            auth_type=s.auth_type.value,
            requires_connection=s.requires_connection,
            promo_pool=s.features.promo_pool,
            connect_instructions=s.connect_instructions,
        )
        for s in get_sources_for_tier(tier)
    ]
    return SourcesResponse(tier=tier, sources=sources)


@router.post(
    "/tracks",
    response_model=TrackFeedResponse,
    summary="Build the daily ranked track feed",
    dependencies=[Depends(rate_limited("tracks"))],
)
async def track_feed(
    body: TrackFeedRequest,
    scanner: ScannerDep,
    scorer: ScorerDep,
    connections: ConnectionsDep,
    feed_config: FeedConfigDep,
) -> TrackFeedResponse:
    """Scan the user's connected sources plus Traxscout Picks, then rank."""
    connected = list(dict.fromkeys(body.source_ids))
    if body.user_id and connections is not None:
        for source_id in await connections.connected_source_ids(body.user_id):
            if source_id not in connected:
                connected.append(source_id)
    for source_id in feed_config.get("always_on_sources", ["trackscout"]):
        if source_id not in connected:
            connected.append(source_id)

    options = FilterOptions(
        genres=body.filters.genres or None,
        bpm_min=body.filters.bpm_min,
        bpm_max=body.filters.bpm_max,
        labels=body.filters.labels or None,
        release_days_ago=body.filters.days,
    )
    result = await scanner.scan_all(body.tier, options, connected, user_id=body.user_id)
    ranked = scorer.rank_tracks(result.combined, body.preferences, limit=body.limit)

    available = [
        AvailableSource(
            id=s.id,
            name=s.name,
            auth_type=s.auth_type.value,
            connected=s.id in connected or not s.requires_connection,
        )
        for s in get_sources_for_tier(body.tier)
    ]

    _logger.info(
        "track_feed_built",
        tier=body.tier,
        sources=len(result.sources),
        candidates=len(result.combined),
        returned=len(ranked),
    )
    return TrackFeedResponse(
        tracks=ranked,
        sources=result.sources,
        available_sources=available,
        connected_sources=connected,
        tier=body.tier,
        daily_limit=feed_config.get("daily_track_limit", DAILY_TRACK_LIMIT),
        scanned_at=datetime.now(tz=timezone.utc),  # noqa: UP017
    )


@router.post(
    "/identify",
    response_model=IdentifyResult,
    response_model_exclude_none=True,
    summary="Identify a track from a microphone sample",
    dependencies=[Depends(rate_limited("identify"))],
)
async def identify_track(
    service: IdentifyDep,
    audio: Annotated[UploadFile | None, File()] = None,
    latitude: Annotated[str | None, Form()] = None,
    longitude: Annotated[str | None, Form()] = None,
    venue: Annotated[str | None, Form()] = None,
) -> IdentifyResult:
    """Identify the uploaded sample.  GPS is reduced to a venue name and dropped."""
    if audio is None:
        raise InvalidAudioError(message="No audio file provided")

    data = await audio.read()
    return await service.identify(
        data,
        latitude=_parse_coordinate(latitude),
        longitude=_parse_coordinate(longitude),
        venue_name=venue,
    )
