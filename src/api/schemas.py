"""Pydantic request/response schemas for the Traxscout API.

Request schemas end with "Request", response schemas end with "Response".
Domain models (``ScoredTrack``, ``IdentifyResult``) are returned as-is
where they already are the public shape.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.track import ScoredTrack, SourceScanStatus, UserPreferences


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class SourceResponse(BaseModel):
    """One registry source as shown to a client.  No secrets, no endpoints."""

    id: str
    name: str
    description: str
    status: str
    auth_type: str
    requires_connection: bool
    promo_pool: bool
    connect_instructions: str


class SourcesResponse(BaseModel):
    tier: str
    sources: list[SourceResponse]


class TrackFilters(BaseModel):
    """Listing filters.  ``days`` is the release-age window."""

    genres: list[str] | None = None
    bpm_min: int | None = Field(default=None, ge=0)
    bpm_max: int | None = Field(default=None, ge=0)
    labels: list[str] | None = None
    days: int = Field(default=7, ge=0)


class TrackFeedRequest(BaseModel):
    """Build one user's daily feed.

    ``source_ids`` are the sources the caller knows the user has connected;
    when ``user_id`` is given the stored connections are added.  Traxscout
    Picks are always included.
    """

    tier: str = "basic"
    user_id: str | None = None
    source_ids: list[str] = Field(default_factory=list)
    filters: TrackFilters = Field(default_factory=TrackFilters)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    limit: int = Field(default=20, ge=1, le=100)


class AvailableSource(BaseModel):
    id: str
    name: str
    auth_type: str
    connected: bool


class TrackFeedResponse(BaseModel):
    tracks: list[ScoredTrack]
    sources: list[SourceScanStatus]
    available_sources: list[AvailableSource]
    connected_sources: list[str]
    tier: str
    daily_limit: int
    scanned_at: datetime
