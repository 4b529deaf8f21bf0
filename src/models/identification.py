"""Audio identification result models.

Results never carry GPS coordinates: location is reduced to a venue name
before a result is built.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class IdentifyLinks(BaseModel):
    """Streaming / store links for an identified track."""

    model_config = ConfigDict(frozen=True)

    spotify: str | None = None
    youtube: str | None = None
    apple_music: str | None = None
    deezer: str | None = None
    beatport: str | None = None


class IdentifyResult(BaseModel):
    """Outcome of an identification attempt.

    ``found=False`` is a normal outcome, not an error.
    """

    model_config = ConfigDict(frozen=True)

    found: bool
    source: str | None = None            # "acrcloud" | "audd"
    artist: str | None = None
    title: str | None = None
    album: str | None = None
    label: str | None = None
    release_date: str | None = None
    links: IdentifyLinks | None = None
    venue: str | None = None
    identified_at: datetime | None = None
