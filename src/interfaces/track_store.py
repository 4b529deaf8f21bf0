"""Abstract base class for the ingested-track store.

Promo pools and editorial picks are not scraped live; an ingestion job
writes their listings into a store and the stored-track scanners read them
back.  The store only needs three operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.models.track import Track


class ITrackStore(ABC):
    """Contract for persisted track metadata."""

    @abstractmethod
    async def fetch_recent(self, source_ids: list[str], limit: int = 50) -> list[Track]:
        """Return up to *limit* tracks from any of *source_ids*, newest first.

        Parameters
        ----------
        source_ids:
            Source ids to read.  Tracks keep the source id they were
            stored under.
        limit:
            Maximum number of rows returned.
        """

    @abstractmethod
    async def save_tracks(self, tracks: list[Track]) -> int:
        """Insert or update *tracks* keyed by ``(source, external_id)``.

        Returns the number of rows written.
        """

    @abstractmethod
    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete tracks created before *cutoff*; return the number removed."""
