"""Scanner for sources whose listings are ingested ahead of time.

Promo pools (Inflyte, Trackstack, Promo Box, Label Worx) and the
Traxscout editorial picks are written to the track store by a separate
ingestion job.  This scanner reads the newest rows back and normalizes
them like a live listing.
"""

from __future__ import annotations

from src.interfaces.track_store import ITrackStore
from src.models.track import FilterOptions, Track
from src.providers.scanners.base import BaseScanner, normalize_genre

STORED_TRACK_LIMIT = 50


class StoredTrackScanner(BaseScanner):
    """Read one source's ingested tracks from an :class:`ITrackStore`.

    Parameters
    ----------
    source_id:
        Registry id stamped on returned tracks.
    track_store:
        Where ingested rows live.
    stored_sources:
        Store-side source ids to read.  Defaults to ``[source_id]``; the
        editorial picks also read the legacy ``"promo"`` rows.
    default_label:
        Label used when a row has none.
    """

    def __init__(
        self,
        source_id: str,
        track_store: ITrackStore,
        stored_sources: list[str] | None = None,
        default_label: str = "Unknown",
        limit: int = STORED_TRACK_LIMIT,
    ) -> None:
        super().__init__(source_id)
        self._store = track_store
        self._stored_sources = stored_sources or [source_id]
        self._default_label = default_label
        self._limit = limit

    async def _collect(self, options: FilterOptions | None) -> list[Track]:
        rows = await self._store.fetch_recent(self._stored_sources, limit=self._limit)
        tracks = [
            row.model_copy(
                update={
                    "source": self.source_id,
                    "label": row.label or self._default_label,
                    "genre": normalize_genre(row.genre),
                }
            )
            for row in rows
        ]
        return self.filter_tracks(tracks, options)
