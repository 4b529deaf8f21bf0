"""Source scanners and the adapter map keyed by registry source id.

    beatport     -> BeatportScanner      (live HTML, optional OAuth token)
    traxsource   -> TraxsourceScanner    (live HTML)
    inflyte      -> StoredTrackScanner   (ingested promo inbox)
    trackstack   -> StoredTrackScanner   (ingested Flow Inbox, label "Independent")
    promo-box    -> StoredTrackScanner
    label-worx   -> StoredTrackScanner
    trackscout   -> StoredTrackScanner   (editorial picks + legacy "promo" rows)

Registry sources without an entry here (bandcamp, soundcloud) are skipped
by the scanner service until an adapter exists.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from src.interfaces.scanner import IScanner
from src.interfaces.track_store import ITrackStore
from src.providers.scanners.base import BaseScanner, normalize_genre
from src.providers.scanners.beatport_scanner import BeatportScanner
from src.providers.scanners.stored_track_scanner import STORED_TRACK_LIMIT, StoredTrackScanner
from src.providers.scanners.traxsource_scanner import TraxsourceScanner

ScannerFactory = Callable[[dict[str, Any] | None], IScanner]


def build_scanner_factories(
    http_client: httpx.AsyncClient,
    track_store: ITrackStore,
    stored_track_limit: int = STORED_TRACK_LIMIT,
) -> dict[str, ScannerFactory]:
    """Return ``source_id -> factory(credentials)`` for every implemented source.

    Factories are called once per scan with the user's decrypted
    credentials (or ``None``), so scanners hold no state between scans.
    """

    def stored(source_id: str, **kwargs: Any) -> ScannerFactory:
        return lambda _credentials: StoredTrackScanner(
            source_id, track_store, limit=stored_track_limit, **kwargs
        )

    return {
        "beatport": lambda credentials: BeatportScanner(http_client, credentials),
        "traxsource": lambda credentials: TraxsourceScanner(http_client, credentials),
        "inflyte": stored("inflyte"),
        "trackstack": stored("trackstack", default_label="Independent"),
        "promo-box": stored("promo-box"),
        "label-worx": stored("label-worx"),
        "trackscout": stored("trackscout", stored_sources=["trackscout", "promo"]),
    }


__all__ = [
    "BaseScanner",
    "BeatportScanner",
    "ScannerFactory",
    "StoredTrackScanner",
    "TraxsourceScanner",
    "build_scanner_factories",
    "normalize_genre",
]
