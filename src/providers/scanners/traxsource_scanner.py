"""Traxsource scanner -- newest tracks per genre from traxsource.com."""

from __future__ import annotations

from typing import Any

from bs4 import Tag

from src.providers.scanners.html_scanner import HtmlListingScanner

_TRAXSOURCE_BASE = "https://www.traxsource.com"

_GENRE_SLUGS: dict[str, str] = {
    "Tech House": "tech-house",
    "Deep House": "deep-house",
    "Afro House": "afro-house",
    "Minimal / Deep Tech": "minimal-deep-tech",
    "House": "house",
}


class TraxsourceScanner(HtmlListingScanner):
    SOURCE_ID = "traxsource"
    DISPLAY_NAME = "Traxsource"
    GENRES = _GENRE_SLUGS
    ROW_SELECTOR = ".trk-row, .track-item, [data-track-id]"
    ARTIST_SELECTOR = ".artists, .artist a"
    TITLE_SELECTOR = ".title, .track-title a"
    LABEL_SELECTOR = ".label, .label-name a"
    BPM_SELECTOR = ".bpm, .track-bpm"

    def _listing_url(self, genre: str, genre_ref: Any) -> str:
        return f"{_TRAXSOURCE_BASE}/genre/{genre_ref}/all?cn=tracks&ob=releaseDate&so=desc"

    def _external_id(self, row: Tag) -> str:
        return str(row.get("data-track-id") or "")

    def _store_url(self, external_id: str) -> str:
        return f"{_TRAXSOURCE_BASE}/track/{external_id}"
