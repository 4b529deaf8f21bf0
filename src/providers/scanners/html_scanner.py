"""Live HTML listing scanner shared by the store scrapers.

Subclasses declare the genre table, the listing URL and the CSS selectors;
this class walks the requested genres, fetches each listing page with the
shared ``httpx.AsyncClient`` and parses rows with BeautifulSoup.
"""

from __future__ import annotations

import re
from abc import abstractmethod
from typing import Any

import httpx
from bs4 import BeautifulSoup, Tag

from src.models.track import FilterOptions, Track
from src.providers.scanners.base import BaseScanner, dedupe_by_artist_title
from src.utils.errors import ScanError

_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
_DEFAULT_GENRES = ("Tech House",)
_DIGITS_RE = re.compile(r"\d+")


def _text(row: Tag, selector: str) -> str:
    node = row.select_one(selector)
    return node.get_text(strip=True) if node else ""


def _parse_bpm(raw: str) -> int:
    match = _DIGITS_RE.search(raw)
    return int(match.group()) if match else 0


class HtmlListingScanner(BaseScanner):
    """Scrape a store's per-genre "latest releases" pages.

    Class attributes
    ----------------
    ROW_SELECTOR, ARTIST_SELECTOR, TITLE_SELECTOR, LABEL_SELECTOR, BPM_SELECTOR:
        CSS selectors for one listing row and its fields.
    """

    SOURCE_ID: str = ""
    DISPLAY_NAME: str = ""
    GENRES: dict[str, Any] = {}
    ROW_SELECTOR = ""
    ARTIST_SELECTOR = ""
    TITLE_SELECTOR = ""
    LABEL_SELECTOR = ""
    BPM_SELECTOR = ""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        credentials: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(self.SOURCE_ID)
        self._http = http_client
        self._credentials = credentials or {}

    async def _collect(self, options: FilterOptions | None) -> list[Track]:
        genres = (options.genres if options and options.genres else None) or list(_DEFAULT_GENRES)

        tracks: list[Track] = []
        for genre in genres:
            genre_ref = self.GENRES.get(genre)
            if genre_ref is None:
                continue
            tracks.extend(await self._scan_genre(genre, genre_ref))

        return dedupe_by_artist_title(self.filter_tracks(tracks, options))

    async def _scan_genre(self, genre: str, genre_ref: Any) -> list[Track]:
        url = self._listing_url(genre, genre_ref)
        response = await self._http.get(url, headers=self._headers(), follow_redirects=True)
        if not response.is_success:
            raise ScanError(
                message=f"{self.DISPLAY_NAME} returned {response.status_code}",
                provider_name=self.SOURCE_ID,
            )
        return self._parse_listing(response.text, genre)

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": _USER_AGENT,
            "Accept": "text/html,application/xhtml+xml",
        }

    def _parse_listing(self, html: str, genre: str) -> list[Track]:
        soup = BeautifulSoup(html, "html.parser")
        tracks: list[Track] = []
        for row in soup.select(self.ROW_SELECTOR):
            artist = _text(row, self.ARTIST_SELECTOR)
            title = _text(row, self.TITLE_SELECTOR)
            if not artist or not title:
                continue
            external_id = self._external_id(row)
            tracks.append(
                Track(
                    source=self.SOURCE_ID,
                    artist=artist,
                    title=title,
                    label=_text(row, self.LABEL_SELECTOR) or "Unknown",
                    genre=genre,
                    bpm=_parse_bpm(_text(row, self.BPM_SELECTOR)),
                    external_id=external_id,
                    store_url=self._store_url(external_id) if external_id else "",
                )
            )
        return tracks

    @abstractmethod
    def _listing_url(self, genre: str, genre_ref: Any) -> str:
        """URL of the newest-first listing page for one genre."""

    @abstractmethod
    def _external_id(self, row: Tag) -> str:
        """Store-specific track id for a parsed row, ``""`` if absent."""

    @abstractmethod
    def _store_url(self, external_id: str) -> str:
        """Purchase page URL for *external_id*."""
