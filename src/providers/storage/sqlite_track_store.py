"""SQLite-backed track store.

Holds ingested listings for promo pools and editorial picks at
``data/tracks.db``.  Uses ``aiosqlite`` for async I/O; each call opens its
own connection.  Timestamps are stored as UTC ISO-8601 strings so that
lexical order is chronological order.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.track_store import ITrackStore
from src.models.track import Track

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/tracks.db")

# Track metadata is retained for seven days.
TRACK_METADATA_TTL = timedelta(days=7)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS tracks (
    id            TEXT PRIMARY KEY,
    source        TEXT    NOT NULL,
    artist        TEXT    NOT NULL,
    title         TEXT    NOT NULL,
    label         TEXT    NOT NULL DEFAULT '',
    genre         TEXT    NOT NULL DEFAULT '',
    bpm           INTEGER NOT NULL DEFAULT 0,
    "key"         TEXT    NOT NULL DEFAULT '',
    release_date  TEXT,
    external_id   TEXT    NOT NULL DEFAULT '',
    store_url     TEXT    NOT NULL DEFAULT '',
    preview_url   TEXT    NOT NULL DEFAULT '',
    artwork_url   TEXT    NOT NULL DEFAULT '',
    created_at    TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_tracks_source_external "
    "ON tracks(source, external_id) WHERE external_id != '';",
    "CREATE INDEX IF NOT EXISTS idx_tracks_source_created ON tracks(source, created_at);",
]

_UPSERT_SQL = """\
INSERT INTO tracks (
    id, source, artist, title, label, genre, bpm, "key", release_date,
    external_id, store_url, preview_url, artwork_url, created_at
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(source, external_id) WHERE external_id != ''
DO UPDATE SET artist       = excluded.artist,
              title        = excluded.title,
              label        = excluded.label,
              genre        = excluded.genre,
              bpm          = excluded.bpm,
              "key"        = excluded."key",
              release_date = excluded.release_date,
              store_url    = excluded.store_url,
              preview_url  = excluded.preview_url,
              artwork_url  = excluded.artwork_url;
"""


def _to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)  # noqa: UP017
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")  # noqa: UP017


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)  # noqa: UP017
    return parsed


def _row_to_track(row: dict[str, Any]) -> Track:
    created_at = _from_iso(row["created_at"])
    release_date = _from_iso(row["release_date"]) if row["release_date"] else created_at
    return Track(
        id=row["id"],
        source=row["source"],
        artist=row["artist"],
        title=row["title"],
        label=row["label"] or "",
        genre=row["genre"] or "",
        bpm=row["bpm"] or 0,
        key=row["key"] or "",
        release_date=release_date,
        external_id=row["external_id"] or "",
        store_url=row["store_url"] or "",
        preview_url=row["preview_url"] or "",
        artwork_url=row["artwork_url"] or "",
        created_at=created_at,
    )


class SQLiteTrackStore(ITrackStore):
    """SQLite persistence for ingested track metadata."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the tracks table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("track_store_initialized", path=str(self._db_path))

    async def fetch_recent(self, source_ids: list[str], limit: int = 50) -> list[Track]:
        if not source_ids or limit <= 0:
            return []
        placeholders = ", ".join("?" for _ in source_ids)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM tracks "
                f"WHERE source IN ({placeholders}) "
                "ORDER BY created_at DESC LIMIT ?",
                (*source_ids, limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_track(dict(r)) for r in rows]

    async def save_tracks(self, tracks: list[Track]) -> int:
        if not tracks:
            return 0
        params = [
            (
                t.id,
                t.source,
                t.artist,
                t.title,
                t.label,
                t.genre,
                t.bpm,
                t.key,
                _to_iso(t.release_date),
                t.external_id,
                t.store_url,
                t.preview_url,
                t.artwork_url,
                _to_iso(t.created_at),
            )
            for t in tracks
        ]
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(_UPSERT_SQL, params)
            await db.commit()
        logger.info("tracks_saved", count=len(params))
        return len(params)

    async def delete_older_than(self, cutoff: datetime) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM tracks WHERE created_at < ?",
                (_to_iso(cutoff),),
            )
            await db.commit()
            deleted = cursor.rowcount
        logger.info("tracks_expired", deleted=deleted, cutoff=_to_iso(cutoff))
        return deleted

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Delete tracks older than :data:`TRACK_METADATA_TTL`."""
        current = now or datetime.now(tz=timezone.utc)  # noqa: UP017
        return await self.delete_older_than(current - TRACK_METADATA_TTL)
