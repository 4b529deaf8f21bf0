"""SQLite storage providers for ingested tracks and connected accounts."""

from src.providers.storage.sqlite_connection_store import SQLiteConnectionStore
from src.providers.storage.sqlite_track_store import TRACK_METADATA_TTL, SQLiteTrackStore

__all__ = ["SQLiteConnectionStore", "SQLiteTrackStore", "TRACK_METADATA_TTL"]
