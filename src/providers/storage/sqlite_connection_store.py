"""SQLite-backed connected-account store at ``data/connections.db``.

One row per ``(user_id, source_id)``; reconnecting replaces the
credentials in place and keeps the original id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.connection_store import IConnectionStore
from src.models.account import ConnectedAccount, ConnectionStatus

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/connections.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS connected_accounts (
    id                     TEXT PRIMARY KEY,
    user_id                TEXT NOT NULL,
    source_id              TEXT NOT NULL,
    status                 TEXT NOT NULL,
    credentials_encrypted  TEXT NOT NULL,
    last_sync_at           TEXT,
    last_error             TEXT,
    created_at             TEXT NOT NULL,
    updated_at             TEXT NOT NULL,
    UNIQUE(user_id, source_id)
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_connected_accounts_user ON connected_accounts(user_id);",
]

_UPSERT_SQL = """\
INSERT INTO connected_accounts (
    id, user_id, source_id, status, credentials_encrypted,
    last_sync_at, last_error, created_at, updated_at
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(user_id, source_id)
DO UPDATE SET status                = excluded.status,
              credentials_encrypted = excluded.credentials_encrypted,
              last_sync_at          = excluded.last_sync_at,
              last_error            = excluded.last_error,
              updated_at            = excluded.updated_at;
"""

_SELECT_SQL = """\
SELECT id, user_id, source_id, status, credentials_encrypted,
       last_sync_at, last_error, created_at, updated_at
FROM connected_accounts
"""


def _utcnow_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="microseconds")  # noqa: UP017


def _to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)  # noqa: UP017
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")  # noqa: UP017


def _row_to_account(row: dict[str, Any]) -> ConnectedAccount:
    return ConnectedAccount(
        id=row["id"],
        user_id=row["user_id"],
        source_id=row["source_id"],
        status=ConnectionStatus(row["status"]),
        credentials_encrypted=row["credentials_encrypted"],
        last_sync_at=datetime.fromisoformat(row["last_sync_at"]) if row["last_sync_at"] else None,
        last_error=row["last_error"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteConnectionStore(IConnectionStore):
    """SQLite persistence for connected accounts."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the connected_accounts table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("connection_store_initialized", path=str(self._db_path))

    async def upsert(self, account: ConnectedAccount) -> ConnectedAccount:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            await db.execute(
                _UPSERT_SQL,
                (
                    account.id,
                    account.user_id,
                    account.source_id,
                    account.status.value,
                    account.credentials_encrypted,
                    _to_iso(account.last_sync_at),
                    account.last_error,
                    _to_iso(account.created_at),
                    _to_iso(account.updated_at),
                ),
            )
            await db.commit()
            cursor = await db.execute(
                _SELECT_SQL + "WHERE user_id = ? AND source_id = ?",
                (account.user_id, account.source_id),
            )
            row = await cursor.fetchone()

        logger.info(
            "connection_upserted",
            user_id=account.user_id,
            source_id=account.source_id,
            status=account.status.value,
        )
        return _row_to_account(dict(row))

    async def get(self, user_id: str, source_id: str) -> ConnectedAccount | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                _SELECT_SQL + "WHERE user_id = ? AND source_id = ?",
                (user_id, source_id),
            )
            row = await cursor.fetchone()
        return _row_to_account(dict(row)) if row else None

    async def list_for_user(self, user_id: str) -> list[ConnectedAccount]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                _SELECT_SQL + "WHERE user_id = ? ORDER BY created_at ASC",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_account(dict(r)) for r in rows]

    async def delete(self, user_id: str, source_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "DELETE FROM connected_accounts WHERE user_id = ? AND source_id = ?",
                (user_id, source_id),
            )
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("connection_deleted", user_id=user_id, source_id=source_id)
        return deleted

    async def update_status(
        self,
        user_id: str,
        source_id: str,
        status: ConnectionStatus,
        last_error: str | None = None,
    ) -> bool:
        now = _utcnow_iso()
        async with aiosqlite.connect(str(self._db_path)) as db:
            if status is ConnectionStatus.CONNECTED:
                cursor = await db.execute(
                    "UPDATE connected_accounts "
                    "SET status = ?, last_error = ?, last_sync_at = ?, updated_at = ? "
                    "WHERE user_id = ? AND source_id = ?",
                    (status.value, last_error, now, now, user_id, source_id),
                )
            else:
                cursor = await db.execute(
                    "UPDATE connected_accounts "
                    "SET status = ?, last_error = ?, updated_at = ? "
                    "WHERE user_id = ? AND source_id = ?",
                    (status.value, last_error, now, user_id, source_id),
                )
            await db.commit()
            updated = cursor.rowcount > 0
        return updated
