"""Abstract base class for connected-account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.account import ConnectedAccount, ConnectionStatus


class IConnectionStore(ABC):
    """Contract for storing one connected account per ``(user_id, source_id)``.

    The store only ever sees encrypted credential blobs.
    """

    @abstractmethod
    async def upsert(self, account: ConnectedAccount) -> ConnectedAccount:
        """Insert *account* or replace the existing row for its user/source.

        Returns the stored row.  On replace the original ``id`` and
        ``created_at`` are kept.
        """

    @abstractmethod
    async def get(self, user_id: str, source_id: str) -> ConnectedAccount | None:
        """Return the row for *user_id* / *source_id*, or ``None``."""

    @abstractmethod
    async def list_for_user(self, user_id: str) -> list[ConnectedAccount]:
        """Return every row for *user_id*, oldest first."""

    @abstractmethod
    async def delete(self, user_id: str, source_id: str) -> bool:
        """Delete the row; ``True`` when something was removed."""

    @abstractmethod
    async def update_status(
        self,
        user_id: str,
        source_id: str,
        status: ConnectionStatus,
        last_error: str | None = None,
    ) -> bool:
        """Set ``status`` / ``last_error`` and bump ``updated_at``.

        ``last_sync_at`` is also bumped when *status* is ``connected``.
        Returns ``True`` when a row was updated.
        """
