"""Connected accounts: per-user credentials for third-party sources.

Every credential payload is sealed by the :class:`CredentialVault` before
it reaches the store, and the store never sees plaintext.  Reads hand back
either decrypted credentials (for scanners only) or secret-free
:class:`ConnectionSummary` views (for everyone else).

Vault work derives a key with 100k PBKDF2 rounds per call, so it runs in a
worker thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.config.sources import get_source_config
from src.interfaces.connection_store import IConnectionStore
from src.models.account import (
    ConnectedAccount,
    ConnectionStatus,
    ConnectionSummary,
    ConnectResult,
)
from src.models.source import AuthType
from src.utils.errors import DecryptionError
from src.utils.logging import get_logger
from src.utils.vault import CredentialVault


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class ConnectionService:
    """Connect, list, read and disconnect user accounts on registry sources."""

    def __init__(
        self,
        store: IConnectionStore,
        vault: CredentialVault,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._vault = vault
        self._clock = clock
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect_with_credentials(
        self,
        user_id: str,
        source_id: str,
        email: str,
        password: str,
    ) -> ConnectResult:
        """Store an email/password login for a ``credentials`` source."""
        error = self._check_auth_type(source_id, AuthType.CREDENTIALS)
        if error:
            return ConnectResult(success=False, error=error)

        payload = {
            "email": email,
            "password": password,
            "connected_at": self._clock().isoformat(),
        }
        return await self._save(user_id, source_id, payload)

    async def connect_with_oauth(
        self,
        user_id: str,
        source_id: str,
        access_token: str,
        refresh_token: str | None = None,
        expires_at: str | None = None,
    ) -> ConnectResult:
        """Store OAuth tokens for an ``oauth`` source."""
        error = self._check_auth_type(source_id, AuthType.OAUTH)
        if error:
            return ConnectResult(success=False, error=error)

        payload = {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "expires_at": expires_at,
            "connected_at": self._clock().isoformat(),
        }
        return await self._save(user_id, source_id, payload)

    async def disconnect(self, user_id: str, source_id: str) -> ConnectResult:
        await self._store.delete(user_id, source_id)
        self._logger.info("source_disconnected", user_id=user_id, source_id=source_id)
        return ConnectResult(success=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_connections(self, user_id: str) -> list[ConnectionSummary]:
        """Return the user's connections without credential blobs."""
        accounts = await self._store.list_for_user(user_id)
        return [
            ConnectionSummary(
                id=a.id,
                source_id=a.source_id,
                status=a.status,
                last_sync_at=a.last_sync_at,
                last_error=a.last_error,
                created_at=a.created_at,
                updated_at=a.updated_at,
            )
            for a in accounts
        ]

    async def connected_source_ids(self, user_id: str) -> list[str]:
        """Ids of sources the user has a ``connected`` account on."""
        accounts = await self._store.list_for_user(user_id)
        return [a.source_id for a in accounts if a.status is ConnectionStatus.CONNECTED]

    async def get_decrypted_credentials(
        self,
        user_id: str,
        source_id: str,
    ) -> dict[str, Any] | None:
        """Decrypt the stored payload for scanner use.

        Returns ``None`` when there is no connection or the blob cannot be
        authenticated; an unusable credential counts as "not connected".
        """
        account = await self._store.get(user_id, source_id)
        if account is None:
            return None

        try:
            plaintext = await asyncio.to_thread(self._vault.decrypt, account.credentials_encrypted)
            credentials = json.loads(plaintext)
        except (DecryptionError, ValueError) as exc:
            self._logger.warning(
                "credential_decrypt_failed",
                user_id=user_id,
                source_id=source_id,
                error_type=type(exc).__name__,
            )
            return None

        return credentials if isinstance(credentials, dict) else None

    async def update_status(
        self,
        user_id: str,
        source_id: str,
        status: ConnectionStatus,
        last_error: str | None = None,
    ) -> bool:
        """Record the outcome of a sync attempt."""
        return await self._store.update_status(user_id, source_id, status, last_error)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _check_auth_type(source_id: str, expected: AuthType) -> str | None:
        config = get_source_config(source_id)
        if config is None:
            return "Unknown source"
        if config.auth_type is not expected:
            if expected is AuthType.OAUTH:
                return "Source does not use OAuth"
            return "Source does not use credential auth"
        return None

    async def _save(
        self,
        user_id: str,
        source_id: str,
        payload: dict[str, Any],
    ) -> ConnectResult:
        blob = await asyncio.to_thread(self._vault.encrypt, json.dumps(payload))
        now = self._clock()
        stored = await self._store.upsert(
            ConnectedAccount(
                id=str(uuid.uuid4()),
                user_id=user_id,
                source_id=source_id,
                status=ConnectionStatus.CONNECTED,
                credentials_encrypted=blob,
                created_at=now,
                updated_at=now,
            )
        )
        self._logger.info("source_connected", user_id=user_id, source_id=source_id)
        return ConnectResult(success=True, connection_id=stored.id)
