"""Unit tests for ConnectionService over a real SQLite store and vault."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import pytest_asyncio

from src.models.account import ConnectionStatus, ConnectionSummary
from src.providers.storage.sqlite_connection_store import SQLiteConnectionStore
from src.services.connection_service import ConnectionService
from src.utils.vault import CredentialVault
from tests.conftest import MASTER_KEY, NOW


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteConnectionStore:
    store = SQLiteConnectionStore(db_path=tmp_path / "connections.db")
    await store.initialize()
    return store


@pytest.fixture
def service(store: SQLiteConnectionStore) -> ConnectionService:
    return ConnectionService(store=store, vault=CredentialVault(MASTER_KEY), clock=lambda: NOW)


class TestConnect:
    @pytest.mark.asyncio
    async def test_credentials_are_encrypted_at_rest(
        self, service: ConnectionService, store: SQLiteConnectionStore
    ) -> None:
        result = await service.connect_with_credentials(
            "user-1", "traxsource", "dj@example.com", "hunter2"
        )

        assert result.success
        assert result.connection_id

        account = await store.get("user-1", "traxsource")
        assert account is not None
        assert account.status is ConnectionStatus.CONNECTED
        assert "hunter2" not in account.credentials_encrypted
        assert "dj@example.com" not in account.credentials_encrypted

        payload = json.loads(CredentialVault(MASTER_KEY).decrypt(account.credentials_encrypted))
        assert payload == {
            "email": "dj@example.com",
            "password": "hunter2",
            "connected_at": NOW.isoformat(),
        }

    @pytest.mark.asyncio
    async def test_oauth_tokens(self, service: ConnectionService) -> None:
        result = await service.connect_with_oauth(
            "user-1", "beatport", "access-1", refresh_token="refresh-1", expires_at="2025-07-01T00:00:00Z"
        )
        credentials = await service.get_decrypted_credentials("user-1", "beatport")

        assert result.success
        assert credentials is not None
        assert credentials["access_token"] == "access-1"
        assert credentials["refresh_token"] == "refresh-1"
        assert credentials["expires_at"] == "2025-07-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_reconnect_keeps_connection_id(self, service: ConnectionService) -> None:
        first = await service.connect_with_credentials("user-1", "inflyte", "a@b.c", "one")
        second = await service.connect_with_credentials("user-1", "inflyte", "a@b.c", "two")

        credentials = await service.get_decrypted_credentials("user-1", "inflyte")

        assert first.connection_id == second.connection_id
        assert credentials is not None
        assert credentials["password"] == "two"

    @pytest.mark.parametrize(
        ("source_id", "error"),
        [
            ("napster", "Unknown source"),
            ("beatport", "Source does not use credential auth"),
            ("trackscout", "Source does not use credential auth"),
        ],
    )
    @pytest.mark.asyncio
    async def test_credential_auth_type_checked(
        self, service: ConnectionService, source_id: str, error: str
    ) -> None:
        result = await service.connect_with_credentials("user-1", source_id, "a@b.c", "pw")
        assert not result.success
        assert result.error == error

    @pytest.mark.asyncio
    async def test_oauth_auth_type_checked(self, service: ConnectionService) -> None:
        result = await service.connect_with_oauth("user-1", "traxsource", "token")
        assert result.error == "Source does not use OAuth"


class TestReads:
    @pytest.mark.asyncio
    async def test_list_connections_hides_credentials(self, service: ConnectionService) -> None:
        await service.connect_with_credentials("user-1", "traxsource", "a@b.c", "pw")
        await service.connect_with_oauth("user-1", "soundcloud", "token")

        summaries = await service.list_connections("user-1")

        assert {s.source_id for s in summaries} == {"traxsource", "soundcloud"}
        assert all(isinstance(s, ConnectionSummary) for s in summaries)
        assert all("credentials_encrypted" not in s.model_dump() for s in summaries)

    @pytest.mark.asyncio
    async def test_connected_source_ids_only_connected(self, service: ConnectionService) -> None:
        await service.connect_with_credentials("user-1", "traxsource", "a@b.c", "pw")
        await service.connect_with_credentials("user-1", "inflyte", "a@b.c", "pw")
        await service.update_status("user-1", "inflyte", ConnectionStatus.EXPIRED, "session ended")

        assert await service.connected_source_ids("user-1") == ["traxsource"]
        assert await service.connected_source_ids("user-2") == []

    @pytest.mark.asyncio
    async def test_missing_connection(self, service: ConnectionService) -> None:
        assert await service.get_decrypted_credentials("user-1", "traxsource") is None

    @pytest.mark.asyncio
    async def test_blob_under_another_key_reads_as_not_connected(
        self, store: SQLiteConnectionStore, service: ConnectionService
    ) -> None:
        other = ConnectionService(
            store=store, vault=CredentialVault("a-completely-different-master-key!")
        )
        await other.connect_with_credentials("user-1", "traxsource", "a@b.c", "pw")

        assert await service.get_decrypted_credentials("user-1", "traxsource") is None


class TestDisconnect:
    @pytest.mark.asyncio
    async def test_disconnect_removes_row(self, service: ConnectionService) -> None:
        await service.connect_with_credentials("user-1", "traxsource", "a@b.c", "pw")

        result = await service.disconnect("user-1", "traxsource")

        assert result.success
        assert await service.list_connections("user-1") == []

    @pytest.mark.asyncio
    async def test_disconnect_unknown_is_still_success(self, service: ConnectionService) -> None:
        assert (await service.disconnect("user-1", "beatport")).success
