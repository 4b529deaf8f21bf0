"""Unit tests for ScannerService -- fan-out, isolation, timeouts and merge."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.track import FilterOptions, Track
from src.services.connection_service import ConnectionService
from src.services.scanner_service import ScannerService, deduplicate
from src.utils.errors import ScanError
from tests.conftest import FakeScanner, make_track


def _factory(scanner: FakeScanner, seen: list[Any] | None = None):  # noqa: ANN202
    def build(credentials: dict[str, Any] | None) -> FakeScanner:
        if seen is not None:
            seen.append(credentials)
        return scanner

    return build


def _four_tet(source: str, **fields: Any) -> Track:
    return make_track(source=source, artist="Four Tet", title="Parallel", **fields)


# ---------------------------------------------------------------------------
# deduplicate()
# ---------------------------------------------------------------------------


class TestDeduplicate:
    def test_richer_duplicate_wins(self) -> None:
        poor = _four_tet("traxsource", bpm=0, store_url="")
        rich = _four_tet("beatport", bpm=122, store_url="https://www.beatport.com/track/-/1")

        assert deduplicate([poor, rich]) == [rich]
        assert deduplicate([rich, poor]) == [rich]

    def test_tie_keeps_first_seen(self) -> None:
        first = _four_tet("beatport", bpm=122)
        second = _four_tet("traxsource", key="8A")
        assert deduplicate([first, second]) == [first]

    def test_key_ignores_case(self) -> None:
        a = make_track(artist="FOUR TET", title="parallel")
        b = make_track(artist="Four Tet", title="Parallel", bpm=122)
        assert deduplicate([a, b]) == [b]

    def test_distinct_tracks_keep_order(self) -> None:
        tracks = [make_track(title="A"), make_track(title="B"), make_track(title="C")]
        assert deduplicate(tracks) == tracks


# ---------------------------------------------------------------------------
# scan_all()
# ---------------------------------------------------------------------------


class TestScanAll:
    @pytest.mark.asyncio
    async def test_merges_across_sources_and_keeps_richest(self) -> None:
        poor = _four_tet("traxsource", bpm=0, store_url="")
        rich = _four_tet("beatport", bpm=122, store_url="https://www.beatport.com/track/-/1")
        service = ScannerService(
            {
                "beatport": _factory(FakeScanner("beatport", [rich])),
                "traxsource": _factory(FakeScanner("traxsource", [poor])),
            }
        )

        result = await service.scan_all("basic")

        assert result.combined == [rich]
        assert list(result.results) == ["beatport", "traxsource"]
        assert [(s.id, s.name, s.status, s.track_count) for s in result.sources] == [
            ("beatport", "Beatport", "ok", 1),
            ("traxsource", "Traxsource", "ok", 1),
        ]

    @pytest.mark.asyncio
    async def test_failing_scanner_is_isolated(self) -> None:
        good = make_track(source="traxsource")
        service = ScannerService(
            {
                "beatport": _factory(FakeScanner("beatport", error=RuntimeError("boom"))),
                "traxsource": _factory(FakeScanner("traxsource", [good])),
            }
        )

        result = await service.scan_all("basic")

        assert result.combined == [good]
        assert result.results["beatport"].error == "boom"
        assert result.results["beatport"].tracks == []
        assert [s.status for s in result.sources] == ["error", "ok"]

    @pytest.mark.asyncio
    async def test_factory_failure_is_isolated(self) -> None:
        def broken(_credentials: dict[str, Any] | None) -> FakeScanner:
            raise ValueError("bad adapter config")

        service = ScannerService(
            {
                "beatport": broken,
                "trackscout": _factory(FakeScanner("trackscout", [make_track(source="trackscout")])),
            }
        )

        result = await service.scan_all("basic")

        assert result.results["beatport"].error == "bad adapter config"
        assert len(result.combined) == 1

    @pytest.mark.asyncio
    async def test_provider_error_message_has_no_prefix(self) -> None:
        def broken(_credentials: dict[str, Any] | None) -> FakeScanner:
            raise ScanError("Login required", provider_name="beatport")

        service = ScannerService({"beatport": broken})

        result = await service.scan_all("basic")

        assert result.results["beatport"].error == "Login required"

    @pytest.mark.asyncio
    async def test_slow_scanner_times_out(self) -> None:
        fast = make_track(source="traxsource")
        service = ScannerService(
            {
                "beatport": _factory(FakeScanner("beatport", [make_track()], delay=5)),
                "traxsource": _factory(FakeScanner("traxsource", [fast])),
            },
            scan_timeout=0.05,
        )

        result = await service.scan_all("basic")

        assert result.results["beatport"].error == "Scan timed out after 0.05s"
        assert result.combined == [fast]

    @pytest.mark.asyncio
    async def test_enabled_ids_intersect_tier(self) -> None:
        scanners = {sid: FakeScanner(sid) for sid in ("beatport", "traxsource", "inflyte")}
        service = ScannerService({sid: _factory(s) for sid, s in scanners.items()})

        result = await service.scan_all("basic", enabled_source_ids=["traxsource", "inflyte"])

        assert list(result.results) == ["traxsource"]
        assert scanners["beatport"].calls == []
        assert scanners["inflyte"].calls == []

    @pytest.mark.asyncio
    async def test_sources_without_adapter_are_skipped(self) -> None:
        service = ScannerService({"trackscout": _factory(FakeScanner("trackscout"))})

        result = await service.scan_all("pro", enabled_source_ids=["bandcamp", "trackscout"])

        assert list(result.results) == ["trackscout"]

    @pytest.mark.asyncio
    async def test_unknown_tier_scans_nothing(self) -> None:
        scanner = FakeScanner("beatport")
        service = ScannerService({"beatport": _factory(scanner)})

        result = await service.scan_all("platinum")

        assert result.results == {}
        assert result.combined == []
        assert scanner.calls == []

    @pytest.mark.asyncio
    async def test_options_forwarded(self) -> None:
        scanner = FakeScanner("traxsource")
        service = ScannerService({"traxsource": _factory(scanner)})
        options = FilterOptions(genres=["Tech House"], release_days_ago=7)

        await service.scan_all("basic", options)

        assert scanner.calls == [options]


class TestCredentials:
    @pytest.fixture
    def connections(self) -> MagicMock:
        service = MagicMock(spec=ConnectionService)
        service.get_decrypted_credentials = AsyncMock(return_value={"access_token": "tok"})
        return service

    @pytest.mark.asyncio
    async def test_authenticated_sources_get_credentials(self, connections: MagicMock) -> None:
        beatport_seen: list[Any] = []
        picks_seen: list[Any] = []
        service = ScannerService(
            {
                "beatport": _factory(FakeScanner("beatport"), beatport_seen),
                "trackscout": _factory(FakeScanner("trackscout"), picks_seen),
            },
            connection_service=connections,
        )

        await service.scan_all("basic", user_id="user-1")

        assert beatport_seen == [{"access_token": "tok"}]
        assert picks_seen == [None]
        connections.get_decrypted_credentials.assert_awaited_once_with("user-1", "beatport")

    @pytest.mark.asyncio
    async def test_no_user_means_no_credentials(self, connections: MagicMock) -> None:
        seen: list[Any] = []
        service = ScannerService(
            {"beatport": _factory(FakeScanner("beatport"), seen)},
            connection_service=connections,
        )

        await service.scan_all("basic")

        assert seen == [None]
        connections.get_decrypted_credentials.assert_not_awaited()


class TestScanSource:
    @pytest.mark.asyncio
    async def test_unknown_source(self) -> None:
        result = await ScannerService({}).scan_source("napster")
        assert result.error == "Unknown source: napster"

    @pytest.mark.asyncio
    async def test_source_without_adapter(self) -> None:
        result = await ScannerService({}).scan_source("bandcamp")
        assert result.error == "No scanner for source: bandcamp"

    @pytest.mark.asyncio
    async def test_ignores_tier(self) -> None:
        track = make_track(source="inflyte")
        service = ScannerService({"inflyte": _factory(FakeScanner("inflyte", [track]))})

        result = await service.scan_source("inflyte")

        assert result.ok
        assert result.tracks == [track]
