"""Registry-driven multi-source scanning.

For a tier (and optionally the user's enabled sources) the service looks up
eligible sources in the registry, builds one scanner per source from the
adapter map, runs them all concurrently and merges the results.

# ─── SCAN FLOW ─────────────────────────────────────────────────────────
#
#   get_sources_for_tier(tier)          registry order
#        │  ∩ enabled_source_ids
#        ▼
#   factory(credentials) per source     credentials only for auth'd sources
#        ▼
#   asyncio.gather(wait_for(scan))      one timeout per scanner
#        ▼
#   merge in registry order  →  de-duplicate by artist/title (richest wins)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

from src.config.sources import get_source_config, get_sources_for_tier
from src.interfaces.scanner import IScanner
from src.models.source import AuthType, SourceConfig
from src.models.track import (
    FilterOptions,
    ScanAllResult,
    ScanResult,
    SourceScanStatus,
    Track,
)
from src.providers.scanners import ScannerFactory
from src.services.connection_service import ConnectionService
from src.utils.errors import TraxscoutError
from src.utils.logging import get_logger

_DEFAULT_SCAN_TIMEOUT = 20.0


def deduplicate(tracks: list[Track]) -> list[Track]:
    """Keep one track per artist/title key.

    A later duplicate replaces the kept one only when it is strictly richer
    (more of BPM, key and store link present).  On equal richness the
    first-seen track stays.  Output order is first-seen key order.
    """
    kept: dict[str, Track] = {}
    for track in tracks:
        existing = kept.get(track.match_key)
        if existing is None or track.richness > existing.richness:
            kept[track.match_key] = track
    return list(kept.values())


class ScannerService:
    """Fan out scanners for the eligible sources and merge their listings.

    Parameters
    ----------
    factories:
        ``source_id -> factory(credentials)``; see
        :func:`src.providers.scanners.build_scanner_factories`.
    connection_service:
        Supplies decrypted credentials for authenticated sources when a
        ``user_id`` is given.  ``None`` scans every source without one.
    scan_timeout:
        Seconds each scanner may run before it is reported as failed.
    """

    def __init__(
        self,
        factories: Mapping[str, ScannerFactory],
        connection_service: ConnectionService | None = None,
        scan_timeout: float = _DEFAULT_SCAN_TIMEOUT,
    ) -> None:
        self._factories = factories
        self._connections = connection_service
        self._scan_timeout = scan_timeout
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scan_all(
        self,
        tier: str,
        options: FilterOptions | None = None,
        enabled_source_ids: list[str] | None = None,
        *,
        user_id: str | None = None,
    ) -> ScanAllResult:
        """Scan every eligible source concurrently and merge the results.

        Parameters
        ----------
        tier:
            Subscription tier; unknown tiers have no eligible sources.
        options:
            Filters passed to every scanner.
        enabled_source_ids:
            When non-empty, only these sources (still limited by tier).
        user_id:
            Owner of connected accounts used for authenticated sources.

        Returns
        -------
        ScanAllResult
            ``results`` and ``sources`` follow registry order, and
            ``combined`` is the de-duplicated merge.
        """
        eligible = get_sources_for_tier(tier)
        if enabled_source_ids:
            wanted = set(enabled_source_ids)
            eligible = [s for s in eligible if s.id in wanted]

        runnable: list[SourceConfig] = []
        for source in eligible:
            if source.id in self._factories:
                runnable.append(source)
            else:
                self._logger.debug("scan_source_no_adapter", source=source.id)

        self._logger.info(
            "scan_all_started",
            tier=tier,
            sources=[s.id for s in runnable],
        )

        # gather() returns results in argument order, so merge order is
        # registry order regardless of which scanner finishes first.
        outcomes = await asyncio.gather(
            *(self._run_source(source, options, user_id) for source in runnable),
            return_exceptions=True,
        )

        results: dict[str, ScanResult] = {}
        statuses: list[SourceScanStatus] = []
        merged: list[Track] = []
        for source, outcome in zip(runnable, outcomes):
            if isinstance(outcome, BaseException):
                outcome = ScanResult(source=source.id, error=str(outcome) or type(outcome).__name__)
            results[source.id] = outcome
            statuses.append(
                SourceScanStatus(
                    id=source.id,
                    name=source.name,
                    status="ok" if outcome.ok else "error",
                    track_count=len(outcome.tracks),
                )
            )
            merged.extend(outcome.tracks)

        combined = deduplicate(merged)
        self._logger.info(
            "scan_all_complete",
            tier=tier,
            sources=len(runnable),
            failed=sum(1 for s in statuses if s.status == "error"),
            tracks=len(merged),
            unique=len(combined),
        )
        return ScanAllResult(results=results, combined=combined, sources=statuses)

    async def scan_source(
        self,
        source_id: str,
        options: FilterOptions | None = None,
        *,
        user_id: str | None = None,
    ) -> ScanResult:
        """Scan one source regardless of tier.  Unknown ids yield an error result."""
        source = get_source_config(source_id)
        if source is None:
            return ScanResult(source=source_id, error=f"Unknown source: {source_id}")
        if source_id not in self._factories:
            return ScanResult(source=source_id, error=f"No scanner for source: {source_id}")
        return await self._run_source(source, options, user_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_source(
        self,
        source: SourceConfig,
        options: FilterOptions | None,
        user_id: str | None,
    ) -> ScanResult:
        try:
            credentials = await self._credentials_for(source, user_id)
            scanner: IScanner = self._factories[source.id](credentials)
            return await asyncio.wait_for(scanner.scan(options), timeout=self._scan_timeout)
        except asyncio.TimeoutError:
            self._logger.warning(
                "scan_source_timeout",
                source=source.id,
                timeout=self._scan_timeout,
            )
            return ScanResult(
                source=source.id,
                error=f"Scan timed out after {self._scan_timeout:g}s",
            )
        except Exception as exc:  # noqa: BLE001
            self._logger.warning(
                "scan_source_failed",
                source=source.id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            message = exc.message if isinstance(exc, TraxscoutError) else str(exc)
            return ScanResult(source=source.id, error=message or type(exc).__name__)

    async def _credentials_for(
        self,
        source: SourceConfig,
        user_id: str | None,
    ) -> dict | None:
        if source.auth_type is AuthType.NONE or self._connections is None or user_id is None:
            return None
        return await self._connections.get_decrypted_credentials(user_id, source.id)
