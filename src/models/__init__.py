"""Traxscout domain models, re-exported from their submodules.

    - track.py          -- Track, ScoredTrack, scan results, filters, preferences
    - source.py         -- Source registry entries and enums
    - account.py        -- Connected accounts (encrypted credentials only)
    - identification.py -- Audio identification results

If you add a new model class, add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.account import (
    ConnectedAccount,
    ConnectionStatus,
    ConnectionSummary,
    ConnectResult,
)
from src.models.identification import IdentifyLinks, IdentifyResult
from src.models.source import (
    AuthType,
    OAuthConfig,
    SourceConfig,
    SourceFeatures,
    SourceRateLimit,
    SourceStatus,
    Tier,
)
from src.models.track import (
    FilterOptions,
    ScanAllResult,
    ScanResult,
    ScoredTrack,
    SourceScanStatus,
    Track,
    UserPreferences,
)

__all__ = [
    "AuthType",
    "ConnectResult",
    "ConnectedAccount",
    "ConnectionStatus",
    "ConnectionSummary",
    "FilterOptions",
    "IdentifyLinks",
    "IdentifyResult",
    "OAuthConfig",
    "ScanAllResult",
    "ScanResult",
    "ScoredTrack",
    "SourceConfig",
    "SourceFeatures",
    "SourceRateLimit",
    "SourceScanStatus",
    "SourceStatus",
    "Tier",
    "Track",
    "UserPreferences",
]
