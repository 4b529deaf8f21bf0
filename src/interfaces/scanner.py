"""Abstract base class for source scanners.

A scanner fetches the current listing of one source and normalizes it into
:class:`~src.models.track.Track` records.  Scanners never raise: every
failure is reported through ``ScanResult.error`` so one broken source can
not take down a multi-source scan.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.track import FilterOptions, ScanResult


class IScanner(ABC):
    """Contract for per-source scanners."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Registry id of the source this scanner reads, e.g. ``"beatport"``."""

    @abstractmethod
    async def scan(self, options: FilterOptions | None = None) -> ScanResult:
        """Fetch, normalize and filter the source's listing.

        Parameters
        ----------
        options:
            Listing filters.  ``None`` applies no filtering.

        Returns
        -------
        ScanResult
            ``tracks`` holds the filtered listing.  On failure ``tracks`` is
            empty and ``error`` carries a short message.
        """
