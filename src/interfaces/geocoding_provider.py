"""Abstract base class for reverse-geocoding providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IGeocodingProvider(ABC):
    """Contract for turning coordinates into a place name."""

    @abstractmethod
    async def reverse(self, latitude: float, longitude: float) -> str | None:
        """Return a venue or place name near the coordinates, or ``None``.

        Raises
        ------
        src.utils.errors.ProviderUnavailableError
            If the geocoding service cannot be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"nominatim"``."""
