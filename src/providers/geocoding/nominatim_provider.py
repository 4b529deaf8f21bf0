"""Nominatim reverse geocoder.

Turns a GPS fix into a venue or place name.  Only the name is kept; the
coordinates are never stored or returned.
"""

from __future__ import annotations

from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.geocoding_provider import IGeocodingProvider
from src.utils.errors import ProviderUnavailableError

_NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"


def venue_from_payload(payload: dict[str, Any]) -> str | None:
    """Pick a venue name: ``name``, then amenity, then leisure, then display name."""
    address = payload.get("address") or {}
    display_name = payload.get("display_name") or ""
    candidates = (
        payload.get("name"),
        address.get("amenity"),
        address.get("leisure"),
        display_name.split(",")[0].strip(),
    )
    for candidate in candidates:
        if candidate:
            return candidate
    return None


class NominatimGeocodingProvider(IGeocodingProvider):
    """OpenStreetMap Nominatim ``/reverse`` lookups at street-level zoom."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._user_agent = settings.geocoder_user_agent

    def get_provider_name(self) -> str:
        return "nominatim"

    async def reverse(self, latitude: float, longitude: float) -> str | None:
        params = {"lat": latitude, "lon": longitude, "format": "json", "zoom": 18}
        try:
            response = await self._http.get(
                _NOMINATIM_REVERSE_URL,
                params=params,
                headers={"User-Agent": self._user_agent},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(
                message=f"Reverse geocoding failed: {exc}",
                provider_name="nominatim",
            ) from exc

        if not isinstance(payload, dict):
            return None
        return venue_from_payload(payload)
