"""AudD recognition provider -- fallback when ACRCloud finds nothing."""

from __future__ import annotations

from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.models.identification import IdentifyLinks, IdentifyResult
from src.utils.errors import ProviderUnavailableError
from src.utils.logging import get_logger

_AUDD_URL = "https://api.audd.io/"


class AuddRecognitionProvider(IAudioRecognitionProvider):
    """Identify tracks through the AudD API, asking for Apple Music and Spotify links."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings) -> None:
        self._http = http_client
        self._api_key = settings.audd_api_key
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "audd"

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def recognize(self, audio: bytes) -> IdentifyResult:
        data = {"api_token": self._api_key, "return": "apple_music,spotify"}
        files = {"file": ("sample.wav", audio, "application/octet-stream")}
        try:
            response = await self._http.post(_AUDD_URL, data=data, files=files)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(
                message=f"AudD request failed: {exc}",
                provider_name="audd",
            ) from exc

        return self._parse(payload)

    def _parse(self, payload: dict[str, Any]) -> IdentifyResult:
        result = payload.get("result")
        if payload.get("status") != "success" or not result:
            self._logger.debug("audd_no_match", status=payload.get("status"))
            return IdentifyResult(found=False)

        spotify = (result.get("spotify") or {}).get("external_urls") or {}
        apple_music = result.get("apple_music") or {}

        return IdentifyResult(
            found=True,
            source="audd",
            artist=result.get("artist") or "Unknown",
            title=result.get("title") or "Unknown",
            album=result.get("album"),
            label=result.get("label"),
            release_date=result.get("release_date"),
            links=IdentifyLinks(
                spotify=spotify.get("spotify"),
                apple_music=apple_music.get("url"),
            ),
        )
