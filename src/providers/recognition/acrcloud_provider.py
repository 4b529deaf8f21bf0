"""ACRCloud recognition provider -- primary fingerprint service.

Requests are signed with HMAC-SHA1 over a newline-joined string of the
method, URI, access key, data type, signature version and Unix timestamp;
the base64 digest travels in the ``signature`` form field.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from collections.abc import Callable
from typing import Any

import httpx

from src.config.settings import Settings
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.models.identification import IdentifyLinks, IdentifyResult
from src.utils.errors import ProviderUnavailableError
from src.utils.logging import get_logger

_HTTP_METHOD = "POST"
_HTTP_URI = "/v1/identify"
_DATA_TYPE = "audio"
_SIGNATURE_VERSION = "1"


def sign_request(access_key: str, secret_key: str, timestamp: str) -> str:
    """Return the base64 HMAC-SHA1 signature for an identify request."""
    string_to_sign = "\n".join(
        (_HTTP_METHOD, _HTTP_URI, access_key, _DATA_TYPE, _SIGNATURE_VERSION, timestamp)
    )
    digest = hmac.new(
        secret_key.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


class ACRCloudRecognitionProvider(IAudioRecognitionProvider):
    """Identify tracks through ACRCloud's ``/v1/identify`` endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._http = http_client
        self._access_key = settings.acrcloud_access_key
        self._secret_key = settings.acrcloud_secret_key
        self._host = settings.acrcloud_host
        self._clock = clock
        self._logger = get_logger(__name__)

    def get_provider_name(self) -> str:
        return "acrcloud"

    def is_available(self) -> bool:
        return bool(self._access_key and self._secret_key)

    async def recognize(self, audio: bytes) -> IdentifyResult:
        timestamp = str(int(self._clock()))
        data = {
            "access_key": self._access_key,
            "sample_bytes": str(len(audio)),
            "timestamp": timestamp,
            "signature": sign_request(self._access_key, self._secret_key, timestamp),
            "data_type": _DATA_TYPE,
            "signature_version": _SIGNATURE_VERSION,
        }
        files = {"sample": ("sample.wav", audio, "application/octet-stream")}

        try:
            response = await self._http.post(
                f"https://{self._host}{_HTTP_URI}", data=data, files=files
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderUnavailableError(
                message=f"ACRCloud request failed: {exc}",
                provider_name="acrcloud",
            ) from exc

        return self._parse(payload)

    def _parse(self, payload: dict[str, Any]) -> IdentifyResult:
        code = (payload.get("status") or {}).get("code")
        if code != 0:
            self._logger.debug("acrcloud_no_match", status_code=code)
            return IdentifyResult(found=False)

        music = (payload.get("metadata") or {}).get("music") or []
        if not music:
            return IdentifyResult(found=False)

        track = music[0]
        artists = track.get("artists") or [{}]
        ext = track.get("external_metadata") or {}

        spotify_id = ((ext.get("spotify") or {}).get("track") or {}).get("id")
        youtube_id = (ext.get("youtube") or {}).get("vid")
        deezer_id = ((ext.get("deezer") or {}).get("track") or {}).get("id")

        return IdentifyResult(
            found=True,
            source="acrcloud",
            artist=artists[0].get("name") or "Unknown",
            title=track.get("title") or "Unknown",
            album=(track.get("album") or {}).get("name"),
            label=track.get("label"),
            release_date=track.get("release_date"),
            links=IdentifyLinks(
                spotify=f"https://open.spotify.com/track/{spotify_id}" if spotify_id else None,
                youtube=f"https://youtube.com/watch?v={youtube_id}" if youtube_id else None,
                deezer=f"https://www.deezer.com/track/{deezer_id}" if deezer_id else None,
            ),
        )
