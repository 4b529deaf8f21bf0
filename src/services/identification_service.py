"""Audio identification with a provider fallback chain.

Providers are tried in priority order (ACRCloud, then AudD).  The first
``found`` result wins; a provider that is unconfigured is skipped and one
that fails is logged and skipped, so the caller only ever sees
``found=False`` when nothing matched.

Location is privacy-first: an explicit venue name wins, otherwise a GPS
fix is reverse-geocoded to a place name and the coordinates are dropped.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timezone

from src.interfaces.geocoding_provider import IGeocodingProvider
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.models.identification import IdentifyResult
from src.utils.errors import InvalidAudioError
from src.utils.logging import get_logger

MAX_AUDIO_BYTES = 5 * 1024 * 1024


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class AudioIdentificationService:
    """Identify a track from a short microphone sample.

    Parameters
    ----------
    providers:
        Recognition providers in priority order.
    geocoder:
        Reverse geocoder for GPS fixes, or ``None`` to ignore coordinates.
    max_audio_bytes:
        Samples larger than this are rejected before any provider call.
    """

    def __init__(
        self,
        providers: list[IAudioRecognitionProvider],
        geocoder: IGeocodingProvider | None = None,
        max_audio_bytes: int = MAX_AUDIO_BYTES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._providers = providers
        self._geocoder = geocoder
        self._max_audio_bytes = max_audio_bytes
        self._clock = clock
        self._logger = get_logger(__name__)

    async def identify(
        self,
        audio: bytes,
        latitude: float | None = None,
        longitude: float | None = None,
        venue_name: str | None = None,
    ) -> IdentifyResult:
        """Run the fallback chain on *audio* and attach a venue when known.

        Raises
        ------
        InvalidAudioError
            If *audio* is empty or larger than the configured ceiling.
        """
        if not audio:
            raise InvalidAudioError(message="No audio provided")
        if len(audio) > self._max_audio_bytes:
            limit_mb = self._max_audio_bytes // (1024 * 1024)
            raise InvalidAudioError(message=f"Audio file too large (max {limit_mb}MB)")

        result = await self._recognize(audio)

        venue = venue_name.strip() if venue_name and venue_name.strip() else None
        if venue is None:
            venue = await self._resolve_venue(latitude, longitude)

        update: dict[str, object] = {"identified_at": self._clock()}
        if venue:
            update["venue"] = venue
        return result.model_copy(update=update)

    async def _recognize(self, audio: bytes) -> IdentifyResult:
        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                self._logger.debug("identify_provider_unconfigured", provider=name)
                continue

            try:
                result = await provider.recognize(audio)
            except Exception as exc:  # noqa: BLE001
                self._logger.warning(
                    "identify_provider_failed",
                    provider=name,
                    error=str(exc),
                )
                continue

            if result.found:
                self._logger.info("identify_match", provider=name)
                return result
            self._logger.info("identify_no_match", provider=name)

        return IdentifyResult(found=False)

    async def _resolve_venue(
        self,
        latitude: float | None,
        longitude: float | None,
    ) -> str | None:
        if self._geocoder is None or latitude is None or longitude is None:
            return None
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            return None

        try:
            return await self._geocoder.reverse(latitude, longitude)
        except Exception as exc:  # noqa: BLE001
            # Coordinates are never logged.
            self._logger.warning(
                "reverse_geocode_failed",
                provider=self._geocoder.get_provider_name(),
                error=str(exc),
            )
            return None
