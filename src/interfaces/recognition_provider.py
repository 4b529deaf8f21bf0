"""Abstract base class for audio-recognition providers.

Providers receive raw sample bytes and answer with an
:class:`~src.models.identification.IdentifyResult`.  "No match" is a normal
``found=False`` result; only transport or protocol failures raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.identification import IdentifyResult


class IAudioRecognitionProvider(ABC):
    """Contract for fingerprint-based track recognition services."""

    @abstractmethod
    async def recognize(self, audio: bytes) -> IdentifyResult:
        """Identify the track in *audio*.

        Parameters
        ----------
        audio:
            Raw audio sample (WAV, WebM or similar), already size-checked.

        Returns
        -------
        IdentifyResult
            ``found=True`` with metadata on a match, ``found=False`` otherwise.

        Raises
        ------
        src.utils.errors.ProviderUnavailableError
            If the service cannot be reached or answers with a non-2xx status.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider id recorded in ``IdentifyResult.source``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider's credentials are configured."""
