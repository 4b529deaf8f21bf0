"""Custom exception hierarchy for Traxscout.

All application exceptions inherit from :class:`TraxscoutError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "beatport", "acrcloud", "nominatim") caused the
failure.

The hierarchy is organized by subsystem:

    TraxscoutError  (base -- catch-all for any Traxscout error)
    +-- ConfigurationError       (startup / missing config, weak master key)
    +-- ScanError                (a source adapter could not fetch or parse)
    +-- DecryptionError          (credential blob tampered, malformed, wrong key)
    +-- InvalidAudioError        (identify payload empty or over the ceiling)
    +-- ProviderUnavailableError (external service down / unreachable)
    +-- RateLimitError           (caller exceeded a fixed-window limit)

Scanner adapters never let ``ScanError`` escape: it is converted into
``ScanResult.error`` at the adapter boundary.  ``DecryptionError`` is the
one error callers must never paper over with a default value.
"""


class TraxscoutError(Exception):
    """Base exception for all Traxscout errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[beatport] Beatport returned 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(TraxscoutError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------

class ScanError(TraxscoutError):
    """Raised inside a scanner when a source cannot be fetched or parsed.

    Caught by the scanner itself and surfaced as ``ScanResult.error``.
    """

    def __init__(
        self,
        message: str = "Source scan failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Credential vault
# ---------------------------------------------------------------------------

class DecryptionError(TraxscoutError):
    """Raised when an encrypted credential blob cannot be authenticated.

    Covers tampered ciphertext, a wrong master key, and structurally
    malformed blobs.  The stored credential must be treated as unusable.
    """

    def __init__(
        self,
        message: str = "Credential blob could not be decrypted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Audio identification
# ---------------------------------------------------------------------------

class InvalidAudioError(TraxscoutError):
    """Raised when an identify payload is empty or exceeds the size ceiling."""

    def __init__(
        self,
        message: str = "Invalid audio sample",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / throttling errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(TraxscoutError):
    """Raised when an external service or provider is unreachable.

    The identification chain catches this to try the next provider.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(TraxscoutError):
    """Raised at the HTTP boundary when a fixed-window limit denies a request.

    ``retry_after_ms`` is the time left in the current window and is
    surfaced to clients as a ``Retry-After`` header.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        retry_after_ms: int = 0,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._retry_after_ms = retry_after_ms

    @property
    def retry_after_ms(self) -> int:
        return self._retry_after_ms
