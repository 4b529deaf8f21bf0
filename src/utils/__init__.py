"""Utility modules for Traxscout.

- **errors** -- Exception hierarchy rooted at TraxscoutError.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **vault** -- AES-256-GCM credential vault with PBKDF2 key derivation.
- **rate_limiter** -- Thread-safe fixed-window rate limiter with a
  background sweep task.
"""

from src.utils.errors import (
    ConfigurationError,
    DecryptionError,
    InvalidAudioError,
    ProviderUnavailableError,
    RateLimitError,
    ScanError,
    TraxscoutError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.rate_limiter import FixedWindowRateLimiter, RateLimitDecision, RateLimitRule
from src.utils.vault import CredentialVault, generate_token, secure_compare

__all__ = [
    "ConfigurationError",
    "CredentialVault",
    "DecryptionError",
    "FixedWindowRateLimiter",
    "InvalidAudioError",
    "ProviderUnavailableError",
    "RateLimitDecision",
    "RateLimitError",
    "RateLimitRule",
    "ScanError",
    "TraxscoutError",
    "configure_logging",
    "generate_token",
    "get_logger",
    "secure_compare",
]
