"""Traxscout FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.recognition_provider import IAudioRecognitionProvider
from src.providers.geocoding.nominatim_provider import NominatimGeocodingProvider
from src.providers.recognition.acrcloud_provider import ACRCloudRecognitionProvider
from src.providers.recognition.audd_provider import AuddRecognitionProvider
from src.providers.scanners import build_scanner_factories
from src.providers.storage.sqlite_connection_store import SQLiteConnectionStore
from src.providers.storage.sqlite_track_store import SQLiteTrackStore
from src.services.connection_service import ConnectionService
from src.services.identification_service import AudioIdentificationService
from src.services.scanner_service import ScannerService
from src.services.scoring import TrackScorer
from src.utils.logging import configure_logging, get_logger
from src.utils.rate_limiter import FixedWindowRateLimiter, RateLimitRule
from src.utils.vault import CredentialVault

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_rate_limit_rules(config: dict[str, Any]) -> dict[str, RateLimitRule]:
    return {
        name: RateLimitRule(max_requests=int(rule["max_requests"]), window_ms=int(rule["window_ms"]))
        for name, rule in config.get("rate_limits", {}).items()
    }


def _build_all(app_settings: Settings, config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    config = config if config is not None else load_config(settings=app_settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.http_timeout_seconds)

    # -- Storage --
    track_store = SQLiteTrackStore(db_path=app_settings.track_store_db_path)
    connection_store = SQLiteConnectionStore(db_path=app_settings.connections_db_path)

    # -- Connected accounts (only with a usable master key) --
    connection_service: ConnectionService | None = None
    if app_settings.encryption_key:
        vault = CredentialVault(app_settings.encryption_key)
        connection_service = ConnectionService(store=connection_store, vault=vault)
    else:
        _logger.warning(
            "encryption_key_missing",
            msg="ENCRYPTION_KEY not set. Connected accounts are disabled.",
        )

    # -- Scanning & scoring --
    scanner_service = ScannerService(
        factories=build_scanner_factories(
            http_client,
            track_store,
            stored_track_limit=app_settings.stored_track_limit,
        ),
        connection_service=connection_service,
        scan_timeout=app_settings.scan_timeout_seconds,
    )
    scorer = TrackScorer()

    # -- Audio identification (priority order) --
    recognition_providers: list[IAudioRecognitionProvider] = [
        ACRCloudRecognitionProvider(http_client=http_client, settings=app_settings),
        AuddRecognitionProvider(http_client=http_client, settings=app_settings),
    ]
    identification_service = AudioIdentificationService(
        providers=recognition_providers,
        geocoder=NominatimGeocodingProvider(http_client=http_client, settings=app_settings),
        max_audio_bytes=app_settings.identify_max_audio_bytes,
    )

    # -- Rate limiting --
    rate_limiter = FixedWindowRateLimiter(sweep_interval=app_settings.rate_limit_sweep_seconds)

    # -- Provider registry for /health --
    provider_registry: dict[str, bool] = {
        p.get_provider_name(): p.is_available() for p in recognition_providers
    }
    provider_registry["connected_accounts"] = connection_service is not None

    return {
        "http_client": http_client,
        "track_store": track_store,
        "connection_store": connection_store,
        "connection_service": connection_service,
        "scanner_service": scanner_service,
        "scorer": scorer,
        "identification_service": identification_service,
        "rate_limiter": rate_limiter,
        "rate_limit_rules": _build_rate_limit_rules(config),
        "feed_config": config.get("feed", {}),
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings)
    for key, value in components.items():
        setattr(application.state, key, value)

    await components["track_store"].initialize()
    await components["connection_store"].initialize()
    purged = await components["track_store"].purge_expired()

    rate_limiter: FixedWindowRateLimiter = components["rate_limiter"]
    rate_limiter.start()

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=components["provider_registry"],
        expired_tracks_purged=purged,
    )

    yield

    # -- Shutdown: stop background sweep, close shared httpx client --
    await rate_limiter.stop()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Traxscout API",
        version=_VERSION,
        description=(
            "Scan connected music stores and promo pools, rank a daily feed "
            "against each user's taste, and identify tracks from a short "
            "audio sample."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
