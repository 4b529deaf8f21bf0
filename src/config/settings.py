"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (highest priority first):

  1. Environment variables, e.g. ``ENCRYPTION_KEY=...``
  2. The ``.env`` file in the project root (local development only)
  3. The defaults declared below

Field ``acrcloud_access_key`` maps to ``ACRCLOUD_ACCESS_KEY`` and so on.
An empty string means "not configured"; the identification chain skips
providers whose credentials are empty.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Traxscout application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Credential vault ===
    # Master secret for connected-account credentials.  Must be >= 32 chars;
    # the vault refuses to start with anything shorter.
    encryption_key: str = ""

    # === Audio identification ===
    acrcloud_access_key: str = ""
    acrcloud_secret_key: str = ""
    acrcloud_host: str = "identify-us-west-2.acrcloud.com"
    audd_api_key: str = ""
    geocoder_user_agent: str = "Traxscout/1.0"
    identify_max_audio_bytes: int = 5 * 1024 * 1024

    # === Scanning ===
    scan_timeout_seconds: float = 20.0
    http_timeout_seconds: float = 30.0
    stored_track_limit: int = 50

    # === Storage ===
    track_store_db_path: str = "data/tracks.db"
    connections_db_path: str = "data/connections.db"

    # === Rate limiting ===
    rate_limit_sweep_seconds: float = 300.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_identify_providers(self) -> list[str]:
        """Return identification provider names that have credentials configured."""
        providers: list[str] = []
        if self.acrcloud_access_key and self.acrcloud_secret_key:
            providers.append("acrcloud")
        if self.audd_api_key:
            providers.append("audd")
        return providers
