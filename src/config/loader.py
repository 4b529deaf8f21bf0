"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. ``config/config.yaml`` -- static defaults checked into the repo
     (endpoint rate-limit rules, daily track limit, feed defaults)
  2. ``.env`` file           -- local developer overrides
  3. Environment variables   -- set at deploy time

``load_config`` reads the YAML first, then deep-merges the env-based
values from :class:`Settings` on top.
"""

from pathlib import Path

import yaml

from src.config.settings import Settings

_DEFAULT_RATE_LIMITS: dict[str, dict[str, int]] = {
    "identify": {"max_requests": 10, "window_ms": 60_000},
    "tracks": {"max_requests": 30, "window_ms": 60_000},
    "login": {"max_requests": 5, "window_ms": 900_000},
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read otherwise.

    Returns:
        Fully resolved configuration dictionary.  ``rate_limits`` is always
        present, falling back to built-in rules when the YAML omits it.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    yaml_config.setdefault("rate_limits", {})
    for name, rule in _DEFAULT_RATE_LIMITS.items():
        yaml_config["rate_limits"].setdefault(name, dict(rule))

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "identify": {
            "available_providers": settings.get_available_identify_providers(),
            "max_audio_bytes": settings.identify_max_audio_bytes,
        },
        "scanning": {
            "timeout_seconds": settings.scan_timeout_seconds,
            "stored_track_limit": settings.stored_track_limit,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
