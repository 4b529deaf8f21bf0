"""Configuration module: settings, the YAML loader, and the source registry."""

from src.config.loader import load_config
from src.config.settings import Settings
from src.config.sources import (
    SOURCE_REGISTRY,
    get_all_sources,
    get_promo_pool_source_ids,
    get_source_config,
    get_sources_for_tier,
)

__all__ = [
    "SOURCE_REGISTRY",
    "Settings",
    "get_all_sources",
    "get_promo_pool_source_ids",
    "get_source_config",
    "get_sources_for_tier",
    "load_config",
]
