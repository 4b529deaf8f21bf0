"""Source registry -- the static catalog of every scannable source.

Each user connects their own account per source; Traxscout only reads what
that account can see.  Adding a new source:

  1. Add a :class:`SourceConfig` entry to ``_SOURCES`` below.
  2. Write a scanner in ``src/providers/scanners/``.
  3. Register its factory in ``build_scanner_factories``
     (``src/providers/scanners/__init__.py``).

The table is built once at import and exposed read-only through a
``MappingProxyType``; nothing reloads or mutates it at runtime.
"""

from __future__ import annotations

from types import MappingProxyType

from src.models.source import (
    AuthType,
    OAuthConfig,
    SourceConfig,
    SourceFeatures,
    SourceRateLimit,
    Tier,
)

_ALL_TIERS = frozenset({Tier.BASIC, Tier.PRO, Tier.ELITE})
_PAID_TIERS = frozenset({Tier.PRO, Tier.ELITE})

_SOURCES: tuple[SourceConfig, ...] = (
    SourceConfig(
        id="beatport",
        name="Beatport",
        description="Your Beatport purchases, charts, and wishlist.",
        auth_type=AuthType.OAUTH,
        tiers=_ALL_TIERS,
        rate_limit=SourceRateLimit(requests_per_minute=30, requests_per_day=5000),
        features=SourceFeatures(search=True, browse=True, preview=True, affiliate=True),
        oauth=OAuthConfig(
            authorize_url="https://oauth-api.beatport.com/identity/1/oauth/authorize",
            token_url="https://oauth-api.beatport.com/identity/1/oauth/access-token",
            scopes=("read",),
        ),
        connect_instructions=(
            "Connect your Beatport account to sync purchases, wishlist, "
            "and personalized charts."
        ),
    ),
    SourceConfig(
        id="traxsource",
        name="Traxsource",
        description="Your Traxsource purchases, crate, and download queue.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_ALL_TIERS,
        rate_limit=SourceRateLimit(requests_per_minute=10, requests_per_day=1000),
        features=SourceFeatures(search=True, browse=True, preview=True, affiliate=True),
        connect_instructions=(
            "Enter your Traxsource email and password. Credentials are "
            "encrypted with AES-256 and never stored in plaintext."
        ),
    ),
    SourceConfig(
        id="inflyte",
        name="Inflyte",
        description="Your promo pool inbox. Unreleased tracks from labels.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_PAID_TIERS,
        features=SourceFeatures(browse=True, preview=True, promo_pool=True),
        connect_instructions=(
            "Enter your Inflyte login credentials to sync your promo inbox automatically."
        ),
    ),
    SourceConfig(
        id="trackstack",
        name="Trackstack",
        description="Your Flow Inbox. Demos and promos from producers.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_PAID_TIERS,
        features=SourceFeatures(browse=True, preview=True, promo_pool=True),
        connect_instructions="Enter your Trackstack login to sync demos and promos from your inbox.",
    ),
    SourceConfig(
        id="bandcamp",
        name="Bandcamp",
        description="Your Bandcamp collection, wishlist, and followed artists.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_ALL_TIERS,
        rate_limit=SourceRateLimit(requests_per_minute=15, requests_per_day=2000),
        features=SourceFeatures(search=True, browse=True, preview=True),
        connect_instructions="Enter your Bandcamp login to sync your collection and wishlist.",
    ),
    SourceConfig(
        id="soundcloud",
        name="SoundCloud",
        description="Your SoundCloud likes, reposts, and followed artists.",
        auth_type=AuthType.OAUTH,
        tiers=_ALL_TIERS,
        rate_limit=SourceRateLimit(requests_per_minute=20, requests_per_day=3000),
        features=SourceFeatures(search=True, browse=True, preview=True),
        connect_instructions=(
            "Connect your SoundCloud account to sync likes and discover new "
            "tracks from artists you follow."
        ),
    ),
    SourceConfig(
        id="promo-box",
        name="Promo Box",
        description="Your promo pool deliveries from labels and distributors.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_PAID_TIERS,
        features=SourceFeatures(browse=True, preview=True, promo_pool=True),
        connect_instructions="Enter your Promo Box login to sync promo deliveries.",
    ),
    SourceConfig(
        id="label-worx",
        name="Label Worx",
        description="Your Label Worx promo pool and pre-release tracks.",
        auth_type=AuthType.CREDENTIALS,
        tiers=_PAID_TIERS,
        features=SourceFeatures(browse=True, preview=True, promo_pool=True),
        connect_instructions="Enter your Label Worx credentials to sync your promo pool.",
    ),
    SourceConfig(
        id="trackscout",
        name="Traxscout Picks",
        description="Curated daily picks from our scanning and editorial team.",
        auth_type=AuthType.NONE,
        tiers=_ALL_TIERS,
        features=SourceFeatures(browse=True),
        connect_instructions="Always on. Fresh picks delivered daily.",
    ),
)

SOURCE_REGISTRY: MappingProxyType[str, SourceConfig] = MappingProxyType(
    {source.id: source for source in _SOURCES}
)


def get_all_sources() -> list[SourceConfig]:
    """Return every registered source regardless of status."""
    return list(SOURCE_REGISTRY.values())


def get_sources_for_tier(tier: str) -> list[SourceConfig]:
    """Return active sources available to *tier*, in registry order.

    Unknown tier names yield an empty list.
    """
    try:
        wanted = Tier(tier)
    except ValueError:
        return []
    return [
        source
        for source in SOURCE_REGISTRY.values()
        if source.status.value == "active" and wanted in source.tiers
    ]


def get_source_config(source_id: str) -> SourceConfig | None:
    """Look up one source; ``None`` for unknown ids."""
    return SOURCE_REGISTRY.get(source_id)


def get_promo_pool_source_ids() -> frozenset[str]:
    """Ids of sources flagged as exclusive promo pools."""
    return frozenset(
        source.id for source in SOURCE_REGISTRY.values() if source.features.promo_pool
    )
