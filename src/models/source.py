"""Source configuration models for the source registry.

Every catalog or promo pool that Traxscout can scan is described by one
immutable :class:`SourceConfig`.  The registry table itself lives in
``src/config/sources.py``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Tier(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    """Subscription tiers."""

    BASIC = "basic"
    PRO = "pro"
    ELITE = "elite"


class SourceStatus(str, Enum):  # noqa: UP042
    """Availability of a source.  Only ``ACTIVE`` sources are scanned."""

    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    DISABLED = "disabled"


class AuthType(str, Enum):  # noqa: UP042
    """How a user connects their own account for a source."""

    OAUTH = "oauth"
    CREDENTIALS = "credentials"
    NONE = "none"


class SourceRateLimit(BaseModel):
    model_config = ConfigDict(frozen=True)

    requests_per_minute: int
    requests_per_day: int


class SourceFeatures(BaseModel):
    """Capabilities a source offers.

    ``promo_pool`` marks exclusive promo inboxes; their tracks earn the
    promo-pool bonus in scoring.
    """

    model_config = ConfigDict(frozen=True)

    search: bool = False
    browse: bool = True
    preview: bool = False
    affiliate: bool = False
    promo_pool: bool = False


class OAuthConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    authorize_url: str
    token_url: str
    scopes: tuple[str, ...] = ()


class SourceConfig(BaseModel):
    """Static description of one source.  Never mutated at runtime."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    status: SourceStatus = SourceStatus.ACTIVE
    auth_type: AuthType
    tiers: frozenset[Tier]
    rate_limit: SourceRateLimit | None = None
    features: SourceFeatures = Field(default_factory=SourceFeatures)
    oauth: OAuthConfig | None = None
    connect_instructions: str = ""

    @property
    def requires_connection(self) -> bool:
        return self.auth_type is not AuthType.NONE
