"""Connected-account models.

A :class:`ConnectedAccount` links one user to one source.  Secrets are only
ever held as the vault's encrypted blob; :class:`ConnectionSummary` is the
secret-free view handed to callers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ConnectionStatus(str, Enum):  # noqa: UP042  StrEnum requires Python 3.11+
    CONNECTED = "connected"
    EXPIRED = "expired"
    ERROR = "error"


class ConnectedAccount(BaseModel):
    """One row per ``(user_id, source_id)``."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    source_id: str
    status: ConnectionStatus
    credentials_encrypted: str
    last_sync_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime


class ConnectionSummary(BaseModel):
    """A connected account without its credential blob."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_id: str
    status: ConnectionStatus
    last_sync_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime


class ConnectResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    error: str | None = None
    connection_id: str | None = None
