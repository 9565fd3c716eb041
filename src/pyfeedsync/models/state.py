"""Sync engine state snapshots and cache records."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SyncStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    REFRESHING = "refreshing"
    READY = "ready"
    ERROR = "error"


class RefreshMode(StrEnum):
    """How a refresh surfaces in :class:`SyncState`.

    ``INITIAL`` and ``FOREGROUND`` are visible (``loading``/``refreshing``);
    ``SILENT`` keeps the current status and only annotates errors.
    """

    INITIAL = "initial"
    FOREGROUND = "foreground"
    SILENT = "silent"


class SyncState(BaseModel):
    """Read-only snapshot of one resource as seen by consumers.

    ``status == ERROR`` only happens while ``data`` is ``None``.  When data
    exists a failed refresh keeps ``status == READY`` and sets ``error``:
    stale-but-present data is always exposed.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    data: Any = None
    status: SyncStatus = SyncStatus.IDLE
    error: str | None = None
    last_updated: datetime | None = None
    next_refresh_in_seconds: int | None = None

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def is_busy(self) -> bool:
        return self.status in (SyncStatus.LOADING, SyncStatus.REFRESHING)

    @property
    def is_stale_with_error(self) -> bool:
        """Data is shown but the last refresh failed ("stale, retry pending")."""
        return self.data is not None and self.error is not None


class CachedResource(BaseModel):
    """A resource payload as persisted by the cache store."""

    model_config = ConfigDict(frozen=True)

    key: str
    payload: Any = Field(..., description="Opaque JSON value as stored")
    fetched_at: float = Field(..., description="Epoch seconds of the successful fetch")

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        key = value.strip()
        if not key:
            raise ValueError("key must be non-empty")
        return key

    @property
    def fetched_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.fetched_at, tz=UTC)
