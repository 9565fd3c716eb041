"""Client configuration and refresh policies for pyfeedsync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfeedsync._constants import (
    DAILY_QUOTE_URL,
    DEFAULT_CACHE_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    MARKET_URL,
    QUOTES_URL,
    USER_AGENT,
)
from pyfeedsync.exceptions import FeedSyncConfigError


def _env_float(value: str | None, name: str) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise FeedSyncConfigError(f"{name} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RefreshPolicy:
    """How long cached data stays fresh and how often it is refreshed.

    Parameters
    ----------
    ttl_seconds : int
        Maximum age of cached data served on mount without a fetch.
        ``0`` means every mount refetches.
    auto_refresh_interval_seconds : int or None
        Period of the background silent refresh.  ``None`` disables the
        repeating timer and the countdown entirely.
    expire_at_midnight : bool
        Additionally treat cached data as stale once the local calendar
        day has changed since it was fetched (quote of the day).
    """

    ttl_seconds: int
    auto_refresh_interval_seconds: int | None = None
    expire_at_midnight: bool = False

    def __post_init__(self) -> None:
        if self.ttl_seconds < 0:
            raise FeedSyncConfigError(f"ttl_seconds must be >= 0, got {self.ttl_seconds}")
        interval = self.auto_refresh_interval_seconds
        if interval is not None and interval <= 0:
            raise FeedSyncConfigError(
                f"auto_refresh_interval_seconds must be positive or None, got {interval}"
            )

    @property
    def auto_refresh_enabled(self) -> bool:
        return self.auto_refresh_interval_seconds is not None


#: Market dashboard: polled every minute while visible.
MARKET_POLICY = RefreshPolicy(ttl_seconds=60, auto_refresh_interval_seconds=60)
#: Quotes feed: one hour TTL cache, no polling.
QUOTES_POLICY = RefreshPolicy(ttl_seconds=3600)
#: Quote of the day: refreshed once per local calendar day.
DAILY_QUOTE_POLICY = RefreshPolicy(ttl_seconds=24 * 3600, expire_at_midnight=True)


@dataclasses.dataclass(frozen=True)
class FeedSyncConfig:
    """Client configuration.

    Parameters
    ----------
    request_timeout : float
        Total timeout in seconds for one resource GET.  A bounded value
        keeps a hung request from stalling the refresh cycle.
    cache_path : str or None
        JSON file backing the durable cache.  ``None`` keeps the cache in
        memory only.
    market_url : str
        Endpoint of the market indicator bundle.
    quotes_url : str
        Endpoint of the quotes list.
    daily_quote_url : str
        Endpoint of the quote of the day.
    user_agent : str
        ``User-Agent`` header sent with every request.
    time_zone : str or None
        IANA zone used for calendar-day expiry.  ``None`` uses the local
        system zone.
    """

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    cache_path: str | None = DEFAULT_CACHE_PATH
    market_url: str = MARKET_URL
    quotes_url: str = QUOTES_URL
    daily_quote_url: str = DAILY_QUOTE_URL
    user_agent: str = USER_AGENT
    time_zone: str | None = None

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise FeedSyncConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedSyncConfig:
        """Create configuration from ``FEEDSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.  An empty
        ``FEEDSYNC_CACHE_PATH`` disables the durable cache.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FEEDSYNC_MARKET_URL": "market_url",
            "FEEDSYNC_QUOTES_URL": "quotes_url",
            "FEEDSYNC_DAILY_QUOTE_URL": "daily_quote_url",
            "FEEDSYNC_USER_AGENT": "user_agent",
            "FEEDSYNC_TIME_ZONE": "time_zone",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        cache_env = env.get("FEEDSYNC_CACHE_PATH")
        if cache_env is not None and "cache_path" not in overrides:
            config_kwargs["cache_path"] = cache_env or None

        timeout = _env_float(env.get("FEEDSYNC_REQUEST_TIMEOUT"), "FEEDSYNC_REQUEST_TIMEOUT")
        if timeout is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = timeout

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
