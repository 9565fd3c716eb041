"""High-level async client owning transport, cache and sync engines."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiohttp

from pyfeedsync._api.market import build_market_resource
from pyfeedsync._api.quotes import build_daily_quote_resource, build_quotes_resource
from pyfeedsync._cache import CacheStore
from pyfeedsync._constants import DAILY_QUOTE_KEY, MARKET_KEY, QUOTES_KEY
from pyfeedsync._transport import HttpTransport, Transport
from pyfeedsync.config import (
    DAILY_QUOTE_POLICY,
    MARKET_POLICY,
    QUOTES_POLICY,
    FeedSyncConfig,
    RefreshPolicy,
)
from pyfeedsync.engine import SyncEngine
from pyfeedsync.exceptions import FeedSyncConfigError, FeedSyncError
from pyfeedsync.fetcher import Fetcher
from pyfeedsync.resources import Resource
from pyfeedsync.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

_logger = logging.getLogger(__name__)


def default_resources(config: FeedSyncConfig) -> list[Resource[Any]]:
    """The market bundle, quotes feed and quote of the day."""
    return [
        build_market_resource(config.market_url),
        build_quotes_resource(config.quotes_url),
        build_daily_quote_resource(config.daily_quote_url),
    ]


DEFAULT_POLICIES: dict[str, RefreshPolicy] = {
    MARKET_KEY: MARKET_POLICY,
    QUOTES_KEY: QUOTES_POLICY,
    DAILY_QUOTE_KEY: DAILY_QUOTE_POLICY,
}


def _resolve_tz(name: str | None) -> tzinfo | None:
    if name is None:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise FeedSyncConfigError(f"Unknown time zone {name!r}") from exc


class FeedSyncClient:
    """Async client that hands out one :class:`SyncEngine` per resource key.

    Usage::

        async with FeedSyncClient(FeedSyncConfig.from_env()) as client:
            market = await client.use_resource("market")
            print(market.state.status, market.state.next_refresh_in_seconds)
            await market.refresh_now()
    """

    def __init__(
        self,
        config: FeedSyncConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        storage: KeyValueStorage | None = None,
        resources: Iterable[Resource[Any]] | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._config = config or FeedSyncConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        if storage is None:
            storage = JsonFileStorage(self._config.cache_path) if self._config.cache_path else MemoryStorage()
        self._cache = CacheStore(storage)
        self._resources = list(resources) if resources is not None else default_resources(self._config)
        self._fetcher: Fetcher | None = None
        self._engines: dict[str, SyncEngine[Any]] = {}
        self._clock = clock
        self._sleep = sleep
        self._tz = _resolve_tz(self._config.time_zone)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FeedSyncClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(
                self._http_session,
                timeout=self._config.request_timeout,
                user_agent=self._config.user_agent,
            )
        self._fetcher = Fetcher(self._transport, self._resources)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        engines = list(self._engines.values())
        self._engines.clear()
        for engine in engines:
            await engine.aclose()
        for engine in engines:
            try:
                await engine.join()
            except Exception:
                # Already logged by the engine.
                _logger.debug("Background refresh of %s ended with an error", engine.key)
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
        self._fetcher = None

    # ------------------------------------------------------------------
    # Consumer API
    # ------------------------------------------------------------------

    @property
    def cache(self) -> CacheStore:
        return self._cache

    def _require_fetcher(self) -> Fetcher:
        if self._fetcher is None:
            raise FeedSyncError("Client not initialized. Use 'async with FeedSyncClient(...) as client:'")
        return self._fetcher

    def register(self, resource: Resource[Any]) -> None:
        """Add a custom resource (before its first :meth:`use_resource`)."""
        if resource.key in self._engines:
            raise FeedSyncConfigError(f"Resource {resource.key!r} is already in use")
        self._resources = [r for r in self._resources if r.key != resource.key] + [resource]
        if self._fetcher is not None:
            self._fetcher.register(resource)

    async def use_resource(
        self,
        key: str,
        policy: RefreshPolicy | None = None,
        *,
        start: bool = True,
    ) -> SyncEngine[Any]:
        """Return the engine for *key*, creating it on first use.

        *policy* defaults to the built-in policy for the key.  A different
        policy for a key that already has an engine is rejected: the policy
        is fixed for the engine's lifetime.

        With ``start=False`` the engine is returned unmounted so listeners
        can subscribe before the first ``loading`` snapshot; call
        :meth:`SyncEngine.start` afterwards.
        """
        fetcher = self._require_fetcher()
        engine = self._engines.get(key)
        if engine is not None:
            if policy is not None and policy != engine.policy:
                raise FeedSyncConfigError(f"Resource {key!r} already runs with {engine.policy}")
            if start:
                await engine.start()
            return engine

        if policy is None:
            policy = DEFAULT_POLICIES.get(key)
            if policy is None:
                raise FeedSyncConfigError(f"No refresh policy given for resource {key!r}")

        engine = SyncEngine(
            key,
            policy,
            fetcher=fetcher,
            cache=self._cache,
            clock=self._clock,
            sleep=self._sleep,
            tz=self._tz,
        )
        self._engines[key] = engine
        if start:
            await engine.start()
        return engine

    async def release(self, key: str) -> None:
        """Dispose the engine for *key* (screen unmounted)."""
        engine = self._engines.pop(key, None)
        if engine is not None:
            await engine.aclose()

    async def clear_cache(self, key: str) -> None:
        await self._cache.clear(key)
