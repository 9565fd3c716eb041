"""Sync engine: fetch, validate, cache and keep one resource fresh.

State machine::

    idle -> loading -> ready <-> refreshing -> ready
               \\                    /
                +----> error <-----+        (only while no data exists)

Rules enforced here:

* at most one refresh in flight; concurrent triggers are coalesced (no-op)
* a failed refresh never clears data; with data present the engine stays
  ``ready`` and only sets ``error``
* the auto-refresh trigger and the visible countdown are both derived from
  one next-deadline, so the countdown cannot drift away from the refresh
* disposal cancels the ticker synchronously; results arriving later are
  discarded (request sequence number + disposed flag)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, tzinfo
from typing import Any, Generic, TypeVar

from pyfeedsync._cache import CacheStore
from pyfeedsync.config import RefreshPolicy
from pyfeedsync.exceptions import DecodeError, FetchError
from pyfeedsync.fetcher import Fetcher
from pyfeedsync.models.state import RefreshMode, SyncState, SyncStatus
from pyfeedsync.state.policy import should_refetch

_logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[SyncState], None]

# A tick landing this close before the deadline counts as on time.
_TICK_TOLERANCE_S = 0.05


def _to_datetime(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=UTC)


class SyncEngine(Generic[T]):
    """Owns the :class:`SyncState` of one resource key.

    Usage::

        engine = SyncEngine("quotes", QUOTES_POLICY, fetcher=fetcher, cache=cache)
        await engine.start()
        ...
        await engine.refresh_now()
        engine.set_auto_refresh(False)
        await engine.aclose()

    Parameters
    ----------
    key : str
        Resource key known to *fetcher*.
    policy : RefreshPolicy
        TTL and auto-refresh settings; fixed for the engine's lifetime.
    fetcher : Fetcher
        Performs one network retrieval per refresh.
    cache : CacheStore
        Durable cache consulted on start and updated on each success.
    clock : callable
        Epoch-seconds clock.  Used for cache timestamps and the refresh
        deadline.
    sleep : callable
        Awaitable sleep used by the one-second ticker.
    tz : tzinfo, optional
        Zone for calendar-day expiry; local zone when ``None``.
    """

    def __init__(
        self,
        key: str,
        policy: RefreshPolicy,
        *,
        fetcher: Fetcher,
        cache: CacheStore,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        tz: tzinfo | None = None,
    ) -> None:
        self._resource = fetcher.resource(key)
        self._key = key
        self._policy = policy
        self._fetcher = fetcher
        self._cache = cache
        self._clock = clock
        self._sleep = sleep
        self._tz = tz

        self._state = SyncState(key=key)
        self._listeners: list[Listener] = []
        self._started = False
        self._disposed = False
        self._in_flight = False
        self._request_seq = 0

        self._auto_refresh = policy.auto_refresh_enabled
        self._deadline: float | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._refresh_task: asyncio.Task[bool] | None = None

    # ------------------------------------------------------------------
    # Read-only surface
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        return self._key

    @property
    def policy(self) -> RefreshPolicy:
        return self._policy

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_refreshing(self) -> bool:
        return self._in_flight

    @property
    def auto_refresh_enabled(self) -> bool:
        return self._auto_refresh

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new state snapshot.

        Returns a callable that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SyncEngine[T]:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def start(self) -> SyncState:
        """Mount: serve fresh cached data, otherwise fetch.

        Stale cached data is exposed while the first fetch runs.
        """
        if self._disposed or self._started:
            return self._state
        self._started = True

        cached = await self._cache.get(self._key)
        if self._disposed:
            return self._state

        data: Any = None
        fetched_at: float | None = None
        if cached is not None:
            try:
                data = self._resource.load(cached.payload)
                fetched_at = cached.fetched_at
            except DecodeError as exc:
                _logger.warning("Ignoring cached %s: %s", self._key, exc)

        if data is not None and not should_refetch(self._policy, fetched_at, self._clock(), self._tz):
            assert fetched_at is not None  # noqa: S101
            _logger.debug("Serving cached %s (fetched_at=%.0f)", self._key, fetched_at)
            self._publish(data=data, status=SyncStatus.READY, error=None, last_updated=_to_datetime(fetched_at))
            self._arm_auto_refresh()
            return self._state

        if data is not None:
            assert fetched_at is not None  # noqa: S101
            self._publish(data=data, last_updated=_to_datetime(fetched_at))

        await self._perform_refresh(RefreshMode.INITIAL)
        return self._state

    def dispose(self) -> None:
        """Stop all timers and detach from consumers.

        An in-flight fetch is left to finish but its result is dropped.
        Safe to call more than once.
        """
        if self._disposed:
            return
        self._cancel_ticker()
        self._disposed = True
        self._deadline = None
        self._listeners.clear()
        _logger.debug("Disposed engine for %s", self._key)

    async def aclose(self) -> None:
        """:meth:`dispose` and wait for the ticker task to unwind."""
        ticker = self._ticker
        self.dispose()
        if ticker is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await ticker

    async def join(self) -> None:
        """Wait for a background refresh started by the ticker, if any."""
        task = self._refresh_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Consumer operations
    # ------------------------------------------------------------------

    async def refresh_now(self) -> SyncState:
        """Foreground refresh regardless of staleness.

        Existing data stays visible (``refreshing``).  A no-op while another
        refresh is in flight.  Before :meth:`start` this performs the first
        load.
        """
        if self._disposed:
            _logger.debug("refresh_now on disposed engine for %s ignored", self._key)
            return self._state
        if not self._started:
            self._started = True
            await self._perform_refresh(RefreshMode.INITIAL)
        else:
            await self._perform_refresh(RefreshMode.FOREGROUND)
        return self._state

    def set_auto_refresh(self, enabled: bool) -> None:
        """Enable or disable the background refresh and its countdown.

        Disabling takes effect immediately; an in-flight refresh still
        completes.  Has no effect when the policy has no interval.
        """
        if self._disposed:
            return
        if enabled and not self._policy.auto_refresh_enabled:
            _logger.warning("Auto-refresh requested for %s but its policy has no interval", self._key)
            return
        if enabled == self._auto_refresh:
            return
        self._auto_refresh = enabled
        if enabled:
            if self._state.status in (SyncStatus.READY, SyncStatus.ERROR):
                self._arm_auto_refresh()
        else:
            self._cancel_ticker()
            self._deadline = None
            self._publish(next_refresh_in_seconds=None)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def _is_current(self, seq: int) -> bool:
        return not self._disposed and seq == self._request_seq

    async def _perform_refresh(self, mode: RefreshMode) -> bool:
        """Single refresh path for all modes; returns True if data was applied."""
        if self._disposed:
            return False
        if self._in_flight:
            _logger.debug("Refresh of %s coalesced (%s)", self._key, mode)
            return False

        self._in_flight = True
        self._request_seq += 1
        seq = self._request_seq
        if mode is RefreshMode.INITIAL:
            self._publish(status=SyncStatus.LOADING)
        elif mode is RefreshMode.FOREGROUND:
            self._publish(status=SyncStatus.REFRESHING)

        try:
            try:
                value = await self._fetcher.fetch(self._key)
            except FetchError as exc:
                if self._is_current(seq):
                    self._apply_failure(mode, str(exc))
                return False

            if not self._is_current(seq):
                _logger.debug("Discarding late %s result for %s", mode, self._key)
                return False

            entry = await self._cache.put(self._key, self._resource.dump(value), self._clock())
            if not self._is_current(seq):
                _logger.debug("Discarding late %s result for %s", mode, self._key)
                return False

            self._apply_success(mode, value, entry.fetched_at)
            return True
        except Exception as exc:
            if self._is_current(seq):
                self._apply_failure(mode, f"Unexpected error: {exc}")
            raise
        finally:
            self._in_flight = False

    def _apply_success(self, mode: RefreshMode, value: Any, fetched_at: float) -> None:
        _logger.debug("Refreshed %s (%s)", self._key, mode)
        self._publish(data=value, status=SyncStatus.READY, error=None, last_updated=_to_datetime(fetched_at))
        if mode is not RefreshMode.SILENT:
            self._arm_auto_refresh()

    def _apply_failure(self, mode: RefreshMode, message: str) -> None:
        _logger.warning("Refresh of %s failed (%s): %s", self._key, mode, message)
        if self._state.data is not None:
            self._publish(status=SyncStatus.READY, error=message)
        else:
            self._publish(status=SyncStatus.ERROR, error=message)
        if mode is not RefreshMode.SILENT:
            self._arm_auto_refresh()

    # ------------------------------------------------------------------
    # Auto-refresh ticker
    # ------------------------------------------------------------------

    def _arm_auto_refresh(self) -> None:
        """(Re)start the countdown from a full interval."""
        interval = self._policy.auto_refresh_interval_seconds
        if self._disposed or not self._auto_refresh or interval is None:
            return
        self._deadline = self._clock() + interval
        self._publish(next_refresh_in_seconds=interval)
        # Ticks stay phase-aligned with the new deadline.
        if self._ticker is not None and self._ticker is asyncio.current_task():
            return
        self._cancel_ticker()
        self._ticker = asyncio.create_task(self._run_ticker(), name=f"pyfeedsync-ticker-{self._key}")

    def _cancel_ticker(self) -> None:
        ticker = self._ticker
        self._ticker = None
        if ticker is not None and not ticker.done():
            ticker.cancel()

    async def _run_ticker(self) -> None:
        while True:
            await self._sleep(1.0)
            self._tick()

    def _tick(self) -> None:
        interval = self._policy.auto_refresh_interval_seconds
        if self._disposed or not self._auto_refresh or interval is None or self._deadline is None:
            return

        now = self._clock()
        if self._deadline - now > interval:
            # Clock moved backwards; restart the countdown rather than stall.
            self._deadline = now + interval

        remaining = math.ceil(self._deadline - now - _TICK_TOLERANCE_S)
        if remaining <= 0:
            # Skip intervals missed while suspended instead of bursting.
            missed = math.floor((now - self._deadline) / interval) if now > self._deadline else 0
            self._deadline += interval * (missed + 1)
            remaining = max(1, math.ceil(self._deadline - now - _TICK_TOLERANCE_S))
            self._publish(next_refresh_in_seconds=min(remaining, interval))
            self._fire_silent_refresh()
            return

        self._publish(next_refresh_in_seconds=min(remaining, interval))

    def _fire_silent_refresh(self) -> None:
        if self._in_flight:
            _logger.debug("Auto-refresh of %s skipped; refresh already in flight", self._key)
            return
        task = asyncio.create_task(self._perform_refresh(RefreshMode.SILENT), name=f"pyfeedsync-refresh-{self._key}")
        task.add_done_callback(self._on_refresh_done)
        self._refresh_task = task

    def _on_refresh_done(self, task: asyncio.Task[bool]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Background refresh of %s crashed", self._key, exc_info=exc)

    # ------------------------------------------------------------------
    # State publication
    # ------------------------------------------------------------------

    def _publish(self, **changes: Any) -> None:
        if self._disposed:
            return
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                _logger.warning("State listener for %s failed", self._key, exc_info=True)
