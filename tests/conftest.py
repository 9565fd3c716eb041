from __future__ import annotations

import asyncio
import contextlib
import copy
from collections.abc import Callable
from typing import Any

import pytest
from pydantic import TypeAdapter

from pyfeedsync._cache import CacheStore
from pyfeedsync.config import RefreshPolicy
from pyfeedsync.engine import SyncEngine
from pyfeedsync.fetcher import Fetcher
from pyfeedsync.resources import Resource
from pyfeedsync.storage import MemoryStorage

T0 = 1_767_225_600.0  # 2026-01-01T00:00:00Z


async def settle(rounds: int = 25) -> None:
    """Let pending callbacks and tasks run to completion."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualClock:
    """Epoch clock plus a sleep that only returns when the test advances time."""

    def __init__(self, start: float = T0) -> None:
        self.now = start
        self._sleepers: list[tuple[float, asyncio.Future[None]]] = []

    def __call__(self) -> float:
        return self.now

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, fut in self._sleepers if not fut.done())

    @property
    def next_wakeup(self) -> float | None:
        due = [at for at, fut in self._sleepers if not fut.done()]
        return min(due) if due else None

    async def sleep(self, delay: float) -> None:
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (self.now + delay, fut)
        self._sleepers.append(entry)
        try:
            await fut
        finally:
            with contextlib.suppress(ValueError):
                self._sleepers.remove(entry)

    async def advance(self, seconds: int) -> None:
        """Move forward one second at a time, waking due sleepers after each step."""
        await settle()
        for _ in range(seconds):
            self.now += 1.0
            for due, fut in list(self._sleepers):
                if due <= self.now and not fut.done():
                    fut.set_result(None)
            await settle()


class ScriptedTransport:
    """Transport double returning scripted results; the last one repeats.

    A result that is an exception instance is raised instead of returned.
    ``hold()`` makes subsequent calls block until ``release()``.
    """

    def __init__(self, *results: Any) -> None:
        self.results: list[Any] = list(results)
        self.calls: list[str] = []
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()
        self._gate = None

    def push(self, *results: Any) -> None:
        self.results.extend(results)

    async def get_json(self, url: str, *, headers: Any = None, resource: str = "") -> Any:
        self.calls.append(resource or url)
        gate = self._gate
        if gate is not None:
            await gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return copy.deepcopy(result)


def make_resource(key: str = "Q") -> Resource[dict[str, Any]]:
    return Resource(key=key, url=f"https://example.test/{key}", adapter=TypeAdapter(dict[str, Any]))


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage) -> CacheStore:
    return CacheStore(storage)


@pytest.fixture
def engine_factory(clock: ManualClock, cache: CacheStore) -> Callable[..., SyncEngine[Any]]:
    def _make(
        transport: ScriptedTransport,
        policy: RefreshPolicy,
        *,
        key: str = "Q",
        cache_store: CacheStore | None = None,
    ) -> SyncEngine[Any]:
        fetcher = Fetcher(transport, [make_resource(key)])
        return SyncEngine(
            key,
            policy,
            fetcher=fetcher,
            cache=cache_store or cache,
            clock=clock,
            sleep=clock.sleep,
        )

    return _make


def market_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "spot_price": 22450.35,
        "key_indicators": {
            "pcr_oi": 1.12,
            "pcr_interpretation": "Mildly bullish",
            "net_oi_change": 154000,
            "net_oi_interpretation": "Fresh longs",
        },
        "market_outlook": {
            "direction_symbol": "UP",
            "confidence": "Moderate",
            "signals": ["Put writing at 22400"],
        },
        "zones": {
            "support": [
                {
                    "strike": 22400,
                    "call_oi": 85000,
                    "call_oi_change": 1200,
                    "call_oi_change_pct": 1.4,
                    "put_oi": 240000,
                    "put_oi_change": 120000,
                    "put_oi_change_pct": 85.0,
                    "interpretation": "Aggressive put writing",
                    "interpretation_code": "STRONG_BUY",
                }
            ],
            "resistance": [
                {
                    "strike": 22600,
                    "call_oi": 310000,
                    "call_oi_change": 45000,
                    "call_oi_change_pct": 17.0,
                    "put_oi": 40000,
                    "put_oi_change": -2000,
                    "put_oi_change_pct": -4.8,
                    "interpretation": "Call writing",
                    "interpretation_code": "HEAVY_RESISTANCE",
                }
            ],
        },
        "parallel_oi_analysis": {
            "support_zone": {"summary": "Support building at 22400"},
            "resistance_zone": {"summary": "Capped near 22600"},
            "cross_strike_analysis": {"bias_interpretation": "Range with upward bias"},
        },
    }
    payload.update(overrides)
    return payload


QUOTES_PAYLOAD: list[dict[str, Any]] = [
    {"q": "Well begun is half done.", "a": "Aristotle", "h": "<blockquote/>"},
    {"q": "Stay hungry.", "a": "", "h": "<blockquote/>"},
]
