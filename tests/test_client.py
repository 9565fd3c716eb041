from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from conftest import QUOTES_PAYLOAD, T0, ManualClock, ScriptedTransport, make_resource, market_payload, settle

from pyfeedsync.client import FeedSyncClient
from pyfeedsync.config import FeedSyncConfig, RefreshPolicy
from pyfeedsync.exceptions import FeedSyncConfigError, FeedSyncError
from pyfeedsync.models import MarketData, Quote, SyncStatus
from pyfeedsync.storage import JsonFileStorage, MemoryStorage


class _RoutingTransport(ScriptedTransport):
    """Returns a fixed payload per resource key."""

    def __init__(self, payloads: dict[str, object]) -> None:
        super().__init__(None)
        self.payloads = payloads

    async def get_json(self, url: str, *, headers: object = None, resource: str = "") -> object:
        self.calls.append(resource)
        return self.payloads[resource]


def _client(transport: ScriptedTransport, clock: ManualClock, **kwargs: object) -> FeedSyncClient:
    return FeedSyncClient(
        FeedSyncConfig(cache_path=None),
        transport=transport,
        clock=clock,
        sleep=clock.sleep,
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_use_resource_requires_context() -> None:
    client = FeedSyncClient(FeedSyncConfig(cache_path=None), transport=ScriptedTransport({}))

    with pytest.raises(FeedSyncError):
        await client.use_resource("market")


@pytest.mark.asyncio
async def test_builtin_resources_decode_through_client(clock: ManualClock) -> None:
    transport = _RoutingTransport(
        {
            "market": market_payload(),
            "quotes": QUOTES_PAYLOAD,
            "daily_quote": [{"q": "Begin.", "a": "Plato"}],
        }
    )

    async with _client(transport, clock) as client:
        market = await client.use_resource("market")
        quotes = await client.use_resource("quotes")
        daily = await client.use_resource("daily_quote")

        assert isinstance(market.state.data, MarketData)
        assert market.state.next_refresh_in_seconds == 60
        assert [q.author for q in quotes.state.data] == ["Aristotle", "Unknown"]
        assert quotes.state.next_refresh_in_seconds is None
        assert isinstance(daily.state.data, Quote)

    assert market.is_disposed and quotes.is_disposed and daily.is_disposed
    assert clock.pending_sleepers == 0


@pytest.mark.asyncio
async def test_one_engine_per_key(clock: ManualClock) -> None:
    transport = _RoutingTransport({"quotes": QUOTES_PAYLOAD})

    async with _client(transport, clock) as client:
        first = await client.use_resource("quotes")
        second = await client.use_resource("quotes")

        assert first is second
        assert transport.calls == ["quotes"]
        with pytest.raises(FeedSyncConfigError):
            await client.use_resource("quotes", RefreshPolicy(ttl_seconds=5))


@pytest.mark.asyncio
async def test_custom_resource_needs_policy(clock: ManualClock) -> None:
    transport = ScriptedTransport({"n": 1})

    async with _client(transport, clock, resources=[make_resource("Q")]) as client:
        with pytest.raises(FeedSyncConfigError):
            await client.use_resource("Q")
        engine = await client.use_resource("Q", RefreshPolicy(ttl_seconds=3600))
        assert engine.state.status is SyncStatus.READY


@pytest.mark.asyncio
async def test_register_adds_resource(clock: ManualClock) -> None:
    transport = ScriptedTransport({"n": 1})

    async with _client(transport, clock) as client:
        client.register(make_resource("extra"))
        engine = await client.use_resource("extra", RefreshPolicy(ttl_seconds=60))
        assert engine.state.data == {"n": 1}
        with pytest.raises(FeedSyncConfigError):
            client.register(make_resource("extra"))


@pytest.mark.asyncio
async def test_release_and_remount_uses_cache(clock: ManualClock) -> None:
    transport = _RoutingTransport({"quotes": QUOTES_PAYLOAD})
    storage = MemoryStorage()

    async with _client(transport, clock, storage=storage) as client:
        await client.use_resource("quotes")
        await client.release("quotes")
        clock.now = T0 + 1000
        engine = await client.use_resource("quotes")

        assert transport.calls == ["quotes"]
        assert engine.state.data[0].text == "Well begun is half done."

        await client.clear_cache("quotes")
        assert await client.cache.get("quotes") is None


@pytest.mark.asyncio
async def test_file_cache_survives_client_restart(tmp_path: Path, clock: ManualClock) -> None:
    transport = _RoutingTransport({"quotes": QUOTES_PAYLOAD})
    path = tmp_path / "cache.json"

    async with _client(transport, clock, storage=JsonFileStorage(path)) as client:
        await client.use_resource("quotes")

    async with _client(transport, clock, storage=JsonFileStorage(path)) as client:
        engine = await client.use_resource("quotes")

    assert transport.calls == ["quotes"]
    assert engine.state.data[1].author == "Unknown"


def test_unknown_time_zone_rejected() -> None:
    with pytest.raises(FeedSyncConfigError):
        FeedSyncClient(FeedSyncConfig(cache_path=None, time_zone="Mars/Olympus"), transport=ScriptedTransport({}))


@pytest.mark.asyncio
async def test_unstarted_engine_reports_initial_loading(clock: ManualClock) -> None:
    transport = _RoutingTransport({"quotes": QUOTES_PAYLOAD})

    async with _client(transport, clock) as client:
        engine = await client.use_resource("quotes", start=False)
        assert transport.calls == []
        statuses: list[SyncStatus] = []
        engine.subscribe(lambda state: statuses.append(state.status))

        await engine.start()

    assert statuses == [SyncStatus.LOADING, SyncStatus.READY]


@pytest.mark.asyncio
async def test_exit_waits_for_background_refresh(clock: ManualClock) -> None:
    transport = ScriptedTransport({"n": 1}, {"n": 2})
    client = _client(transport, clock, resources=[make_resource("Q")])
    await client.__aenter__()
    engine = await client.use_resource("Q", RefreshPolicy(ttl_seconds=3600, auto_refresh_interval_seconds=5))

    transport.hold()
    await clock.advance(5)
    assert engine.is_refreshing

    closing = asyncio.create_task(client.__aexit__(None, None, None))
    await settle()
    assert not closing.done()
    assert engine.is_disposed

    transport.release()
    await closing

    assert not engine.is_refreshing
    assert transport.calls == ["Q", "Q"]
    assert engine.state.data == {"n": 1}
