#!/usr/bin/env python3
"""Watch a resource from the terminal.

Mounts one resource through ``FeedSyncClient``, prints every state
snapshot (status, countdown, error) and, for the market bundle, the zone
labels and intensity alerts on each successful refresh.

Examples::

    python scripts/watch_resource.py market --seconds 180
    python scripts/watch_resource.py quotes --cache /tmp/feedsync.json
    FEEDSYNC_REQUEST_TIMEOUT=5 python scripts/watch_resource.py daily_quote
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfeedsync import (  # noqa: E402
    FeedSyncClient,
    FeedSyncConfig,
    IntensityTracker,
    MarketData,
    Quote,
    SyncState,
    classify_change,
    format_compact,
    storage_label,
)
from pyfeedsync.presentation import zone_intensity  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("resource", choices=["market", "quotes", "daily_quote"])
    parser.add_argument("--seconds", type=int, default=120, help="How long to watch (default: 120)")
    parser.add_argument("--cache", default=None, help="JSON cache file (default: FEEDSYNC_CACHE_PATH or memory)")
    parser.add_argument("--no-auto", action="store_true", help="Disable background auto-refresh")
    parser.add_argument("--countdown", action="store_true", help="Print every countdown tick")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def _print_market(market: MarketData, tracker: IntensityTracker) -> None:
    outlook = market.market_outlook
    print(f"  spot {market.spot_price:.2f}  {outlook.direction_symbol} · {outlook.confidence}")
    for zone, is_support in market.all_zones():
        kind = "S" if is_support else "R"
        indicator = classify_change(zone_intensity(zone, is_support))
        print(
            f"  [{kind}] {zone.strike:>8g}  {storage_label(zone, is_support).text:<24}"
            f" put {format_compact(zone.put_oi):>7}  call {format_compact(zone.call_oi):>7}"
            f"  {indicator.label} ({indicator.tag})"
        )
    for alert in tracker.observe(market):
        print(f"  ! {alert.title}: {alert.message}")


def _print_data(data: object, tracker: IntensityTracker) -> None:
    if isinstance(data, MarketData):
        _print_market(data, tracker)
    elif isinstance(data, Quote):
        print(f"  {data.share_text()}")
    elif isinstance(data, list):
        print(f"  {len(data)} quotes")
        for quote in data[:3]:
            if isinstance(quote, Quote):
                print(f"  - {quote.text} ({quote.author})")


async def _run(args: argparse.Namespace) -> int:
    overrides = {"cache_path": args.cache} if args.cache else {}
    config = FeedSyncConfig.from_env(**overrides)
    tracker = IntensityTracker()
    last_printed: dict[str, object] = {}

    def _on_state(state: SyncState) -> None:
        changed = state.status != last_printed.get("status") or state.error != last_printed.get("error")
        if changed or args.countdown:
            stamp = state.last_updated.astimezone().strftime("%H:%M:%S") if state.last_updated else "-"
            print(
                f"{state.key}: {state.status} updated={stamp}"
                f" next={state.next_refresh_in_seconds}s" + (f" error={state.error}" if state.error else "")
            )
        if state.data is not None and state.last_updated != last_printed.get("last_updated"):
            _print_data(state.data, tracker)
        last_printed.update(status=state.status, error=state.error, last_updated=state.last_updated)

    async with FeedSyncClient(config) as client:
        engine = await client.use_resource(args.resource)
        _on_state(engine.state)
        engine.subscribe(_on_state)
        if args.no_auto:
            engine.set_auto_refresh(False)
        await asyncio.sleep(args.seconds)
        return 0 if engine.state.data is not None else 1


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
