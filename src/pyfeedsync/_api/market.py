"""Market indicator bundle endpoint.

The bundle is a single JSON document regenerated upstream on a schedule
and served as a shared-drive download.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

from pyfeedsync._constants import MARKET_KEY
from pyfeedsync.models.market import MarketData
from pyfeedsync.resources import Resource

_MARKET_ADAPTER: TypeAdapter[MarketData] = TypeAdapter(MarketData)


def _prepare_market(payload: Any) -> Any:
    if not isinstance(payload, dict) or not payload.get("zones"):
        raise ValueError("Invalid JSON format: missing zones")
    return payload


def build_market_resource(url: str) -> Resource[MarketData]:
    return Resource(key=MARKET_KEY, url=url, adapter=_MARKET_ADAPTER, prepare=_prepare_market)
