"""Quote feed endpoints (zenquotes ``/api/quotes`` and ``/api/today``).

Both endpoints return a JSON array of ``{"q": text, "a": author, "h": html}``
objects.  ``/api/today`` returns a single-element array.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

from pyfeedsync._constants import DAILY_QUOTE_KEY, QUOTES_KEY
from pyfeedsync.models.quote import Quote
from pyfeedsync.resources import Resource

_QUOTE_LIST_ADAPTER: TypeAdapter[list[Quote]] = TypeAdapter(list[Quote])
_QUOTE_ADAPTER: TypeAdapter[Quote] = TypeAdapter(Quote)

_HEADERS = {"accept": "application/json"}


def _with_id(item: Any, quote_id: str) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise TypeError(f"quote entry must be an object, got {type(item).__name__}")
    return {**item, "id": quote_id}


def prepare_quote_list(payload: Any) -> list[dict[str, Any]]:
    """Assign positional ids to a zenquotes array."""
    if not isinstance(payload, list):
        raise ValueError("Invalid API: expected a list of quotes")
    return [_with_id(item, f"{QUOTES_KEY}-{index}") for index, item in enumerate(payload)]


def prepare_daily_quote(payload: Any) -> dict[str, Any]:
    """Unwrap the single quote of ``/api/today``."""
    if not isinstance(payload, list) or not payload:
        raise ValueError("Invalid API: expected a one-element list")
    return _with_id(payload[0], f"{DAILY_QUOTE_KEY}-0")


def build_quotes_resource(url: str) -> Resource[list[Quote]]:
    return Resource(
        key=QUOTES_KEY,
        url=url,
        adapter=_QUOTE_LIST_ADAPTER,
        prepare=prepare_quote_list,
        headers=_HEADERS,
    )


def build_daily_quote_resource(url: str) -> Resource[Quote]:
    return Resource(
        key=DAILY_QUOTE_KEY,
        url=url,
        adapter=_QUOTE_ADAPTER,
        prepare=prepare_daily_quote,
        headers=_HEADERS,
    )
