"""Resource cache on top of durable key-value storage.

Each resource occupies two storage keys: ``<key>`` holds the JSON-serialized
payload and ``<key>:fetched_at`` the epoch seconds of the fetch.  Storage
failures never propagate: the store keeps a per-session memory mirror and
degrades to it.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pyfeedsync._constants import FETCHED_AT_SUFFIX
from pyfeedsync.exceptions import PersistenceError
from pyfeedsync.models.state import CachedResource
from pyfeedsync.storage import KeyValueStorage

_logger = logging.getLogger(__name__)


def _timestamp_key(key: str) -> str:
    return f"{key}{FETCHED_AT_SUFFIX}"


def _parse_timestamp(value: str) -> float:
    ts = float(value)
    if ts != ts or ts < 0:  # NaN or negative
        raise ValueError(f"invalid timestamp {value!r}")
    # Treat values above 1e11 as milliseconds.
    if ts > 1e11:
        ts /= 1000.0
    return ts


class CacheStore:
    """Get/put/clear cached resources."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._memory: dict[str, CachedResource] = {}

    async def get(self, key: str) -> CachedResource | None:
        """Return the cached entry for *key*, or ``None`` on a miss."""
        memory = self._memory.get(key)
        try:
            raw_payload = await self._storage.get(key)
            raw_ts = await self._storage.get(_timestamp_key(key))
        except PersistenceError as exc:
            _logger.warning("Cache read for %s failed; using session memory: %s", key, exc)
            return memory

        if raw_payload is None or raw_ts is None:
            return memory

        try:
            payload = json.loads(raw_payload)
            fetched_at = _parse_timestamp(raw_ts)
        except (json.JSONDecodeError, ValueError) as exc:
            _logger.warning("Ignoring corrupt cache entry for %s: %s", key, exc)
            return memory

        if memory is not None and memory.fetched_at >= fetched_at:
            return memory
        entry = CachedResource(key=key, payload=payload, fetched_at=fetched_at)
        self._memory[key] = entry
        return entry

    async def put(self, key: str, payload: Any, fetched_at: float) -> CachedResource:
        """Store *payload* for *key*.

        ``fetched_at`` never moves backwards for a key: an older timestamp
        (wall-clock adjustment) is clamped to the previous one.  A storage
        failure is logged and the entry is kept for the current session.
        """
        previous = self._memory.get(key)
        if previous is None:
            previous = await self.get(key)
        if previous is not None and fetched_at < previous.fetched_at:
            _logger.debug("Clamping fetched_at for %s (%.3f < %.3f)", key, fetched_at, previous.fetched_at)
            fetched_at = previous.fetched_at

        entry = CachedResource(key=key, payload=payload, fetched_at=fetched_at)
        self._memory[key] = entry

        try:
            serialized = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            _logger.warning("Payload for %s is not JSON-serializable; keeping it in memory only: %s", key, exc)
            return entry

        try:
            await self._storage.set(key, serialized)
            await self._storage.set(_timestamp_key(key), repr(fetched_at))
        except PersistenceError as exc:
            _logger.warning("Cache write for %s failed; caching for this session only: %s", key, exc)
        return entry

    async def clear(self, key: str) -> None:
        """Remove *key* from memory and durable storage."""
        self._memory.pop(key, None)
        try:
            await self._storage.delete(key)
            await self._storage.delete(_timestamp_key(key))
        except PersistenceError as exc:
            _logger.warning("Cache clear for %s failed: %s", key, exc)
