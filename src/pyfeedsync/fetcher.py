"""One-shot retrieval of named resources."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pyfeedsync._transport import Transport
from pyfeedsync.exceptions import FeedSyncConfigError, FetchError
from pyfeedsync.resources import Resource

_logger = logging.getLogger(__name__)


class Fetcher:
    """Fetch and decode resources by key.

    A failure of any kind surfaces as a :class:`FetchError` subclass; the
    fetcher never retries.
    """

    def __init__(self, transport: Transport, resources: Iterable[Resource[Any]] = ()) -> None:
        self._transport = transport
        self._resources: dict[str, Resource[Any]] = {}
        for resource in resources:
            self.register(resource)

    def register(self, resource: Resource[Any]) -> None:
        """Add or replace a resource definition."""
        self._resources[resource.key] = resource

    def resource(self, key: str) -> Resource[Any]:
        try:
            return self._resources[key]
        except KeyError:
            raise FeedSyncConfigError(f"Unknown resource {key!r}") from None

    def __contains__(self, key: object) -> bool:
        return key in self._resources

    async def fetch(self, key: str) -> Any:
        """Retrieve resource *key* and return its validated value."""
        resource = self.resource(key)
        try:
            payload = await self._transport.get_json(resource.url, headers=resource.headers, resource=key)
            value = resource.decode(payload)
        except FetchError as exc:
            if not exc.resource:
                exc.resource = key
            _logger.debug("Fetch of %s failed: %s", key, exc)
            raise
        _logger.debug("Fetched %s", key)
        return value
