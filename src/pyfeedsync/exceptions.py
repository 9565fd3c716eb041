"""Custom exception hierarchy for pyfeedsync."""

from __future__ import annotations


class FeedSyncError(Exception):
    """Base exception for all pyfeedsync errors."""


class FeedSyncConfigError(FeedSyncError):
    """Invalid or missing configuration (bad policy, unknown resource)."""


class FetchError(FeedSyncError):
    """A single retrieval of a remote resource failed.

    The Fetcher never retries; the sync engine decides when to try again.
    """

    def __init__(
        self,
        message: str,
        *,
        resource: str = "",
        url: str = "",
    ) -> None:
        self.resource = resource
        self.url = url
        super().__init__(message)


class NetworkError(FetchError):
    """Endpoint unreachable, connection dropped, or request timed out."""


class HttpStatusError(FetchError):
    """Endpoint answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        resource: str = "",
        url: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, resource=resource, url=url)


class DecodeError(FetchError):
    """Response body is not JSON or does not have the expected shape."""


class PersistenceError(FeedSyncError):
    """Durable storage read or write failed.

    Never fatal: the cache store logs it and falls back to session memory.
    """

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
