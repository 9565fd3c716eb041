"""HTTP transport for fetching JSON resources."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyfeedsync._constants import DEFAULT_REQUEST_TIMEOUT, USER_AGENT
from pyfeedsync._redact import redact_url
from pyfeedsync.exceptions import DecodeError, HttpStatusError, NetworkError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the fetcher.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        resource: str = "",
    ) -> Any:
        ...


class HttpTransport:
    """GET-and-decode JSON over aiohttp with a bounded total timeout."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._user_agent = user_agent

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        resource: str = "",
    ) -> Any:
        """Fetch *url* and return the decoded JSON body.

        Raises
        ------
        NetworkError
            Connection failure or timeout.
        HttpStatusError
            Any non-2xx status.
        DecodeError
            Body is not valid UTF-8 JSON.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "cache-control": "no-store",
            "user-agent": self._user_agent,
        }
        if headers:
            request_headers.update(headers)

        safe_url = redact_url(url)
        _logger.debug("GET %s", safe_url)

        try:
            async with self._http.get(url, headers=request_headers, timeout=self._timeout) as resp:
                body = await resp.read()
                text = body.decode("utf-8", errors="replace")
                if not 200 <= resp.status < 300:
                    raise HttpStatusError(
                        f"HTTP {resp.status} from {resource or safe_url}: {text[:200]}",
                        status_code=resp.status,
                        resource=resource,
                        url=safe_url,
                    )
        except HttpStatusError:
            raise
        except asyncio.TimeoutError as exc:
            raise NetworkError(
                f"Request to {resource or safe_url} timed out after {self._timeout.total}s",
                resource=resource,
                url=safe_url,
            ) from exc
        except aiohttp.ClientError as exc:
            raise NetworkError(
                f"Request to {resource or safe_url} failed: {exc}",
                resource=resource,
                url=safe_url,
            ) from exc

        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(
                f"Invalid JSON from {resource or safe_url}: {text[:200]}",
                resource=resource,
                url=safe_url,
            ) from exc
