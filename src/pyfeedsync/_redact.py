"""Helpers for safe debug logging.

Resource endpoints sometimes carry ids or API keys in the query string
(e.g. shared-drive download links). URLs are passed through
:func:`redact_url` before being logged.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_VISIBLE_QUERY_KEYS: frozenset[str] = frozenset({"export", "format", "lang"})


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


def redact_url(url: str) -> str:
    """Return *url* with query values masked, except harmless well-known keys."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    if not parts.query:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    masked = [(key, value if key.lower() in _VISIBLE_QUERY_KEYS else _mask(value)) for key, value in pairs]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(masked, safe="*"), parts.fragment))
