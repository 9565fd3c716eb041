"""Deterministic freshness policy.

All functions take ``now`` explicitly so they stay pure and testable.
"""

from __future__ import annotations

from datetime import datetime, tzinfo

from pyfeedsync.config import RefreshPolicy


def elapsed_seconds(fetched_at: float, now: float) -> float:
    """Seconds since *fetched_at*, clamped at zero.

    A timestamp in the future (clock skew) counts as "just fetched", never
    as a negative age that would keep data fresh indefinitely.
    """
    return max(0.0, now - fetched_at)


def is_stale(fetched_at: float | None, now: float, ttl_seconds: float) -> bool:
    if fetched_at is None:
        return True
    return elapsed_seconds(fetched_at, now) >= ttl_seconds


def crossed_day_boundary(fetched_at: float, now: float, tz: tzinfo | None = None) -> bool:
    """Whether *now* falls on a later calendar day than *fetched_at* in *tz*.

    ``tz=None`` uses the local system zone.
    """
    fetched_day = datetime.fromtimestamp(fetched_at, tz=tz).date()
    current_day = datetime.fromtimestamp(now, tz=tz).date()
    return current_day > fetched_day


def should_refetch(
    policy: RefreshPolicy,
    fetched_at: float | None,
    now: float,
    tz: tzinfo | None = None,
) -> bool:
    """Combine TTL expiry with optional calendar-day expiry."""
    if is_stale(fetched_at, now, policy.ttl_seconds):
        return True
    assert fetched_at is not None  # noqa: S101
    return policy.expire_at_midnight and crossed_day_boundary(fetched_at, now, tz)
