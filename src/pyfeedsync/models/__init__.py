"""Data models for decoded resources and sync state."""

from pyfeedsync.models._base import FeedBaseModel
from pyfeedsync.models.market import (
    CrossStrikeAnalysis,
    KeyIndicators,
    MarketData,
    MarketOutlook,
    ParallelOiAnalysis,
    Zone,
    Zones,
    ZoneSummary,
)
from pyfeedsync.models.quote import Quote
from pyfeedsync.models.state import CachedResource, RefreshMode, SyncState, SyncStatus

__all__ = [
    "CachedResource",
    "CrossStrikeAnalysis",
    "FeedBaseModel",
    "KeyIndicators",
    "MarketData",
    "MarketOutlook",
    "ParallelOiAnalysis",
    "Quote",
    "RefreshMode",
    "SyncState",
    "SyncStatus",
    "Zone",
    "ZoneSummary",
    "Zones",
]
