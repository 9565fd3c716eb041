"""pyfeedsync - Async fetch, cache and auto-refresh for remote JSON resources."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfeedsync")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfeedsync.alerts import IntensityAlert, IntensityTracker
from pyfeedsync.client import FeedSyncClient
from pyfeedsync.config import (
    DAILY_QUOTE_POLICY,
    MARKET_POLICY,
    QUOTES_POLICY,
    FeedSyncConfig,
    RefreshPolicy,
)
from pyfeedsync.engine import SyncEngine
from pyfeedsync.exceptions import (
    DecodeError,
    FeedSyncConfigError,
    FeedSyncError,
    FetchError,
    HttpStatusError,
    NetworkError,
    PersistenceError,
)
from pyfeedsync.models import (
    CachedResource,
    MarketData,
    Quote,
    RefreshMode,
    SyncState,
    SyncStatus,
    Zone,
)
from pyfeedsync.presentation import (
    ChangeStrength,
    DerivedIndicator,
    StorageLabel,
    classify_change,
    format_compact,
    storage_label,
)
from pyfeedsync.resources import Resource
from pyfeedsync.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "__version__",
    "CachedResource",
    "ChangeStrength",
    "DAILY_QUOTE_POLICY",
    "DecodeError",
    "DerivedIndicator",
    "FeedSyncClient",
    "FeedSyncConfig",
    "FeedSyncConfigError",
    "FeedSyncError",
    "FetchError",
    "HttpStatusError",
    "IntensityAlert",
    "IntensityTracker",
    "JsonFileStorage",
    "KeyValueStorage",
    "MARKET_POLICY",
    "MarketData",
    "MemoryStorage",
    "NetworkError",
    "PersistenceError",
    "QUOTES_POLICY",
    "Quote",
    "RefreshMode",
    "RefreshPolicy",
    "Resource",
    "StorageLabel",
    "SyncEngine",
    "SyncState",
    "SyncStatus",
    "Zone",
    "classify_change",
    "format_compact",
    "storage_label",
]
