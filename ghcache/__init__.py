"""ghcache - in-memory read cache for a GitHub organization."""

from ghcache.cache import CacheEngine
from ghcache.config import Settings
from ghcache.exceptions import (
    CacheServiceError,
    ConfigurationError,
    DecodeError,
    InvalidArgumentError,
    RateLimitedError,
    TransportError,
    UpstreamStatusError,
)
from ghcache.logging import configure_logging, get_logger
from ghcache.types import (
    ForksEntry,
    LastUpdatedEntry,
    OpenIssuesEntry,
    RankedList,
    RankEntry,
    RepoMetrics,
    Snapshot,
    StarsEntry,
    SyncReport,
    SyncState,
    ViewKind,
)
from ghcache.upstream import BackoffState, Upstream, UpstreamClient

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Engine
    "CacheEngine",
    "Settings",
    # Upstream
    "Upstream",
    "UpstreamClient",
    "BackoffState",
    # Types
    "ViewKind",
    "RankedList",
    "RankEntry",
    "ForksEntry",
    "OpenIssuesEntry",
    "StarsEntry",
    "LastUpdatedEntry",
    "RepoMetrics",
    "Snapshot",
    "SyncReport",
    "SyncState",
    # Exceptions
    "CacheServiceError",
    "ConfigurationError",
    "InvalidArgumentError",
    "TransportError",
    "UpstreamStatusError",
    "DecodeError",
    "RateLimitedError",
    # Logging
    "configure_logging",
    "get_logger",
]
