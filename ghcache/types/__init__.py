"""ghcache type definitions.

This module exports all data model types used by the cache.
"""

from ghcache.types.repos import RepoMetrics
from ghcache.types.snapshot import Snapshot, SyncReport, SyncState
from ghcache.types.views import (
    CountEntry,
    ForksEntry,
    LastUpdatedEntry,
    OpenIssuesEntry,
    RankedList,
    RankEntry,
    StarsEntry,
    ViewKind,
)

__all__ = [
    # Repository types
    "RepoMetrics",
    # View types
    "ViewKind",
    "CountEntry",
    "ForksEntry",
    "OpenIssuesEntry",
    "StarsEntry",
    "LastUpdatedEntry",
    "RankEntry",
    "RankedList",
    # Snapshot types
    "Snapshot",
    "SyncReport",
    "SyncState",
]
