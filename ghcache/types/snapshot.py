"""Cache snapshot and sync status models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from ghcache.types.views import RankedList, ViewKind


class SyncState(str, Enum):
    """Lifecycle of the cache sync loop."""

    STARTING = "starting"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Snapshot:
    """Everything one successful hydration produced.

    Snapshots are replaced wholesale and never mutated, so a reader holding
    one always sees organization, members, repos and views from the same
    hydration.
    """

    organization: dict[str, Any]
    members: tuple[dict[str, Any], ...]
    repos: tuple[dict[str, Any], ...]
    views: Mapping[ViewKind, RankedList]
    hydrated_at: datetime

    def __post_init__(self) -> None:
        # freeze the view table handed in by the builder
        object.__setattr__(self, "views", MappingProxyType(dict(self.views)))

    def view(self, kind: ViewKind) -> RankedList:
        return self.views[kind]


@dataclass(frozen=True)
class SyncReport:
    """Outcome of the most recent hydration attempt."""

    status_code: int
    error: str | None
    attempted_at: datetime | None
    last_success_at: datetime | None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300
