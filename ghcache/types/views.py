"""Ranked view data models."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from ghcache.exceptions import InvalidArgumentError


class ViewKind(str, Enum):
    """The four fixed repository rankings."""

    FORKS = "forks"
    OPEN_ISSUES = "open_issues"
    STARS = "stars"
    LAST_UPDATED = "last_updated"

    @classmethod
    def parse(cls, value: "ViewKind | str") -> "ViewKind":
        """Return the ViewKind for a member or its URL slug."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise InvalidArgumentError(
                f"Unknown view {value!r}. Must be one of: {valid}"
            ) from None


@dataclass(frozen=True)
class CountEntry:
    """A repository ranked by an integer count."""

    name: str
    count: int

    def sort_key(self) -> tuple[int, str]:
        return (self.count, self.name)

    def as_pair(self) -> list[Any]:
        return [self.name, self.count]


@dataclass(frozen=True)
class ForksEntry(CountEntry):
    """Entry of the forks view."""


@dataclass(frozen=True)
class OpenIssuesEntry(CountEntry):
    """Entry of the open issues view."""


@dataclass(frozen=True)
class StarsEntry(CountEntry):
    """Entry of the stars view."""


@dataclass(frozen=True)
class LastUpdatedEntry:
    """A repository ranked by its last update time (UTC)."""

    name: str
    updated_at: datetime

    def sort_key(self) -> tuple[datetime, str]:
        return (self.updated_at, self.name)

    def as_pair(self) -> list[Any]:
        stamp = self.updated_at.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        return [self.name, stamp]


RankEntry = Union[ForksEntry, OpenIssuesEntry, StarsEntry, LastUpdatedEntry]


def require_positive_int(n: Any) -> int:
    """Return ``n`` as a positive integer, else raise InvalidArgumentError.

    Strings of ASCII digits are accepted so path parameters can be passed
    through; signs, whitespace, underscores and non-ASCII digits are not.
    """
    if isinstance(n, str):
        if not (n.isascii() and n.isdigit()):
            raise InvalidArgumentError("n must be an integer")
        n = int(n)
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidArgumentError("n must be an integer")
    if n <= 0:
        raise InvalidArgumentError("n must be a positive integer")
    return n


@dataclass(frozen=True)
class RankedList:
    """Entries of one view, ascending by metric then name."""

    kind: ViewKind
    entries: tuple[RankEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RankEntry]:
        return iter(self.entries)

    def bottom(self, n: int) -> tuple[RankEntry, ...]:
        """Return the ``n`` lowest-ranked entries, clamped to the view length."""
        return self.entries[: require_positive_int(n)]

    def to_pairs(self) -> list[list[Any]]:
        return [entry.as_pair() for entry in self.entries]
