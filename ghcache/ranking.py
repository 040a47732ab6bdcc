"""
Build the ranked repository views.

Every view is ascending by its metric with ties broken by repository name,
so the same set of repositories always produces the same order.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from ghcache.exceptions import DecodeError
from ghcache.types.repos import RepoMetrics
from ghcache.types.views import (
    ForksEntry,
    LastUpdatedEntry,
    OpenIssuesEntry,
    RankedList,
    StarsEntry,
    ViewKind,
)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp and normalize it to UTC.

    Timestamps without an offset are taken to be UTC.

    Raises:
        DecodeError: If the value is not a valid ISO 8601 timestamp
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise DecodeError(f"Invalid timestamp: {value!r}") from None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _require_count(repo: Mapping[str, Any], field: str, name: str) -> int:
    value = repo.get(field)
    # bool is an int subclass; a JSON true is not a count
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Repository {name!r} has missing or malformed {field}: {value!r}")
    if value < 0:
        raise DecodeError(f"Repository {name!r} has negative {field}: {value}")
    return value


def extract_metrics(repo: Mapping[str, Any]) -> RepoMetrics:
    """
    Extract the ranking inputs from one repository payload.

    Args:
        repo: Repository object as returned by the upstream API

    Returns:
        RepoMetrics for the repository

    Raises:
        DecodeError: If any required field is missing or malformed
    """
    name = repo.get("name")
    if not isinstance(name, str) or not name:
        raise DecodeError(f"Repository has missing or malformed name: {name!r}")

    updated_at = repo.get("updated_at")
    if not isinstance(updated_at, str):
        raise DecodeError(
            f"Repository {name!r} has missing or malformed updated_at: {updated_at!r}"
        )

    return RepoMetrics(
        name=name,
        forks_count=_require_count(repo, "forks_count", name),
        open_issues_count=_require_count(repo, "open_issues_count", name),
        stargazers_count=_require_count(repo, "stargazers_count", name),
        updated_at=parse_timestamp(updated_at),
    )


def build_views(
    metrics: Iterable[RepoMetrics], organization: str
) -> dict[ViewKind, RankedList]:
    """
    Build the four ranked views.

    Args:
        metrics: Extracted metrics, one per repository
        organization: Owner prefix for entry names ("<organization>/<repo>")

    Returns:
        Mapping of every ViewKind to its RankedList
    """
    forks: list[ForksEntry] = []
    open_issues: list[OpenIssuesEntry] = []
    stars: list[StarsEntry] = []
    last_updated: list[LastUpdatedEntry] = []

    for repo in metrics:
        full_name = f"{organization}/{repo.name}"
        forks.append(ForksEntry(full_name, repo.forks_count))
        open_issues.append(OpenIssuesEntry(full_name, repo.open_issues_count))
        stars.append(StarsEntry(full_name, repo.stargazers_count))
        last_updated.append(LastUpdatedEntry(full_name, repo.updated_at))

    return {
        ViewKind.FORKS: RankedList(ViewKind.FORKS, tuple(sorted(forks, key=ForksEntry.sort_key))),
        ViewKind.OPEN_ISSUES: RankedList(
            ViewKind.OPEN_ISSUES, tuple(sorted(open_issues, key=OpenIssuesEntry.sort_key))
        ),
        ViewKind.STARS: RankedList(ViewKind.STARS, tuple(sorted(stars, key=StarsEntry.sort_key))),
        ViewKind.LAST_UPDATED: RankedList(
            ViewKind.LAST_UPDATED,
            tuple(sorted(last_updated, key=LastUpdatedEntry.sort_key)),
        ),
    }
