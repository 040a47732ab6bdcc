"""Repository-related data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RepoMetrics:
    """Ranking inputs extracted from one upstream repository payload."""

    name: str
    forks_count: int
    open_issues_count: int
    stargazers_count: int
    updated_at: datetime
