"""Builders for upstream-shaped payloads used in tests."""

import zlib
from typing import Any


def create_mock_repository(
    name: str = "mock-repo",
    forks_count: int = 0,
    open_issues_count: int = 0,
    stargazers_count: int = 0,
    updated_at: str = "2024-01-15T10:30:00Z",
    **extra: Any,
) -> dict[str, Any]:
    """
    Create a repository payload as the upstream API returns it.

    Example:
        ```python
        repo = create_mock_repository("zuul", stargazers_count=12000)
        ```
    """
    repo: dict[str, Any] = {
        "id": zlib.crc32(name.encode()),
        "name": name,
        "private": False,
        "visibility": "public",
        "forks_count": forks_count,
        "open_issues_count": open_issues_count,
        "stargazers_count": stargazers_count,
        "updated_at": updated_at,
    }
    repo.update(extra)
    return repo


def create_mock_organization(login: str = "Netflix", **extra: Any) -> dict[str, Any]:
    """Create an organization payload."""
    org: dict[str, Any] = {
        "login": login,
        "id": 913567,
        "url": f"https://api.github.com/orgs/{login}",
        "public_repos": 0,
    }
    org.update(extra)
    return org


def create_mock_member(login: str = "mock-user", **extra: Any) -> dict[str, Any]:
    """Create a public member payload."""
    member: dict[str, Any] = {
        "login": login,
        "id": zlib.crc32(login.encode()),
        "type": "User",
        "site_admin": False,
    }
    member.update(extra)
    return member
