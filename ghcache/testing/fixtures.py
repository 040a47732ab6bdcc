"""
Pytest fixtures for ghcache testing.

Provides common fixtures for testing code that embeds a CacheEngine.
"""

from typing import Any, Generator

import pytest

from ghcache.config import Settings
from ghcache.testing.factories import (
    create_mock_member,
    create_mock_organization,
    create_mock_repository,
)
from ghcache.testing.mock import MockUpstream

__all__ = [
    "create_mock_member",
    "create_mock_organization",
    "create_mock_repository",
    "fast_settings",
    "mock_upstream",
    "mock_upstream_with_data",
    "sample_members",
    "sample_organization",
    "sample_repositories",
]


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def fast_settings() -> Settings:
    """
    Provide settings with no startup pause and a long TTL.

    The periodic loop never ticks during a test unless the test shortens
    ``cache_ttl`` itself.
    """
    return Settings(
        organization="Netflix",
        cache_ttl=3600.0,
        startup_attempts=5,
        startup_retry_delay=0.0,
    )


# ============================================================================
# Mock Upstream Fixtures
# ============================================================================


@pytest.fixture
def mock_upstream() -> Generator[MockUpstream, None, None]:
    """
    Provide a MockUpstream for testing.

    Example:
        ```python
        def test_my_feature(mock_upstream):
            mock_upstream.configure_fetch_repos(response=[create_mock_repository("zuul")])
            engine = CacheEngine(mock_upstream)
            engine.hydrate_now()
            assert mock_upstream.was_called("fetch_repos")
        ```
    """
    upstream = MockUpstream(organization="Netflix")
    yield upstream
    upstream.reset()


@pytest.fixture
def mock_upstream_with_data(
    mock_upstream: MockUpstream,
    sample_organization: dict[str, Any],
    sample_members: list[dict[str, Any]],
    sample_repositories: list[dict[str, Any]],
) -> MockUpstream:
    """Provide a MockUpstream serving the sample organization, members and repos."""
    mock_upstream.configure_fetch_org(response=sample_organization)
    mock_upstream.configure_fetch_members(response=sample_members)
    mock_upstream.configure_fetch_repos(response=sample_repositories)
    return mock_upstream


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_organization() -> dict[str, Any]:
    """Provide a sample organization payload."""
    return create_mock_organization("Netflix", public_repos=8)


@pytest.fixture
def sample_members() -> list[dict[str, Any]]:
    """Provide sample public members."""
    return [create_mock_member(login) for login in ("alice", "bob", "carol")]


@pytest.fixture
def sample_repositories() -> list[dict[str, Any]]:
    """Provide eight sample repositories with overlapping metrics."""
    return [
        create_mock_repository("zuul", 2300, 30, 13000, "2024-03-01T12:00:00Z"),
        create_mock_repository("hystrix", 4700, 300, 24000, "2023-11-20T08:15:00Z"),
        create_mock_repository("eureka", 3700, 40, 12000, "2024-02-10T09:00:00Z"),
        create_mock_repository("conductor", 2300, 5, 12000, "2024-01-05T00:00:00Z"),
        create_mock_repository("atlas", 300, 40, 3400, "2024-03-01T12:00:00Z"),
        create_mock_repository("metaflow", 750, 200, 7800, "2024-03-02T16:45:00Z"),
        create_mock_repository("spinnaker", 80, 0, 450, "2022-06-30T23:59:59Z"),
        create_mock_repository("vmaf", 750, 5, 4300, "2023-08-14T11:30:00Z"),
    ]
