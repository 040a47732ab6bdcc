"""
Pytest plugin for ghcache testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
discovered by pytest. To use these fixtures in your tests, add this to your
conftest.py:

    pytest_plugins = ["ghcache.testing.conftest"]
"""

from ghcache.testing.fixtures import (
    fast_settings,
    mock_upstream,
    mock_upstream_with_data,
    sample_members,
    sample_organization,
    sample_repositories,
)

__all__ = [
    "fast_settings",
    "mock_upstream",
    "mock_upstream_with_data",
    "sample_members",
    "sample_organization",
    "sample_repositories",
]
