"""ghcache testing utilities.

Provides a mock upstream and payload builders for testing applications
that embed the cache engine.
"""

from ghcache.testing.factories import (
    create_mock_member,
    create_mock_organization,
    create_mock_repository,
)
from ghcache.testing.mock import MockCall, MockResponse, MockUpstream

__all__ = [
    # Mock upstream
    "MockUpstream",
    "MockCall",
    "MockResponse",
    # Payload builders
    "create_mock_repository",
    "create_mock_organization",
    "create_mock_member",
]
