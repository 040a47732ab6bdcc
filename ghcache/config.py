"""
ghcache configuration.

Settings are a plain dataclass so they can be built explicitly in code or
loaded from the environment with :meth:`Settings.from_env`.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from ghcache.exceptions import ConfigurationError
from ghcache.logging import get_logger

logger = get_logger()

DEFAULT_BASE_URL = "https://api.github.com"
DEFAULT_ORGANIZATION = "Netflix"
MAX_PAGE_SIZE = 100


@dataclass
class Settings:
    """Configuration for the upstream client and the cache engine."""

    api_token: str | None = None
    organization: str = DEFAULT_ORGANIZATION
    base_url: str = DEFAULT_BASE_URL
    cache_ttl: float = 600.0  # Seconds between scheduled hydrations
    request_timeout: float = 10.0  # Per-request upstream timeout in seconds
    startup_attempts: int = 5
    startup_retry_delay: float = 5.0
    page_size: int = MAX_PAGE_SIZE

    def validate(self) -> "Settings":
        """
        Check that every field is usable.

        Returns:
            The same settings, for chaining

        Raises:
            ConfigurationError: If a field is out of range
        """
        if not self.organization:
            raise ConfigurationError("organization must not be empty")
        if not self.base_url:
            raise ConfigurationError("base_url must not be empty")
        if self.cache_ttl <= 0:
            raise ConfigurationError(f"cache_ttl must be positive, got {self.cache_ttl}")
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.startup_attempts < 1:
            raise ConfigurationError(
                f"startup_attempts must be at least 1, got {self.startup_attempts}"
            )
        if self.startup_retry_delay < 0:
            raise ConfigurationError(
                f"startup_retry_delay must not be negative, got {self.startup_retry_delay}"
            )
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigurationError(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}"
            )
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Create settings from environment variables.

        Environment variables:
            GITHUB_API_TOKEN: Bearer token for the upstream API (optional)
            GHCACHE_ORGANIZATION: Organization to cache (default: Netflix)
            GHCACHE_BASE_URL: Upstream API base URL (default: https://api.github.com)
            GHCACHE_CACHE_TTL: Seconds between hydrations (default: 600)
            GHCACHE_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 10)
            GHCACHE_STARTUP_ATTEMPTS: Startup hydration attempts (default: 5)
            GHCACHE_STARTUP_RETRY_DELAY: Seconds between startup attempts (default: 5)

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated Settings instance

        Raises:
            ConfigurationError: If a variable cannot be parsed or is out of range
        """
        env = os.environ if environ is None else environ

        api_token = env.get("GITHUB_API_TOKEN") or None
        if api_token is None:
            logger.warning(
                "No GITHUB_API_TOKEN environment variable found, may be subject to rate limits"
            )

        settings = cls(
            api_token=api_token,
            organization=env.get("GHCACHE_ORGANIZATION", DEFAULT_ORGANIZATION),
            base_url=env.get("GHCACHE_BASE_URL", DEFAULT_BASE_URL),
            cache_ttl=_parse_number(env, "GHCACHE_CACHE_TTL", float, 600.0),
            request_timeout=_parse_number(env, "GHCACHE_REQUEST_TIMEOUT", float, 10.0),
            startup_attempts=_parse_number(env, "GHCACHE_STARTUP_ATTEMPTS", int, 5),
            startup_retry_delay=_parse_number(env, "GHCACHE_STARTUP_RETRY_DELAY", float, 5.0),
        )
        return settings.validate()


def _parse_number(env: Mapping[str, str], name: str, kind: type, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {raw!r}") from None
