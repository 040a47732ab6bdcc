"""ghcache exception classes."""

from datetime import datetime


class CacheServiceError(Exception):
    """Base exception for all ghcache errors.

    Every error carries the HTTP-equivalent status code observed (or
    synthesized) for the failure, so callers can report it as the last
    sync status.
    """

    def __init__(self, code: str, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{code}] {message} (status {status_code})")


class ConfigurationError(CacheServiceError):
    """Raised when settings are invalid or cannot be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message, 500)


class InvalidArgumentError(CacheServiceError, ValueError):
    """Raised when a caller passes a bad argument to a read operation."""

    def __init__(self, message: str) -> None:
        super().__init__("INVALID_ARGUMENT", message, 400)


class TransportError(CacheServiceError):
    """Raised when the upstream could not be reached."""

    def __init__(self, message: str) -> None:
        super().__init__("TRANSPORT_ERROR", message, 502)


class UpstreamStatusError(CacheServiceError):
    """Raised when the upstream answers with a non-200 status."""

    def __init__(self, status_code: int, url: str) -> None:
        self.url = url
        super().__init__(
            "UPSTREAM_STATUS", f"Request to {url} failed with HTTP {status_code}", status_code
        )


class DecodeError(CacheServiceError):
    """Raised when a payload is malformed or misses expected fields."""

    def __init__(self, message: str) -> None:
        super().__init__("DECODE_ERROR", message, 500)


class RateLimitedError(CacheServiceError):
    """Raised without a network call while the client is in backoff."""

    def __init__(self, reset_at: datetime, retry_after: int) -> None:
        self.reset_at = reset_at
        self.retry_after = retry_after
        super().__init__(
            "RATE_LIMITED",
            f"Rate limited, in backoff until {reset_at.isoformat()}",
            429,
        )
