"""
Upstream client for the GitHub REST API.

Handles single and paginated fetches, maps failures to typed exceptions, and
tracks the upstream rate limit so that calls fail fast while the client is
in backoff instead of hammering the API.

API docs: https://docs.github.com/en/rest/using-the-rest-api/rate-limits-for-the-rest-api
"""

import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from ghcache.config import Settings
from ghcache.exceptions import (
    DecodeError,
    InvalidArgumentError,
    RateLimitedError,
    TransportError,
    UpstreamStatusError,
)
from ghcache.logging import get_logger, log_http_request, log_http_response

logger = get_logger("http")

RATELIMIT_REMAINING_HEADER = "x-ratelimit-remaining"
RATELIMIT_RESET_HEADER = "x-ratelimit-reset"

# Request headers that describe the inbound hop and must not be forwarded
_HOP_BY_HOP_HEADERS = frozenset(
    {"host", "content-length", "connection", "transfer-encoding", "keep-alive"}
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BackoffState:
    """Local view of the upstream rate limit."""

    active: bool = False
    reset_at: datetime | None = None


class Upstream(Protocol):
    """Capabilities the cache engine needs from an upstream client."""

    def fetch_org(self) -> dict[str, Any]:
        ...

    def fetch_members(self) -> list[dict[str, Any]]:
        ...

    def fetch_repos(self) -> list[dict[str, Any]]:
        ...

    def forward(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        ...


class UpstreamClient:
    """
    HTTP client for the organization, member and repository endpoints.

    Handles:
    - Optional bearer token authentication
    - Flattening of page-numbered pagination
    - Fail-fast backoff once the upstream reports an exhausted rate limit
    - Error responses and malformed payloads mapped to typed exceptions
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the upstream client.

        Args:
            settings: Client configuration (default: Settings())
            transport: Custom httpx transport, e.g. httpx.MockTransport in tests
            clock: Returns the current UTC time; drives backoff expiry
        """
        self.settings = (settings or Settings()).validate()
        self.base_url = self.settings.base_url.rstrip("/")
        self.organization = self.settings.organization
        self.page_size = self.settings.page_size
        self._clock = clock or _utcnow

        self._backoff = BackoffState()
        self._backoff_lock = threading.Lock()

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.settings.api_token:
            headers["Authorization"] = f"Bearer {self.settings.api_token}"

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.settings.request_timeout,
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "UpstreamClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def fetch_org(self) -> dict[str, Any]:
        """Fetch the organization record."""
        return self.fetch_single(f"/orgs/{self.organization}")

    def fetch_members(self) -> list[dict[str, Any]]:
        """Fetch every public member of the organization."""
        return self.fetch_paginated(f"/orgs/{self.organization}/public_members")

    def fetch_repos(self) -> list[dict[str, Any]]:
        """Fetch every public repository of the organization."""
        return self.fetch_paginated(
            f"/orgs/{self.organization}/repos", params={"type": "public"}
        )

    def fetch_single(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Fetch one JSON object.

        Args:
            path: API path (e.g., "/orgs/Netflix")
            params: Query parameters

        Returns:
            Decoded JSON object

        Raises:
            RateLimitedError: If the client is in backoff
            TransportError: If the upstream could not be reached
            UpstreamStatusError: If the upstream answered with a non-200 status
            DecodeError: If the body is not a JSON object
        """
        response = self._get(path, params)
        data = self._decode(response)

        if not isinstance(data, dict):
            raise DecodeError(
                f"Expected a JSON object from {path}, got {type(data).__name__}"
            )

        return data

    def fetch_paginated(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """
        Fetch every page of a list endpoint and flatten the results.

        Pages are requested with ``per_page`` and ``page`` starting at page 1
        until a page comes back empty. A failure on any page aborts the whole
        fetch; no partial list is returned.

        Args:
            path: API path (e.g., "/orgs/Netflix/repos")
            params: Extra query parameters sent with every page

        Returns:
            Items of all pages, in upstream order

        Raises:
            RateLimitedError: If the client is in backoff before any page
            TransportError: If the upstream could not be reached
            UpstreamStatusError: If a page answered with a non-200 status
            DecodeError: If a page is not a JSON array of objects
        """
        items: list[dict[str, Any]] = []
        page = 1

        while True:
            query = {**(params or {}), "per_page": self.page_size, "page": page}
            response = self._get(path, query)
            data = self._decode(response)

            if not isinstance(data, list):
                raise DecodeError(
                    f"Expected a JSON array from {path} page {page}, got {type(data).__name__}"
                )
            if not all(isinstance(item, dict) for item in data):
                raise DecodeError(f"Expected only JSON objects in {path} page {page}")

            if not data:
                break

            items.extend(data)
            page += 1

        return items

    def forward(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """
        Pass an arbitrary request through to the upstream.

        Inbound headers are kept except for hop-by-hop ones, and the
        configured token replaces any inbound Authorization header. Error
        statuses are returned, not raised, so the caller can relay them.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            params: Query parameters
            headers: Inbound request headers
            content: Raw request body

        Returns:
            The upstream response

        Raises:
            InvalidArgumentError: If ``path`` is not a path on the upstream
                (an absolute URL or a ``//host`` reference)
            RateLimitedError: If the client is in backoff
            TransportError: If the upstream could not be reached
        """
        self._require_upstream_path(path)

        forwarded = httpx.Headers(
            {
                name: value
                for name, value in (headers or {}).items()
                if name.lower() not in _HOP_BY_HOP_HEADERS
            }
        )
        if self.settings.api_token:
            forwarded["Authorization"] = f"Bearer {self.settings.api_token}"

        return self._send(method, path, params=params, headers=forwarded, content=content)

    @staticmethod
    def _require_upstream_path(path: str) -> None:
        # the configured token must only ever reach the base URL's host
        if not path.startswith("/") or path.startswith("//") or "\\" in path:
            raise InvalidArgumentError(f"Forwarded path must be relative to the upstream: {path!r}")
        try:
            url = httpx.URL(path)
        except httpx.InvalidURL:
            raise InvalidArgumentError(f"Invalid forwarded path: {path!r}") from None
        if url.is_absolute_url or url.host:
            raise InvalidArgumentError(f"Forwarded path must be relative to the upstream: {path!r}")

    # ------------------------------------------------------------------
    # Backoff
    # ------------------------------------------------------------------

    def backoff_state(self) -> BackoffState:
        """Return a copy of the current backoff state."""
        with self._backoff_lock:
            return replace(self._backoff)

    def _check_backoff(self) -> None:
        """
        Fail fast if the backoff period is still running.

        Ends the backoff once the reset time has been reached. There is no
        timer: expiry is only noticed here, when a call is attempted.

        Raises:
            RateLimitedError: If now is before the reset time
        """
        with self._backoff_lock:
            if not self._backoff.active or self._backoff.reset_at is None:
                return

            now = self._clock()
            reset_at = self._backoff.reset_at

            if now < reset_at:
                retry_after = max(1, math.ceil((reset_at - now).total_seconds()))
                raise RateLimitedError(reset_at, retry_after)

            self._backoff.active = False

        logger.info("Backoff period over, resuming upstream requests")

    def _update_backoff_state(self, headers: httpx.Headers) -> None:
        """
        Enter backoff if the upstream reports no remaining requests.

        Args:
            headers: Response headers
        """
        remaining_hdr = headers.get(RATELIMIT_REMAINING_HEADER)
        if remaining_hdr is None:
            return

        try:
            remaining = int(remaining_hdr)
        except ValueError:
            logger.debug("Error parsing %s: %r", RATELIMIT_REMAINING_HEADER, remaining_hdr)
            return

        if remaining != 0:
            return

        reset_hdr = headers.get(RATELIMIT_RESET_HEADER)
        try:
            reset_epoch = int(reset_hdr)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.debug("Error parsing %s: %r", RATELIMIT_RESET_HEADER, reset_hdr)
            return

        reset_at = datetime.fromtimestamp(reset_epoch, tz=timezone.utc)

        with self._backoff_lock:
            current = self._backoff
            # never pull an active backoff's reset time earlier
            if current.active and current.reset_at is not None and current.reset_at >= reset_at:
                return
            current.active = True
            current.reset_at = reset_at

        logger.warning("Rate limited by upstream API, entering backoff until %s", reset_at.isoformat())

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def _get(self, path: str, params: Mapping[str, Any] | None) -> httpx.Response:
        response = self._send("GET", path, params=params)
        if response.status_code != 200:
            raise UpstreamStatusError(response.status_code, str(response.request.url))
        return response

    def _send(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        headers: httpx.Headers | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """
        Send one request after checking the backoff state.

        The rate-limit headers of every response are inspected, whatever
        its status.
        """
        self._check_backoff()

        request = self._client.build_request(
            method, path, params=params, headers=headers, content=content
        )
        log_http_request(method, str(request.url), dict(request.headers))

        started = time.monotonic()
        try:
            response = self._client.send(request)
        except httpx.RequestError as e:
            raise TransportError(f"{method} {request.url} failed: {e}") from e

        log_http_response(
            response.status_code,
            str(request.url),
            rate_limit_remaining=response.headers.get(RATELIMIT_REMAINING_HEADER),
            elapsed_ms=(time.monotonic() - started) * 1000,
        )

        self._update_backoff_state(response.headers)
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {response.request.url}: {e}") from e
