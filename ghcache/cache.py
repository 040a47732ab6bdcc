"""
In-memory read cache for one organization.

The engine keeps the freshest snapshot it could build from the upstream,
refreshes it on a fixed interval from a background thread, and serves reads
from whatever snapshot is installed without touching the network.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from ghcache.config import Settings
from ghcache.exceptions import CacheServiceError
from ghcache.logging import get_logger
from ghcache.ranking import build_views, extract_metrics
from ghcache.types.snapshot import Snapshot, SyncReport, SyncState
from ghcache.types.views import RankedList, RankEntry, ViewKind, require_positive_int
from ghcache.upstream import Upstream

logger = get_logger("cache")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEngine:
    """
    Cache of an organization, its members, its repos and the ranked views.

    Example:
        ```python
        from ghcache import CacheEngine, Settings, UpstreamClient, ViewKind

        settings = Settings.from_env()
        with UpstreamClient(settings) as upstream:
            engine = CacheEngine(upstream, settings)
            engine.start_sync_loop()
            try:
                engine.ensure_hydrated()
                engine.get_bottom_n(ViewKind.STARS, 5)
            finally:
                engine.stop()
        ```

    Snapshots are immutable and installed with a single reference swap
    under the write lock, so a reader that loads the current snapshot once
    sees every field from the same hydration and never waits on a writer.
    """

    def __init__(
        self,
        upstream: Upstream,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the cache engine.

        No network call is made here; call :meth:`start_sync_loop` to
        hydrate and begin periodic refreshes.

        Args:
            upstream: Client used to fetch the organization, members and repos
            settings: Engine configuration (default: Settings())
            clock: Returns the current UTC time; stamps snapshots and reports
        """
        self.upstream = upstream
        self.settings = (settings or Settings()).validate()
        self.organization = self.settings.organization
        self._clock = clock or _utcnow

        self._snapshot: Snapshot | None = None
        self._report = SyncReport(status_code=200, error=None, attempted_at=None, last_success_at=None)
        self._lock = threading.Lock()
        self._hydrate_lock = threading.Lock()

        self._lifecycle_lock = threading.Lock()
        self._state = SyncState.STARTING
        self._started = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> "CacheEngine":
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    # ------------------------------------------------------------------
    # Sync loop
    # ------------------------------------------------------------------

    def start_sync_loop(self) -> None:
        """
        Hydrate with bounded retries, then refresh every ``cache_ttl`` seconds.

        Startup makes up to ``startup_attempts`` attempts, pausing
        ``startup_retry_delay`` seconds between them, and stops at the first
        success. When every attempt fails the engine starts anyway and keeps
        the last failure as its sync status. The pause is interrupted by
        :meth:`stop`.

        Raises:
            RuntimeError: If the loop was already started or stopped
        """
        with self._lifecycle_lock:
            if self._started or self._state is not SyncState.STARTING:
                raise RuntimeError(f"Sync loop cannot be started from state {self._state.value}")
            self._started = True

        attempts = self.settings.startup_attempts
        hydrated = False

        for attempt in range(1, attempts + 1):
            if self._stop.is_set():
                break

            logger.info("Hydrating cache for startup (attempt %d of %d)", attempt, attempts)
            if self._attempt_hydration(startup=True):
                logger.info("Successfully hydrated cache")
                hydrated = True
                break

            if attempt < attempts:
                logger.warning(
                    "Startup attempt %d failed, backing off for %.1f seconds",
                    attempt,
                    self.settings.startup_retry_delay,
                )
                if self._stop.wait(self.settings.startup_retry_delay):
                    break

        # stop() takes the same lock, so STOPPED can never be overwritten
        with self._lifecycle_lock:
            if self._stop.is_set():
                self._state = SyncState.STOPPED
                logger.info("Cache sync loop stopped during startup")
                return

            if not hydrated:
                logger.error(
                    "All %d startup hydration attempts failed, last status %d; starting degraded",
                    attempts,
                    self.get_last_sync_status(),
                )

            self._state = SyncState.RUNNING
            self._thread = threading.Thread(target=self._run_loop, name="ghcache-sync", daemon=True)
            self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop the periodic refresh.

        Returns once the background thread has exited or ``timeout`` elapsed.
        An upstream request already in flight is bounded by the request
        timeout, not interrupted.
        """
        with self._lifecycle_lock:
            self._stop.set()
            self._state = SyncState.STOPPED
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run_loop(self) -> None:
        try:
            while not self._stop.wait(self.settings.cache_ttl):
                logger.info("Attempting to re-hydrate cache")
                if self._attempt_hydration(startup=False):
                    logger.info("Successfully re-hydrated cache")
        finally:
            self._state = SyncState.STOPPED
            logger.info("Cache sync loop stopped")

    def _attempt_hydration(self, startup: bool) -> bool:
        """Run one hydration, logging instead of raising. Returns True on success."""
        try:
            self.hydrate_now()
        except CacheServiceError as e:
            if startup:
                logger.warning("Failed to hydrate cache (status %d): %s", e.status_code, e.message)
            else:
                logger.error("Failed to hydrate cache (status %d): %s", e.status_code, e.message)
            return False
        except Exception:
            logger.exception("Unexpected error while hydrating cache")
            return False
        return True

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def hydrate_now(self) -> int:
        """
        Run one hydration attempt synchronously.

        Members, repos and the organization are fetched in that order; the
        first failure aborts the attempt and the installed snapshot is kept.

        Returns:
            200 once the new snapshot is installed

        Raises:
            CacheServiceError: The failure that aborted the attempt; its
                status code is recorded as the last sync status
        """
        self._hydrate()
        return 200

    def _hydrate(self) -> Snapshot:
        """Build and install one snapshot, recording the outcome. Returns the installed snapshot."""
        with self._hydrate_lock:
            attempted_at = self._clock()
            try:
                snapshot = self._build_snapshot()
            except CacheServiceError as e:
                self._record_failure(e.status_code, str(e), attempted_at)
                raise
            except Exception as e:
                self._record_failure(500, repr(e), attempted_at)
                raise

            with self._lock:
                self._snapshot = snapshot
                self._report = SyncReport(
                    status_code=200,
                    error=None,
                    attempted_at=attempted_at,
                    last_success_at=snapshot.hydrated_at,
                )

        return snapshot

    def ensure_hydrated(self) -> Snapshot:
        """
        Return the current snapshot, hydrating first if the cache is empty.

        Raises:
            CacheServiceError: If the cache was empty and hydration failed
        """
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        logger.info("Cache is empty, forcing hydration")
        return self._hydrate()

    def _build_snapshot(self) -> Snapshot:
        members = self.upstream.fetch_members()
        repos = self.upstream.fetch_repos()
        organization = self.upstream.fetch_org()

        metrics = [extract_metrics(repo) for repo in repos]

        return Snapshot(
            organization=organization,
            members=tuple(members),
            repos=tuple(repos),
            views=build_views(metrics, self.organization),
            hydrated_at=self._clock(),
        )

    def _record_failure(self, status_code: int, error: str, attempted_at: datetime) -> None:
        with self._lock:
            self._report = SyncReport(
                status_code=status_code,
                error=error,
                attempted_at=attempted_at,
                last_success_at=self._report.last_success_at,
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_organization(self) -> dict[str, Any] | None:
        """Return the cached organization, or None before the first hydration."""
        snapshot = self._snapshot
        return None if snapshot is None else snapshot.organization

    def get_members(self) -> tuple[dict[str, Any], ...]:
        snapshot = self._snapshot
        return () if snapshot is None else snapshot.members

    def get_repos(self) -> tuple[dict[str, Any], ...]:
        snapshot = self._snapshot
        return () if snapshot is None else snapshot.repos

    def get_view(self, kind: ViewKind | str) -> RankedList | None:
        """Return the full ranking for ``kind``, or None before the first hydration."""
        kind = ViewKind.parse(kind)
        snapshot = self._snapshot
        return None if snapshot is None else snapshot.view(kind)

    def get_bottom_n(self, kind: ViewKind | str, n: int) -> tuple[RankEntry, ...]:
        """
        Return the ``n`` lowest-ranked repositories of a view.

        Args:
            kind: View to read, as a ViewKind or its slug ("stars", ...)
            n: Number of entries; clamped to the view length

        Returns:
            Up to ``n`` entries in ascending order, empty before the first hydration

        Raises:
            InvalidArgumentError: If ``n`` is not a positive integer or
                ``kind`` is unknown
        """
        n = require_positive_int(n)
        view = self.get_view(kind)
        if view is None:
            return ()
        return view.bottom(n)

    def get_last_sync_status(self) -> int:
        return self._report.status_code

    def get_sync_report(self) -> SyncReport:
        return self._report
