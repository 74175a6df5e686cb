"""Background expiration sweeper.

Complements the store's lazy, per-read expiration: entries nobody requests
again are removed at most one sweep interval after they expire.
"""

import asyncio

import structlog

from caching_proxy.protocols import CacheStore

logger = structlog.get_logger(__name__)


class ExpirationSweeper:
    """Periodically deletes expired files from the cache store.

    Runs as an asyncio task; the file walk itself happens in a worker thread
    so the event loop keeps serving requests.

    Example:
        ```python
        sweeper = ExpirationSweeper(repository, ttl=60.0)
        sweeper.start()
        ...
        await sweeper.stop()
        ```
    """

    def __init__(self, repository: CacheStore, ttl: float, interval: float | None = None) -> None:
        """Initialize the sweeper.

        Args:
            repository: Store to sweep.
            ttl: Entry lifetime in seconds. The sweeper is inert if 0.
            interval: Seconds between sweeps. Defaults to ``ttl``.
        """
        self._repository = repository
        self._ttl = ttl
        self._interval = interval if interval is not None else ttl
        self._task: asyncio.Task[None] | None = None

    @property
    def enabled(self) -> bool:
        """Whether there is anything to sweep."""
        return self._ttl > 0 and self._interval > 0

    @property
    def running(self) -> bool:
        """Whether the background task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def interval(self) -> float:
        """Seconds between two sweeps."""
        return self._interval

    def start(self) -> None:
        """Start the background loop. No-op if disabled or already running."""
        if not self.enabled or self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-expiration-sweeper")
        logger.info("cache_sweeper_started", ttl=self._ttl, interval=self._interval)

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("cache_sweeper_stopped")

    async def run_once(self) -> int:
        """Run a single sweep.

        Returns:
            Number of files removed
        """
        removed = await asyncio.to_thread(self._repository.sweep_expired)
        if removed:
            logger.info("cache_sweep_finished", removed=removed)
        return removed

    async def _run(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("cache_sweep_failed")
            await asyncio.sleep(self._interval)
