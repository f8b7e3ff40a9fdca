"""Cache sweep scheduler adapter.

Implements a long-running asyncio loop that periodically evicts expired
entries from the dedup cache.
"""

import asyncio
import logging

from tripwire.core.cache import ErrorCache

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


class CacheSweeper:
    """Asyncio-based background sweeper for the dedup cache.

    A missed sweep only delays memory reclamation; it never affects
    dedup correctness.
    """

    def __init__(
        self,
        cache: ErrorCache,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        """Initialize cache sweeper.

        Args:
            cache: Dedup cache to sweep.
            interval_seconds: Interval between sweeps in seconds.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self.sweeps_completed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Launch the sweep loop on the running event loop."""
        if self.running:
            logger.warning("Cache sweeper already running")
            assert self._task is not None
            return self._task

        logger.info(f"Starting cache sweeper with {self.interval_seconds}s interval")
        self._task = asyncio.get_running_loop().create_task(self._run_loop())
        return self._task

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return

        logger.info("Stopping cache sweeper...")
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    def run_once(self) -> int:
        """Sweep immediately. Returns the number of evicted entries."""
        removed = self.cache.sweep()
        self.sweeps_completed += 1
        if removed:
            logger.info(f"Evicted {removed} expired error cache entries")
        return removed

    async def _run_loop(self) -> None:
        """Main sweep loop."""
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"Error sweeping error cache: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Cache sweeper stopped")
            raise
