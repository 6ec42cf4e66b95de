"""
Queue Worker

Background driver that runs batches and cleanup on a fixed cadence.
"""

import asyncio
import time
from typing import Optional
from loguru import logger

from mongo_queue.config import get_settings
from mongo_queue.message_queue.engine import RetryQueue


class QueueWorker:
    """
    Background worker for a RetryQueue.

    Calls process_next_batch() every batch_interval seconds and cleanup()
    every cleanup_interval seconds. Calls never overlap, which gives the
    single-runner behaviour the engine expects within one process.

    Attributes:
        queue: Queue engine to drive
        batch_interval: Seconds to wait between batches
        cleanup_interval: Seconds between cleanup runs
    """

    def __init__(
        self,
        queue: RetryQueue,
        batch_interval: Optional[float] = None,
        cleanup_interval: Optional[float] = None,
    ):
        """
        Initialize queue worker.

        Args:
            queue: Queue engine to drive
            batch_interval: Seconds between batches (settings default if None)
            cleanup_interval: Seconds between cleanups (settings default if None)
        """
        settings = get_settings()
        self.queue = queue
        self.batch_interval = (
            batch_interval if batch_interval is not None
            else settings.worker_batch_interval_seconds
        )
        self.cleanup_interval = (
            cleanup_interval if cleanup_interval is not None
            else settings.worker_cleanup_interval_seconds
        )
        self._running = False
        self._stop_event = asyncio.Event()
        # Set whenever no loop is running; start() clears it, its finally sets it
        self._stopped = asyncio.Event()
        self._stopped.set()
        self._last_cleanup: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """
        Start the worker.

        Runs until stop() is called. A failed batch or cleanup (store errors
        included) is logged and retried after batch_interval.
        """
        if self._running:
            logger.warning("Worker already running")
            return

        # A previous loop may still be finishing its last batch
        await self._stopped.wait()
        if self._running:
            logger.warning("Worker already running")
            return

        self._running = True
        self._stopped.clear()
        self._stop_event.clear()
        logger.info(
            f"🚀 Queue worker started for {self.queue.options.collection_name} "
            f"(batch_interval={self.batch_interval}s, cleanup_interval={self.cleanup_interval}s)"
        )

        try:
            while self._running:
                try:
                    await self.run_once()
                except Exception:
                    logger.exception(
                        f"Queue worker batch failed for {self.queue.options.collection_name}"
                    )
                await self._wait(self.batch_interval)

        finally:
            self._running = False
            self._stopped.set()
            logger.info("🛑 Queue worker stopped")

    async def stop(self) -> None:
        """
        Stop the worker and wait for its loop to exit.

        A batch in progress runs to completion; no further batches start.
        """
        if self._running:
            logger.info("Stopping queue worker...")
            self._running = False
            self._stop_event.set()

        await self._stopped.wait()

    async def run_once(self) -> None:
        """Run one batch, then cleanup if its interval has elapsed."""
        await self.queue.process_next_batch()

        now = time.monotonic()
        if self._last_cleanup is None or now - self._last_cleanup >= self.cleanup_interval:
            await self.queue.cleanup()
            self._last_cleanup = now

    async def _wait(self, seconds: float) -> None:
        """Sleep between batches, waking early when stop() is called."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
