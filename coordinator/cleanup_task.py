"""Background task for reclaiming orphaned parts from the blob sink."""

import asyncio
import logging

from coordinator.blob_sink_client import BlobSinkClient
from coordinator.config import CLEANUP_INTERVAL_SECONDS
from coordinator.orphan_log import OrphanLog

logger = logging.getLogger(__name__)


class OrphanedPartCleaner:
    """
    Background task that periodically deletes sink objects listed in the orphan log.
    """

    def __init__(
        self,
        sink: BlobSinkClient,
        orphan_log: OrphanLog,
        interval_seconds: int = CLEANUP_INTERVAL_SECONDS,
    ):
        """
        Initialize cleaner task.

        Args:
            sink: Sink client used to delete objects
            orphan_log: Log of objects to reclaim
            interval_seconds: Time between cleanup attempts (default 6 hours)
        """
        self.sink = sink
        self.orphan_log = orphan_log
        self.interval_seconds = interval_seconds
        self._running = False
        self._task = None

    async def start(self) -> None:
        """Start the background cleanup task."""
        if self._running:
            logger.warning("Cleanup task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started orphaned part cleanup task (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background cleanup task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info("Stopped orphaned part cleanup task")

    async def _run(self) -> None:
        """Main loop for cleanup task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.cleanup_cycle()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in cleanup task: {e}", exc_info=True)

    async def cleanup_cycle(self) -> int:
        """
        Execute one cleanup cycle.

        Returns:
            Number of sink objects deleted
        """
        try:
            orphaned = self.orphan_log.load()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read orphaned parts log: {e}")
            return 0

        if not orphaned:
            logger.debug("No orphaned parts to clean")
            return 0

        logger.info(f"Starting cleanup cycle for {len(orphaned)} orphaned parts")

        handled = []
        remaining = 0
        cleaned_count = 0

        for entry in orphaned:
            object_id = entry.get("object_id")
            if not object_id:
                logger.warning(f"Orphaned part {entry.get('name')} has no sink object id; dropping it")
                handled.append(entry)
                continue

            try:
                if await self.sink.delete(object_id):
                    cleaned_count += 1
                    handled.append(entry)
                else:
                    remaining += 1
            except Exception as e:
                logger.warning(f"Error cleaning orphaned part {object_id}: {e}")
                remaining += 1

        try:
            self.orphan_log.discard(handled)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update orphaned parts log: {e}")

        logger.info(f"Cleanup cycle complete: {cleaned_count} cleaned, {remaining} remaining")
        return cleaned_count
