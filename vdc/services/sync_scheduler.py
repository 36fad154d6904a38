# vdc/services/sync_scheduler.py
"""
Periodic sync trigger — fires SyncEngine.sync_pending("AUTO") every
SYNC_INTERVAL_SECONDS, independent of request traffic.
Started once at backend startup, stopped on shutdown. A cycle already in
flight when stop() is called runs to completion (push, mark, audit) before
stop() returns; only the idle wait is cancelled.
"""

import asyncio
from typing import Optional

from vdc.services.sync_service import SyncEngine, SyncSummary, AUTO_ACTOR
from vdc.utils.logger import get_logger

logger = get_logger(__name__)


class SyncScheduler:
    def __init__(self, engine: SyncEngine, interval_seconds: float):
        self._engine = engine
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._cycle: Optional[asyncio.Task] = None

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.started:
            return
        logger.info(f"⏱  Sync scheduler started — every {self.interval_seconds}s")
        self._task = asyncio.create_task(self._loop(), name="sync-scheduler")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

        cycle, self._cycle = self._cycle, None
        if cycle is not None and not cycle.done():
            logger.info("Waiting for the running sync cycle to finish")
            try:
                await cycle
            except Exception as e:
                logger.error(f"Scheduled sync cycle failed during shutdown: {e}", exc_info=True)
        logger.info("🛑 Sync scheduler stopped")

    async def run_once(self) -> Optional[SyncSummary]:
        """One scheduled cycle. Errors are logged; the loop keeps going."""
        self._cycle = asyncio.create_task(self._engine.sync_pending(AUTO_ACTOR), name="sync-cycle")
        try:
            # Cancelling the loop must not cancel a batch mid-push
            return await asyncio.shield(self._cycle)
        except Exception as e:
            logger.error(f"Scheduled sync cycle failed: {e}", exc_info=True)
            return None

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_once()
