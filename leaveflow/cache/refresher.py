"""Periodic background reload of a :class:`SynchronizedCache`."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from leaveflow.cache.sync import SyncReport, SynchronizedCache

logger = logging.getLogger(__name__)


class BackgroundRefresher:
    """Re-runs ``load_all`` and every registered manager-scoped load on an interval.

    Runs as one asyncio task; :meth:`stop` cancels it. A failed cycle is logged
    and the loop carries on with the snapshots it had.
    """

    def __init__(self, cache: SynchronizedCache, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._cache = cache
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self.cycles = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="leaveflow-refresher"
        )
        logger.info("Background refresh every %.1fs", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Background refresh stopped after %d cycle(s)", self.cycles)

    async def refresh_once(self) -> SyncReport:
        report = await self._cache.load_all()
        for manager_id in sorted(self._cache.scoped_managers):
            await self._cache.load_requests_for_manager(manager_id)
        self.cycles += 1
        return report

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh_once()
            except Exception:
                logger.exception("Background refresh cycle failed")
            await asyncio.sleep(self._interval)
