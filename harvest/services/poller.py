"""
Status Poller Service
Calls the resource fetcher on a fixed interval.
"""

import asyncio
from typing import Optional

from harvest.config import logger


class StatusPoller:
    """Runs fetcher.update_all() every `interval` seconds until stopped."""

    def __init__(self, fetcher, interval: float = 1.0):
        self.fetcher = fetcher
        self.interval = interval
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Status poller started (every {self.interval}s)")

    async def stop(self) -> None:
        """Stop polling. An update already in flight is allowed to finish."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
        logger.info("Status poller stopped")

    async def tick(self) -> None:
        try:
            await self.fetcher.update_all()
        except Exception as e:
            logger.error(f"Error updating download statuses: {e}")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
