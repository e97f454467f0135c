"""
Debounced batch scheduling on the asyncio event loop.

A Debouncer collects keys into a pending set and runs its callback once,
with the whole batch, after a quiet period without new requests. Every new
request restarts the quiet period and joins the same batch.

    debouncer = Debouncer(2.0, process_batch, name="index")
    debouncer.schedule("notes/a.md")
    debouncer.schedule("notes/a.md")   # same batch, timer restarted
    # ~2s later: process_batch({"notes/a.md"}) runs exactly once
"""

import asyncio
import logging
from typing import Awaitable, Callable, Hashable, Optional, Set

logger = logging.getLogger(__name__)

BatchCallback = Callable[[Set[Hashable]], Awaitable[None]]


class Debouncer:
    """
    Pending set + quiet-period timer task.

    Must be used from a running event loop. The callback runs outside the
    timer's cancellation scope: once a batch has been drained, later
    schedule() calls start a new batch instead of interrupting it.
    """

    def __init__(self, delay: float, callback: BatchCallback, name: str = "debouncer"):
        self.delay = delay
        self.callback = callback
        self.name = name
        self._pending: Set[Hashable] = set()
        self._timer: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> Set[Hashable]:
        """Copy of the keys waiting for the next batch"""
        return set(self._pending)

    @property
    def is_scheduled(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def schedule(self, key: Optional[Hashable] = None):
        """Add key (if any) to the pending batch and restart the quiet period"""
        if key is not None:
            self._pending.add(key)
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._wait_and_fire())

    def discard(self, key: Hashable):
        """Remove a key from the pending batch"""
        self._pending.discard(key)

    async def flush(self):
        """Run the pending batch now (no-op when nothing is scheduled)"""
        was_scheduled = self.is_scheduled
        self._cancel_timer()
        if was_scheduled or self._pending:
            await self._fire(self._drain())
        await self.wait_idle()

    def cancel(self):
        """Drop the pending batch and stop the timer"""
        self._cancel_timer()
        self._pending.clear()

    async def wait_idle(self):
        """Wait for batches that are already running"""
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    async def _wait_and_fire(self):
        await asyncio.sleep(self.delay)
        self._timer = None
        # Detach from the timer task so a new schedule() cannot cancel the batch
        task = asyncio.get_running_loop().create_task(self._fire(self._drain()))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    def _drain(self) -> Set[Hashable]:
        batch = self._pending
        self._pending = set()
        return batch

    async def _fire(self, batch: Set[Hashable]):
        logger.debug(f"{self.name}: processing batch of {len(batch)}")
        try:
            await self.callback(batch)
        except Exception as e:
            logger.error(f"{self.name}: batch failed: {e}", exc_info=True)

    def _cancel_timer(self):
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
