"""Single-slot trailing debounce timer on the running asyncio loop."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Run the last scheduled coroutine once ``delay`` seconds pass quietly.

    Scheduling again before the timer fires replaces the pending call.
    Calls that have already fired run to completion and are never cancelled
    by later scheduling.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task] = set()
        # Set whenever no timer is armed
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, factory: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire, factory)
        self._idle.clear()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._idle.set()

    async def drain(self) -> None:
        """Wait for the pending timer (if any) and every fired call to finish."""
        await self._idle.wait()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    def _fire(self, factory: Callable[[], Awaitable[None]]) -> None:
        self._handle = None
        task = asyncio.ensure_future(factory())
        self._inflight.add(task)
        task.add_done_callback(self._done)
        self._idle.set()

    def _done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced call failed", exc_info=task.exception())
