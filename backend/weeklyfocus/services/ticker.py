import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ClockTicker:
    """Call `callback` every `interval` seconds from the running event loop.

    The callback runs in a worker thread so a slow tick (it takes the
    tracker lock and may hit the database) never blocks request handling.

    Advisory only: it keeps time-of-day views fresh (midnight rollover,
    live session minutes) and carries no correctness guarantees. After
    `stop()` returns no new callback is started; one already running in
    its thread is left to finish.
    """

    def __init__(self, callback: Callable[[], object], interval: float = 1.0):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.callback = callback
        self.interval = interval
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await asyncio.to_thread(self.callback)
            except Exception:
                logger.exception("Clock tick failed")
            self.ticks += 1

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
