"""One-second turn clock driving TICK actions."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

TickCallback = Callable[[], Awaitable[bool]]


class TurnClock:
    """Call ``tick`` every ``interval`` seconds until it returns ``False``."""

    def __init__(
        self,
        tick: TickCallback,
        interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._tick = tick
        self._interval = interval
        self._sleep = sleep

    async def run(self) -> int:
        ticks = 0
        while True:
            await self._sleep(self._interval)
            ticks += 1
            if not await self._tick():
                return ticks


class TurnClockRegistry:
    """At most one running clock per match.

    ``restart`` replaces whatever clock a match has, so a fresh turn or a
    resume always waits a full interval before its first tick.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[int]] = {}

    def is_running(self, match_id: str) -> bool:
        task = self._tasks.get(match_id)
        return task is not None and not task.done()

    def start(self, match_id: str, clock: TurnClock) -> bool:
        if self.is_running(match_id):
            return False
        task = asyncio.get_running_loop().create_task(clock.run())
        self._tasks[match_id] = task
        task.add_done_callback(lambda done: self._finished(match_id, done))
        logger.debug("turn_clock_started", match_id=match_id)
        return True

    async def restart(self, match_id: str, clock: TurnClock) -> None:
        await self.stop(match_id)
        self.start(match_id, clock)

    async def stop(self, match_id: str) -> bool:
        task = self._tasks.pop(match_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return True

    def _finished(self, match_id: str, task: asyncio.Task[int]) -> None:
        if self._tasks.get(match_id) is task:
            self._tasks.pop(match_id, None)
        if task.cancelled():
            logger.debug("turn_clock_cancelled", match_id=match_id)
            return
        error = task.exception()
        if error is not None:
            logger.error("turn_clock_failed", match_id=match_id, error=repr(error))
            return
        logger.debug("turn_clock_stopped", match_id=match_id, ticks=task.result())

    async def stop_all(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
