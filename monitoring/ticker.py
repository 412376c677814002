"""
============================================================================
TRICKLE MONITOR - PERIODIC TICKER
============================================================================
The single cadence that drives the monitoring engine.

Policy on a missed tick is delay-and-realign: if the caller asks for a
tick after its deadline has passed, the tick fires at once and the next
deadline is pushed to ``now + interval``. Missed ticks are never replayed
as a burst, so consecutive ticks are always at least ``interval`` apart.
============================================================================
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from utils.logger import get_logger


logger = get_logger("Ticker")


class PeriodicTicker:
    """
    Async periodic tick source.

    The first ``tick()`` completes immediately; each later call waits
    for the next deadline.

    Parameters
    ----------
    interval : float
        Seconds between ticks.
    clock : Callable[[], float]
        Monotonic clock, ``time.monotonic`` by default.
    sleep : Callable[[float], Awaitable]
        Suspension primitive, ``asyncio.sleep`` by default.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._deadline: Optional[float] = None
        self.ticks = 0
        self.missed = 0

    async def tick(self) -> float:
        """
        Wait for the next tick.

        Returns
        -------
        float
            Clock reading at which the tick fired.
        """
        now = self._clock()
        if self._deadline is None:
            self._deadline = now

        if now < self._deadline:
            await self._sleep(self._deadline - now)
            fired = self._deadline
        else:
            fired = now
            lateness = now - self._deadline
            if lateness >= self.interval:
                self.missed += 1
                logger.debug(
                    f"Tick {self.ticks + 1} late by {lateness:.2f}s, "
                    f"realigning schedule"
                )

        self._deadline = fired + self.interval
        self.ticks += 1
        return fired
