"""
============================================================================
TRICKLE MONITOR - MONITORING ENGINE
============================================================================
Pipelined probing loop for a single target.

Architecture
------------
MonitoringEngine
├── _run()               ← warm-up, then the steady-state loop forever
│   ├── warm-up          ← one tick + one probe launch, ``pipeline_depth`` times
│   └── steady state
│       a. _next_completion()  ← whichever in-flight probe finishes first
│       b. record_outcome()    ← append to StatusLog only on a transition
│       c. ticker.tick()       ← wait for the cadence
│       d. _launch()           ← start the next probe
├── _probe()             ← TrickleChecker.probe() + logging → bool
└── record_outcome()     ← the debounce decision, usable on its own

Concurrency hides probe latency (up to the probe deadline) behind the
fixed cadence; it never raises the probe rate above one per tick. A
probe never fails the engine: every outcome is a boolean.
============================================================================
"""

import asyncio
from typing import Any, Callable, List, Optional

from config.settings import Settings
from monitoring.status_log import StatusChange, StatusLog
from monitoring.ticker import PeriodicTicker
from utils.helpers import TimeHelper
from utils.logger import MonitorLogger, get_logger


logger = get_logger("MonitoringEngine")


class MonitoringEngine:
    """
    Drives probes against ``target`` and writes status transitions to
    ``status_log``.

    Lifecycle
    ---------
    1.  ``await engine.start()``   - launches the background loop
    2.  ``await engine.stop()``    - cancels the loop and any probe
                                     still in flight (shutdown only)

    Thread-safety
    -------------
    The engine runs on the event loop. The only state it shares with
    anything else is the StatusLog, which carries its own lock.
    """

    def __init__(
        self,
        target: str,
        checker: Any,
        status_log: StatusLog,
        settings: Settings,
        ticker: Optional[PeriodicTicker] = None,
        clock: Callable[[], int] = TimeHelper.epoch_seconds,
    ):
        """
        Parameters
        ----------
        target : str
            Domain name probed on every tick.
        checker : TrickleChecker
            Anything with an async ``probe(domain)`` returning a result
            that has ``up``, ``bytes_received``, ``elapsed`` and ``reason``.
        status_log : StatusLog
            Where transitions are recorded.
        ticker : PeriodicTicker | None
            Cadence source; built from ``check_interval`` when omitted.
        clock : Callable[[], int]
            Epoch-seconds clock used to stamp transitions.
        """
        self.settings = settings
        self.target = target
        self.checker = checker
        self.status_log = status_log
        self.ticker = ticker or PeriodicTicker(settings.monitoring.check_interval)
        self._clock = clock
        self._pipeline_depth = settings.monitoring.pipeline_depth
        self._monitor_logger = MonitorLogger(target)

        # --- pipeline ---
        self._in_flight: List[asyncio.Task] = []
        self._launched = 0

        # --- debounce ---
        self._last_up: Optional[bool] = None
        self._checks_completed = 0

        # --- lifecycle ---
        self._running = False
        self._task: Optional[asyncio.Task] = None

        logger.info(
            f"MonitoringEngine created - target={target}, "
            f"interval={self.ticker.interval}s, "
            f"pipeline_depth={self._pipeline_depth}"
        )

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background loop."""
        if self._running:
            logger.warning("MonitoringEngine is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run(), name="monitoring-engine")
        self._task.add_done_callback(self._on_loop_done)
        logger.info("✓ MonitoringEngine started")

    async def stop(self) -> None:
        """Cancel the loop and abandon probes still in flight."""
        self._running = False
        tasks = list(self._in_flight)
        if self._task:
            tasks.append(self._task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        self._task = None
        logger.info("✓ MonitoringEngine stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight_checks(self) -> int:
        return len(self._in_flight)

    @property
    def last_up(self) -> Optional[bool]:
        return self._last_up

    @property
    def checks_completed(self) -> int:
        return self._checks_completed

    def record_outcome(self, up: bool) -> Optional[StatusChange]:
        """
        Debounce one probe outcome.

        Appends a ``StatusChange`` stamped with the current time when
        ``up`` differs from the last recorded status, or when nothing has
        been recorded yet.

        Returns
        -------
        StatusChange | None
            The appended entry, or None when the outcome repeated.
        """
        self._checks_completed += 1
        if self._last_up is not None and self._last_up == up:
            return None

        change = StatusChange(up=up, time=self._clock())
        self.status_log.push(change)
        self._last_up = up
        self._monitor_logger.log_transition(up, change.time)
        return change

    # ------------------------------------------------------------------
    # LOOP
    # ------------------------------------------------------------------

    def _on_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._running = False
            logger.opt(exception=error).critical(
                "[Engine] Monitoring loop crashed; no further probes will run"
            )

    async def _run(self) -> None:
        logger.info("[Engine] Warming up pipeline")
        for _ in range(self._pipeline_depth):
            await self.ticker.tick()
            self._launch()

        logger.info(
            f"[Engine] Pipeline primed with {len(self._in_flight)} probes"
        )
        while self._running:
            up = await self._next_completion()
            if up is not None:
                self.record_outcome(up)

            await self.ticker.tick()
            self._launch()

    def _launch(self) -> None:
        self._launched += 1
        task = asyncio.create_task(
            self._probe(), name=f"probe-{self._launched}"
        )
        self._in_flight.append(task)
        logger.debug(
            f"[Engine] Launched probe #{self._launched} "
            f"({len(self._in_flight)} in flight)"
        )

    async def _next_completion(self) -> Optional[bool]:
        """
        Wait for the first in-flight probe to finish, in completion order.

        Only one finished probe is consumed per call; if several finished
        together, the rest are picked up by the following calls. Returns
        None when the probe task itself blew up.
        """
        done, _ = await asyncio.wait(
            self._in_flight, return_when=asyncio.FIRST_COMPLETED
        )
        task = next(t for t in self._in_flight if t in done)
        self._in_flight.remove(task)

        if task.cancelled():
            return None
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error(
                f"[Engine] Probe task {task.get_name()} raised"
            )
            return None
        return task.result()

    async def _probe(self) -> bool:
        logger.debug(f"[Engine] Probing {self.target}")
        result = await self.checker.probe(self.target)
        self._monitor_logger.log_probe(
            result.up, result.bytes_received, result.elapsed, result.reason
        )
        return result.up
