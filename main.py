"""
============================================================================
TRICKLE MONITOR - MAIN APPLICATION
============================================================================
Liveness monitor for one tunneled endpoint. Every few seconds it checks
that the target can deliver a slow, fixed-length byte stream, and it keeps
a bounded history of when the target's reachability changed.

    Phase 1 - Configuration      Settings (pydantic-settings) + logging
    Phase 2 - Target             configured name, or public IPv6 address
                                 → "<expanded-address>.<suffix>"
    Phase 3 - Status log         in-memory ring buffer, lost on restart
    Phase 4 - Front door         aiohttp server: /trickle and /log
    Phase 5 - Monitoring engine  pipelined trickle probes

Any failure in phases 1-4 is fatal: the error is logged and the process
exits with status 1.

Shutdown Order (reverse)
-------------------------
On SIGINT or SIGTERM:
    stop monitoring engine → close probe client → stop front door → exit
============================================================================
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

# ---------------------------------------------------------------------------
# Path setup - ensure the project root is importable regardless of CWD
# ---------------------------------------------------------------------------
sys.path.insert(0, str(Path(__file__).parent))

from pydantic import ValidationError

from config.settings import Settings, get_settings
from exceptions.base import ConfigurationError, StartupError
from monitoring.checker import TrickleChecker
from monitoring.discovery import resolve_target
from monitoring.engine import MonitoringEngine
from monitoring.server import FrontDoor
from monitoring.status_log import StatusLog
from utils.logger import get_logger, setup_logging


logger = get_logger("Main")


# ============================================================================
# APPLICATION CLASS
# ============================================================================

class TrickleMonitorApplication:
    """
    Top-level application orchestrator.

    Owns every subsystem and is the single place that knows the startup /
    shutdown order. The engine and the front door share nothing but the
    StatusLog.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

        # --- subsystems (populated during startup) ---
        self.target: Optional[str] = None
        self.status_log: Optional[StatusLog] = None
        self.checker: Optional[TrickleChecker] = None
        self.front_door: Optional[FrontDoor] = None
        self.engine: Optional[MonitoringEngine] = None

        self._stop_event = asyncio.Event()

    # ==================================================================
    # STARTUP
    # ==================================================================

    async def startup(self) -> None:
        """
        Execute the startup sequence.

        Raises
        ------
        StartupError
            Target discovery or port binding failed.
        """
        logger.info("=" * 74)
        logger.info(f"  STARTING {self.settings.app_name} v{self.settings.version}")
        logger.info("=" * 74)

        logger.info("── Phase 1: Configuration ────────────────────────")
        logger.info(
            f"  ✓ environment={self.settings.environment.value}, "
            f"interval={self.settings.monitoring.check_interval}s, "
            f"deadline={self.settings.monitoring.probe_deadline}s, "
            f"trickle={self.settings.trickle.byte_count} bytes"
        )

        # Phase 2 - target
        logger.info("── Phase 2: Target ───────────────────────────────")
        self.target = await resolve_target(self.settings)
        logger.info(f"  ✓ Monitoring {self._trickle_url()}")

        # Phase 3 - status log
        logger.info("── Phase 3: Status log ───────────────────────────")
        self.status_log = StatusLog(self.settings.monitoring.log_capacity)
        logger.info(f"  ✓ Status log capacity {self.status_log.capacity}")

        # Phase 4 - front door
        logger.info("── Phase 4: Front door ───────────────────────────")
        self.front_door = FrontDoor(self.settings, self.status_log)
        await self.front_door.start()

        # Phase 5 - engine
        logger.info("── Phase 5: Monitoring engine ────────────────────")
        self.checker = TrickleChecker(self.settings)
        self.engine = MonitoringEngine(
            target=self.target,
            checker=self.checker,
            status_log=self.status_log,
            settings=self.settings,
        )
        await self.engine.start()

        logger.info("=" * 74)
        logger.info("  ✓ ALL SYSTEMS OPERATIONAL")
        logger.info(
            f"  Trickle: http://{self.settings.server.host}:"
            f"{self.settings.server.port}{self.settings.trickle.path}"
        )
        logger.info(
            f"  Log:     http://{self.settings.server.host}:"
            f"{self.settings.server.port}{self.settings.monitoring.log_path}"
        )
        logger.info("=" * 74)

    def _trickle_url(self) -> str:
        return (
            f"http://{self.target}:{self.settings.monitoring.target_port}"
            f"{self.settings.trickle.path}"
        )

    # ==================================================================
    # SHUTDOWN
    # ==================================================================

    async def shutdown(self) -> None:
        """
        Graceful shutdown in reverse order.
        Each step is guarded so a failure in one subsystem doesn't stop
        the others from cleaning up.
        """
        logger.info("  SHUTTING DOWN …")

        if self.engine:
            try:
                await self.engine.stop()
            except Exception as e:
                logger.error(f"  ✗ MonitoringEngine stop error: {e}")

        if self.checker:
            try:
                await self.checker.aclose()
            except Exception as e:
                logger.error(f"  ✗ Probe client close error: {e}")

        if self.front_door:
            try:
                await self.front_door.stop()
            except Exception as e:
                logger.error(f"  ✗ FrontDoor stop error: {e}")

        logger.info("  ✓ SHUTDOWN COMPLETE")

    # ==================================================================
    # RUN
    # ==================================================================

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run(self) -> None:
        """Serve until a stop is requested."""
        await self._stop_event.wait()


# ============================================================================
# SIGNAL HANDLER SETUP
# ============================================================================

def _install_signal_handlers(app: TrickleMonitorApplication) -> None:
    """Turn SIGTERM / SIGINT into a graceful stop."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, app.request_stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on Windows; KeyboardInterrupt still works
            pass


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def load_settings() -> Settings:
    """Settings for this process; validation errors are fatal."""
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            cause=e,
            details={"errors": e.errors(include_url=False)},
        )


async def main() -> int:
    """Async main - returns the process exit status."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.bind(error=e.to_dict()).error(f"  ✗ {e.log_format()}")
        return 1

    setup_logging(settings)
    app = TrickleMonitorApplication(settings)
    _install_signal_handlers(app)

    try:
        await app.startup()
    except StartupError as e:
        logger.bind(error=e.to_dict()).error(f"  ✗ Startup failed - {e.log_format()}")
        await app.shutdown()
        return 1

    try:
        await app.run()
    finally:
        await app.shutdown()
    return 0


def cli() -> None:
    """Console script entry point."""
    try:
        status = asyncio.run(main())
    except KeyboardInterrupt:
        status = 0
    sys.exit(status)


# ============================================================================
# SCRIPT ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    cli()
