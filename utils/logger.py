"""
============================================================================
TRICKLE MONITOR - LOGGING UTILITY
============================================================================
loguru based logging: a console sink and an optional rotating file sink.
Every module binds its own component name through ``get_logger``.

``setup_logging`` is called once by the application at startup; until
then loguru's default stderr sink is in effect.
============================================================================
"""

import sys
from typing import Optional

from loguru import logger

from config.settings import Settings, get_settings
from utils.helpers import TimeHelper


CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> - <level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
    "{extra[component]}:{function}:{line} - {message}"
)

# Records emitted through the bare logger still need a component
logger.configure(extra={"component": "trickle-monitor"})


# ============================================================================
# LOGGER CONFIGURATION
# ============================================================================

def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure the loguru sinks from the logging settings.

    Args:
        settings: Application settings (cached settings when omitted)
    """
    settings = settings or get_settings()
    log_settings = settings.logging
    log_level = log_settings.level.value

    # Remove default loguru handler
    logger.remove()

    if log_settings.to_console:
        logger.add(
            sys.stdout,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=log_settings.colorize,
            backtrace=settings.debug,
            diagnose=settings.debug,
        )

    if log_settings.to_file:
        log_settings.file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_settings.file_path,
            format=FILE_FORMAT,
            level=log_level,
            rotation=log_settings.file_rotation,
            retention=log_settings.file_retention,
            compression=log_settings.file_compression,
            serialize=log_settings.serialize,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )

    logger.info("Logging system initialized")
    logger.info(f"Log level: {log_level}")
    logger.info(f"Console logging: {log_settings.to_console}")
    logger.info(f"File logging: {log_settings.to_file}")


def get_logger(name: Optional[str] = None):
    """
    Get logger instance with optional component name.

    Args:
        name: Component name shown in every record

    Returns:
        Logger instance
    """
    if name:
        return logger.bind(component=name)
    return logger


# ============================================================================
# SPECIALIZED LOGGERS
# ============================================================================

class MonitorLogger:
    """
    Specialized logger for probe outcomes and status transitions.
    """

    def __init__(self, target: str):
        self.target = target
        self.logger = get_logger("Monitor")

    def log_probe(
        self,
        up: bool,
        bytes_received: int,
        elapsed: float,
        reason: Optional[str] = None,
    ) -> None:
        """Log the outcome of a single probe."""
        if up:
            self.logger.debug(
                f"Probe of {self.target} UP - {bytes_received} bytes in {elapsed:.2f}s"
            )
        else:
            self.logger.warning(
                f"Probe of {self.target} DOWN - {bytes_received} bytes in "
                f"{elapsed:.2f}s ({reason or 'byte count mismatch'})"
            )

    def log_transition(self, up: bool, at: int) -> None:
        """Log a recorded status change."""
        since = TimeHelper.format_epoch(at)
        if up:
            self.logger.info(f"{self.target} is UP (since {since})")
        else:
            self.logger.warning(f"{self.target} is DOWN (since {since})")
