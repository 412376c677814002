"""
Configuration Package for Trickle Monitor

This package contains all configuration-related modules including:
- Settings management with environment variable support
- Constants and enums of the trickle contract
"""

from config.settings import (
    Settings,
    ServerSettings,
    TrickleSettings,
    MonitoringSettings,
    LoggingSettings,
    Environment,
    LogLevel,
    get_settings,
)

from config.constants import (
    Defaults,
    ReachabilityStatus,
    ContentTypes,
)

__all__ = [
    # Settings
    "Settings",
    "ServerSettings",
    "TrickleSettings",
    "MonitoringSettings",
    "LoggingSettings",
    "Environment",
    "LogLevel",
    "get_settings",

    # Constants
    "Defaults",
    "ReachabilityStatus",
    "ContentTypes",
]
