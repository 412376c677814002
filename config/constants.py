"""
Constants Module for Trickle Monitor

Fixed values of the trickle contract and the monitor's defaults.
The settings module uses these as field defaults.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class Defaults:
    """
    Default Values

    The trickle values are one half of a matched pair: a responder emits
    TRICKLE_BYTES bytes, one per TRICKLE_BYTE_INTERVAL seconds, and a checker
    calls the target up only when it receives exactly TRICKLE_BYTES within
    PROBE_DEADLINE.
    """

    SERVICE_PORT: Final[int] = 8080

    # Trickle contract
    TRICKLE_PATH: Final[str] = "/trickle"
    TRICKLE_BYTES: Final[int] = 30
    TRICKLE_BYTE_INTERVAL: Final[float] = 1.0
    TRICKLE_PAYLOAD: Final[str] = "x"

    # Engine
    CHECK_INTERVAL: Final[float] = 15.0
    PIPELINE_DEPTH: Final[int] = 2
    PROBE_DEADLINE: Final[float] = 45.0

    # Status log
    LOG_PATH: Final[str] = "/log"
    LOG_CAPACITY: Final[int] = 64

    # Target
    TARGET_SUFFIX: Final[str] = "withfallback.com"
    DISCOVERY_URL: Final[str] = "http://v6.ipv6-test.com/api/myip.php"


class ReachabilityStatus(str, Enum):
    """Rendered form of a status change."""
    UP = "UP"
    DOWN = "DOWN"

    @classmethod
    def from_bool(cls, up: bool) -> "ReachabilityStatus":
        return cls.UP if up else cls.DOWN


class ContentTypes:
    """Content types served by the front door."""
    TEXT: Final[str] = "text/plain"
    OCTET_STREAM: Final[str] = "application/octet-stream"
