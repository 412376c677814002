"""
============================================================================
TRICKLE MONITOR - MONITORING PACKAGE
============================================================================
The monitoring engine and everything it talks to:
    • StatusLog          - ring buffer of status changes
    • PeriodicTicker     - delay-on-miss cadence
    • TrickleChecker     - one trickle probe, reduced to up/down
    • MonitoringEngine   - pipelined probing loop
    • FrontDoor          - aiohttp server for /trickle and /log
    • discovery helpers  - public address → target name

File layout
-----------
monitoring/
├── __init__.py          ← this file
├── status_log.py        ← StatusChange + StatusLog
├── ticker.py            ← PeriodicTicker
├── checker.py           ← ProbeResult + DNSResolver + TrickleChecker
├── engine.py            ← MonitoringEngine
├── server.py            ← TrickleResponder + FrontDoor
└── discovery.py         ← discover_public_address / build_target_domain
============================================================================
"""

from monitoring.status_log import StatusChange, StatusLog
from monitoring.ticker import PeriodicTicker
from monitoring.checker import DNSResolver, ProbeResult, TrickleChecker
from monitoring.engine import MonitoringEngine
from monitoring.server import FrontDoor, TrickleResponder
from monitoring.discovery import (
    build_target_domain,
    discover_public_address,
    expand_ipv6,
    resolve_target,
)

__all__ = [
    # Status log
    "StatusChange",
    "StatusLog",

    # Engine
    "PeriodicTicker",
    "MonitoringEngine",

    # Check protocol
    "DNSResolver",
    "ProbeResult",
    "TrickleChecker",

    # Front door
    "FrontDoor",
    "TrickleResponder",

    # Target discovery
    "build_target_domain",
    "discover_public_address",
    "expand_ipv6",
    "resolve_target",
]
