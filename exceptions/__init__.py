"""
Exceptions Package for Trickle Monitor

Provides the exception hierarchy used for startup-fatal and
probe-local error handling.
"""

from exceptions.base import (
    TrickleMonitorException,
    ConfigurationError,
    StartupError,
    AddressDiscoveryError,
    TargetNameError,
    ListenerBindError,
)

from exceptions.monitoring import (
    ProbeError,
    DNSResolutionError,
    ProbeTimeoutError,
    ProbeTransportError,
)

__all__ = [
    # Base exceptions
    "TrickleMonitorException",
    "ConfigurationError",
    "StartupError",
    "AddressDiscoveryError",
    "TargetNameError",
    "ListenerBindError",

    # Monitoring exceptions
    "ProbeError",
    "DNSResolutionError",
    "ProbeTimeoutError",
    "ProbeTransportError",
]
