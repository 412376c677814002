"""
Monitoring Exception Classes for Trickle Monitor

Probe-local failures. They are raised and caught inside the check
protocol to give a down outcome its reason; the engine only ever sees
a boolean.
"""

from __future__ import annotations

from typing import Any, Optional

from exceptions.base import TrickleMonitorException


class ProbeError(TrickleMonitorException):
    """
    Probe Error

    Base class for everything that can make a single probe attempt
    classify as down.
    """

    default_error_code = 3000

    def __init__(
        self,
        message: str = "Probe failed",
        domain: Optional[str] = None,
        **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self.domain = domain
        if domain:
            self.details.setdefault("domain", domain)


class DNSResolutionError(ProbeError):
    """The target name yielded no IPv4 address."""

    default_error_code = 3001


class ProbeTimeoutError(ProbeError):
    """Connect plus full body read did not finish within the deadline."""

    default_error_code = 3002


class ProbeTransportError(ProbeError):
    """Connection or protocol failure before any body was streamed."""

    default_error_code = 3003
