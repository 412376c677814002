"""
============================================================================
TRICKLE MONITOR - CHECK PROTOCOL
============================================================================
One probe attempt against the target's trickle responder:

    resolve name → IPv4 (fresh every time, A record via dnspython)
        └── none?  → DOWN, no connection attempted
    GET http://<ipv4>:<port>/trickle   Host: <name>
        └── stream the body, counting bytes, under one overall deadline
    UP  iff  bytes received == trickle byte count (exactly)

Nothing in here raises to the caller. Probe-local failures are turned
into a DOWN ``ProbeResult`` that records why; ``check()`` reduces that
to the plain boolean the engine consumes.

Classes
-------
ProbeResult    ← value object describing one attempt
DNSResolver    ← async A-record lookup, no caching
TrickleChecker ← the probe itself, sharing one httpx.AsyncClient
============================================================================
"""

import asyncio
import time
from typing import Any, List, Optional, Sequence

import dns.asyncresolver
import dns.exception
import dns.resolver
import httpx

from config.settings import Settings
from exceptions.monitoring import (
    DNSResolutionError,
    ProbeError,
    ProbeTimeoutError,
    ProbeTransportError,
)
from utils.logger import get_logger
from utils.validators import AddressValidator


logger = get_logger("Checker")


# ============================================================================
# PROBE RESULT
# ============================================================================

class ProbeResult:
    """
    Value object that carries everything a single probe produced back
    to whoever asked for it. Only ``up`` matters to the engine; the rest
    feeds the logs.
    """
    __slots__ = (
        "up", "bytes_received", "address", "status_code",
        "elapsed", "error_type", "error_message",
    )

    def __init__(
        self,
        up: bool = False,
        bytes_received: int = 0,
        address: Optional[str] = None,
        status_code: Optional[int] = None,
        elapsed: float = 0.0,
        error_type: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.up = up
        self.bytes_received = bytes_received
        self.address = address
        self.status_code = status_code
        self.elapsed = elapsed
        self.error_type = error_type
        self.error_message = error_message

    @property
    def reason(self) -> Optional[str]:
        return self.error_message

    def __repr__(self) -> str:
        return (
            f"ProbeResult(up={self.up}, bytes_received={self.bytes_received}, "
            f"address={self.address!r}, error_type={self.error_type!r})"
        )


# ============================================================================
# DNS RESOLVER
# ============================================================================

class DNSResolver:
    """
    Resolves a name to its IPv4 addresses with dnspython's asyncio
    resolver. Every call goes to the network; nothing is cached.
    """

    def __init__(
        self,
        nameservers: Optional[Sequence[str]] = None,
        port: int = 53,
        timeout: float = 5.0,
    ):
        self._resolver = dns.asyncresolver.Resolver(configure=not nameservers)
        if nameservers:
            self._resolver.nameservers = list(nameservers)
        self._resolver.port = port
        self._resolver.lifetime = timeout
        # Resolution must be fresh on every probe
        self._resolver.cache = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "DNSResolver":
        monitoring = settings.monitoring
        return cls(
            nameservers=monitoring.dns_nameservers,
            port=monitoring.dns_port,
            timeout=monitoring.dns_timeout,
        )

    async def resolve(self, domain: str) -> List[str]:
        """
        Return the addresses ``domain`` resolves to.

        Raises
        ------
        DNSResolutionError
            NXDOMAIN, no A record, timeout or any other resolver failure.
        """
        if AddressValidator.ip_version(domain) is not None:
            return [domain]

        try:
            answer = await self._resolver.resolve(domain, "A")
        except dns.resolver.NXDOMAIN as e:
            raise DNSResolutionError(
                f"Domain {domain} does not exist (NXDOMAIN)", domain=domain, cause=e
            )
        except dns.resolver.NoAnswer as e:
            raise DNSResolutionError(
                f"No A record for {domain}", domain=domain, cause=e
            )
        except dns.exception.Timeout as e:
            raise DNSResolutionError(
                f"DNS resolution for {domain} timed out", domain=domain, cause=e
            )
        except dns.exception.DNSException as e:
            raise DNSResolutionError(
                f"DNS resolution for {domain} failed: {e}", domain=domain, cause=e
            )

        return [rdata.address for rdata in answer]


# ============================================================================
# TRICKLE CHECKER
# ============================================================================

class _Transfer:
    """Progress of one body read; survives the deadline cancelling it."""
    __slots__ = ("bytes_received", "status_code", "stream_error")

    def __init__(self):
        self.bytes_received = 0
        self.status_code: Optional[int] = None
        self.stream_error: Optional[BaseException] = None


class TrickleChecker:
    """
    Performs the trickle probe.

    The httpx client is shared by every probe; it holds no per-request
    state. Pass ``client`` and ``resolver`` to substitute the network in
    tests.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        resolver: Optional[Any] = None,
    ):
        self.settings = settings
        self.expected_bytes = settings.trickle.byte_count
        self.path = settings.trickle.path
        self.port = settings.monitoring.target_port
        self.deadline = settings.monitoring.probe_deadline

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.deadline),
            follow_redirects=False,
            trust_env=False,
        )
        self._resolver = resolver or DNSResolver.from_settings(settings)

    async def aclose(self) -> None:
        """Close the shared client if this checker created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # PUBLIC API
    # ------------------------------------------------------------------

    async def check(self, domain: str) -> bool:
        """Single probe reduced to up/down. Never raises."""
        result = await self.probe(domain)
        return result.up

    async def probe(self, domain: str) -> ProbeResult:
        """
        Run one probe against ``domain``.

        Returns
        -------
        ProbeResult
            ``up`` is True only when exactly ``expected_bytes`` arrived.
        """
        start_time = time.perf_counter()
        address: Optional[str] = None
        transfer = _Transfer()

        try:
            address = await self._resolve_ipv4(domain)
            await self._fetch_within_deadline(domain, address, transfer)
        except ProbeError as e:
            return self._failed(e, start_time, transfer, address)
        except Exception as e:
            logger.exception(f"[Probe] Unexpected error probing {domain}: {e}")
            return self._failed(e, start_time, transfer, address)

        elapsed = time.perf_counter() - start_time
        up = transfer.bytes_received == self.expected_bytes

        error_type = None
        error_message = None
        if transfer.stream_error is not None:
            error_type = type(transfer.stream_error).__name__
            error_message = f"Stream error: {str(transfer.stream_error)[:200]}"
        elif not up:
            error_type = "ByteCountMismatch"
            error_message = (
                f"expected {self.expected_bytes} bytes, "
                f"got {transfer.bytes_received}"
            )

        if transfer.status_code is not None and transfer.status_code != 200:
            logger.debug(
                f"[Probe] {domain} answered HTTP {transfer.status_code}"
            )

        return ProbeResult(
            up=up,
            bytes_received=transfer.bytes_received,
            address=address,
            status_code=transfer.status_code,
            elapsed=round(elapsed, 4),
            error_type=None if up else error_type,
            error_message=None if up else error_message,
        )

    # ------------------------------------------------------------------
    # STEPS
    # ------------------------------------------------------------------

    async def _resolve_ipv4(self, domain: str) -> str:
        """First IPv4 address of ``domain``; anything else is a failure."""
        addresses = await self._resolver.resolve(domain)
        for address in addresses:
            if AddressValidator.is_ipv4(address):
                return address
        raise DNSResolutionError(
            f"No IPv4 address for {domain} (got {list(addresses)})",
            domain=domain,
        )

    async def _fetch_within_deadline(
        self, domain: str, address: str, transfer: _Transfer
    ) -> None:
        try:
            await asyncio.wait_for(
                self._fetch(domain, address, transfer),
                timeout=self.deadline,
            )
        except asyncio.TimeoutError as e:
            raise ProbeTimeoutError(
                f"No complete response within {self.deadline}s",
                domain=domain,
                cause=e,
            )

    async def _fetch(self, domain: str, address: str, transfer: _Transfer) -> None:
        """
        Stream the trickle body, adding every chunk to ``transfer``.

        A read error after the response started ends the read but keeps
        the count; a failure before that is a transport error. Leaving the
        ``stream`` context, cancellation included, closes the connection.
        """
        url = f"http://{address}:{self.port}{self.path}"
        try:
            async with self._client.stream(
                "GET", url, headers={"Host": domain}
            ) as response:
                transfer.status_code = response.status_code
                try:
                    async for chunk in response.aiter_raw():
                        transfer.bytes_received += len(chunk)
                        if transfer.bytes_received > self.expected_bytes:
                            # Already a mismatch; no point reading on
                            break
                except httpx.HTTPError as e:
                    transfer.stream_error = e
        except httpx.HTTPError as e:
            raise ProbeTransportError(
                f"Request to {url} failed: {str(e)[:200] or type(e).__name__}",
                domain=domain,
                cause=e,
            )

    def _failed(
        self,
        error: BaseException,
        start_time: float,
        transfer: _Transfer,
        address: Optional[str],
    ) -> ProbeResult:
        elapsed = time.perf_counter() - start_time
        message = getattr(error, "message", None) or str(error)[:200]
        return ProbeResult(
            up=False,
            bytes_received=transfer.bytes_received,
            address=address,
            status_code=transfer.status_code,
            elapsed=round(elapsed, 4),
            error_type=type(error).__name__,
            error_message=message,
        )
