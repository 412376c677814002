"""
============================================================================
TRICKLE MONITOR - TARGET DISCOVERY
============================================================================
Works out which name the monitor probes.

1.  discover_public_address()  - one-shot GET against an echo service
    that returns this host's public IPv6 address as plain text
2.  expand_ipv6()              - every group spelled out, dash separated
3.  build_target_domain()      - "<expanded>.<suffix>"

Failures here are fatal to startup: the process has nothing to monitor
without a target.
============================================================================
"""

import ipaddress
from typing import Optional

import httpx

from config.settings import Settings
from exceptions.base import AddressDiscoveryError, TargetNameError
from utils.logger import get_logger
from utils.validators import AddressValidator


logger = get_logger("Discovery")


async def discover_public_address(
    url: str,
    timeout: float = 15.0,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Ask ``url`` for this host's externally visible IPv6 address.

    Raises
    ------
    AddressDiscoveryError
        Transport failure, non-200 status, or a body that is not an
        IPv6 address.
    """
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise AddressDiscoveryError.from_exception(
            e, f"Address discovery request to {url} failed: {e}"
        ).with_details(url=url)
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code != 200:
        raise AddressDiscoveryError(
            f"Address discovery returned HTTP {response.status_code}",
            details={"url": url, "status_code": response.status_code},
        )

    address = response.text.strip()
    if ":" not in address or not AddressValidator.is_ipv6(address):
        raise AddressDiscoveryError(
            f"Address discovery returned an invalid IPv6 address: {address[:64]!r}",
            details={"url": url},
        )

    logger.debug(f"Discovery answered {address}")
    return address


def expand_ipv6(address: str) -> str:
    """
    Spell out all eight groups of an IPv6 address, joined by dashes.

    >>> expand_ipv6("2001:db8::1")
    '2001-0db8-0000-0000-0000-0000-0000-0001'
    """
    try:
        parsed = ipaddress.IPv6Address(address.strip())
    except (ipaddress.AddressValueError, AttributeError) as e:
        raise TargetNameError(f"Not an IPv6 address: {address!r}", cause=e)
    return parsed.exploded.replace(":", "-")


def build_target_domain(address: str, suffix: str) -> str:
    """Probe target name for ``address`` under ``suffix``."""
    domain = f"{expand_ipv6(address)}.{suffix.strip('.')}"
    if not AddressValidator.is_valid_domain(domain):
        raise TargetNameError(
            f"Constructed target {domain!r} is not a valid domain name",
            details={"address": address, "suffix": suffix},
        )
    return domain


async def resolve_target(settings: Settings) -> str:
    """
    Target name for this process: the configured override if there is
    one, otherwise derived from the discovered public address.
    """
    monitoring = settings.monitoring
    if monitoring.target_domain:
        logger.info(f"Using configured target {monitoring.target_domain}")
        return monitoring.target_domain

    address = await discover_public_address(
        monitoring.discovery_url, timeout=monitoring.discovery_timeout
    )
    domain = build_target_domain(address, monitoring.target_suffix)
    logger.info(f"Public address {address} => target {domain}")
    return domain
