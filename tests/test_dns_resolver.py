from types import SimpleNamespace

import dns.asyncresolver
import dns.exception
import dns.resolver
import pytest

from exceptions.monitoring import DNSResolutionError
from monitoring.checker import DNSResolver


@pytest.fixture
def resolver():
    return DNSResolver(nameservers=["192.0.2.53"], port=5353, timeout=0.5)


def test_configured_from_arguments(resolver):
    inner = resolver._resolver
    assert isinstance(inner, dns.asyncresolver.Resolver)
    assert inner.nameservers == ["192.0.2.53"]
    assert inner.port == 5353
    assert inner.lifetime == 0.5
    assert inner.cache is None


@pytest.mark.asyncio
async def test_returns_a_record_addresses(resolver, monkeypatch):
    queries = []

    async def fake_resolve(name, rdtype):
        queries.append((name, rdtype))
        return [SimpleNamespace(address="203.0.113.7"), SimpleNamespace(address="203.0.113.8")]

    monkeypatch.setattr(resolver._resolver, "resolve", fake_resolve)

    assert await resolver.resolve("peer.example.com") == ["203.0.113.7", "203.0.113.8"]
    assert await resolver.resolve("peer.example.com") == ["203.0.113.7", "203.0.113.8"]
    assert queries == [("peer.example.com", "A")] * 2


@pytest.mark.asyncio
async def test_address_literals_skip_the_network(resolver, monkeypatch):
    async def fail(*args):
        raise AssertionError("should not query")

    monkeypatch.setattr(resolver._resolver, "resolve", fail)

    assert await resolver.resolve("127.0.0.1") == ["127.0.0.1"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        dns.resolver.NXDOMAIN(),
        dns.resolver.NoAnswer(),
        dns.exception.Timeout(),
        dns.exception.DNSException("server failure"),
    ],
)
async def test_resolver_failures_become_resolution_errors(resolver, monkeypatch, error):
    async def failing(name, rdtype):
        raise error

    monkeypatch.setattr(resolver._resolver, "resolve", failing)

    with pytest.raises(DNSResolutionError) as excinfo:
        await resolver.resolve("peer.example.com")

    assert excinfo.value.cause is error
    assert excinfo.value.details["domain"] == "peer.example.com"
