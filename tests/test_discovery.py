import httpx
import pytest

from exceptions.base import AddressDiscoveryError, TargetNameError
from monitoring.discovery import (
    build_target_domain,
    discover_public_address,
    expand_ipv6,
    resolve_target,
)


@pytest.mark.parametrize(
    "address, expanded",
    [
        ("2001:db8::1", "2001-0db8-0000-0000-0000-0000-0000-0001"),
        ("::1", "0000-0000-0000-0000-0000-0000-0000-0001"),
        ("fe80::abcd:12:3:4", "fe80-0000-0000-0000-abcd-0012-0003-0004"),
        (" 2a02:8109:9c40:1234:5678:9abc:def0:1 ", "2a02-8109-9c40-1234-5678-9abc-def0-0001"),
    ],
)
def test_expand_ipv6(address, expanded):
    assert expand_ipv6(address) == expanded


@pytest.mark.parametrize("bad", ["", "not-an-address", "192.0.2.1", "2001:db8::zz"])
def test_expand_ipv6_rejects_malformed_input(bad):
    with pytest.raises(TargetNameError):
        expand_ipv6(bad)


def test_build_target_domain():
    assert (
        build_target_domain("2001:db8::1", "withfallback.com")
        == "2001-0db8-0000-0000-0000-0000-0000-0001.withfallback.com"
    )


def test_build_target_domain_rejects_bad_suffix():
    with pytest.raises(TargetNameError):
        build_target_domain("2001:db8::1", "not a domain")


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_discover_public_address_trims_body():
    client = mock_client(lambda request: httpx.Response(200, text="2001:db8::1\n"))

    address = await discover_public_address("http://myip.test/", client=client)

    assert address == "2001:db8::1"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["192.0.2.1", "", "<html>oops</html>"])
async def test_discover_public_address_requires_ipv6(body):
    client = mock_client(lambda request: httpx.Response(200, text=body))

    with pytest.raises(AddressDiscoveryError):
        await discover_public_address("http://myip.test/", client=client)


@pytest.mark.asyncio
async def test_discover_public_address_rejects_error_status():
    client = mock_client(lambda request: httpx.Response(503, text="2001:db8::1"))

    with pytest.raises(AddressDiscoveryError) as excinfo:
        await discover_public_address("http://myip.test/", client=client)

    assert excinfo.value.details["status_code"] == 503


@pytest.mark.asyncio
async def test_discover_public_address_transport_failure():
    def refuse(request):
        raise httpx.ConnectError("no route to host", request=request)

    with pytest.raises(AddressDiscoveryError) as excinfo:
        await discover_public_address("http://myip.test/", client=mock_client(refuse))

    assert isinstance(excinfo.value.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_resolve_target_prefers_configured_domain(settings_factory):
    settings = settings_factory(
        target_domain="peer.example.com",
        discovery_url="http://unreachable.invalid/",
    )

    assert await resolve_target(settings) == "peer.example.com"


@pytest.mark.asyncio
async def test_resolve_target_from_discovered_address(settings, monkeypatch):
    async def fake_discover(url, timeout=15.0, client=None):
        assert url == settings.monitoring.discovery_url
        return "2001:db8::1"

    monkeypatch.setattr("monitoring.discovery.discover_public_address", fake_discover)

    assert (
        await resolve_target(settings)
        == "2001-0db8-0000-0000-0000-0000-0000-0001.withfallback.com"
    )
