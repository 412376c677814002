import asyncio
from typing import List

import httpx
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from monitoring.checker import TrickleChecker


TARGET = "2001-0db8-0000-0000-0000-0000-0000-0001.withfallback.com"


async def trickle_body(total: int, chunk: int = 1, stall_after=None, fail_after=None):
    sent = 0
    while sent < total:
        if stall_after is not None and sent >= stall_after:
            await asyncio.sleep(30)
        if fail_after is not None and sent >= fail_after:
            raise httpx.ReadError("connection reset by peer")
        size = min(chunk, total - sent)
        sent += size
        yield b"x" * size
        await asyncio.sleep(0)


class RecordingHandler:
    """MockTransport handler serving a trickle body and remembering requests."""

    def __init__(self, total: int = 30, **body_kwargs):
        self.total = total
        self.body_kwargs = body_kwargs
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, content=trickle_body(self.total, **self.body_kwargs))


def make_checker(settings, handler, resolver) -> TrickleChecker:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TrickleChecker(settings, client=client, resolver=resolver)


@pytest.mark.asyncio
async def test_exactly_expected_bytes_is_up(settings, static_resolver):
    handler = RecordingHandler(total=30)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is True
    assert result.bytes_received == 30
    assert result.address == "203.0.113.7"
    assert result.status_code == 200
    assert result.error_type is None


@pytest.mark.asyncio
async def test_request_goes_to_address_with_virtual_host(settings, static_resolver):
    handler = RecordingHandler(total=30)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    await checker.check(TARGET)

    (request,) = handler.requests
    assert request.method == "GET"
    assert request.url.host == "203.0.113.7"
    assert request.url.port == 8080
    assert request.url.path == "/trickle"
    assert request.headers["host"] == TARGET


@pytest.mark.asyncio
async def test_chunk_boundaries_do_not_matter(settings, static_resolver):
    handler = RecordingHandler(total=30, chunk=7)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    assert await checker.check(TARGET) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("total", [0, 10, 29, 31, 60])
async def test_any_other_byte_count_is_down(settings, static_resolver, total):
    handler = RecordingHandler(total=total)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.error_type == "ByteCountMismatch"


@pytest.mark.asyncio
async def test_stall_past_deadline_is_down(settings_factory, static_resolver):
    settings = settings_factory(probe_deadline=0.2)
    handler = RecordingHandler(total=30, stall_after=12)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.error_type == "ProbeTimeoutError"
    assert result.bytes_received == 12
    assert loop.time() - started < 2.0


@pytest.mark.asyncio
async def test_ipv6_only_resolution_is_down_without_connecting(settings, static_resolver):
    handler = RecordingHandler(total=30)
    resolver = static_resolver(["2001:db8::1"])
    checker = make_checker(settings, handler, resolver)

    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.error_type == "DNSResolutionError"
    assert resolver.lookups == [TARGET]
    assert handler.requests == []


@pytest.mark.asyncio
async def test_resolver_failure_is_down_without_connecting(settings, failing_resolver):
    handler = RecordingHandler(total=30)
    checker = make_checker(settings, handler, failing_resolver)

    assert await checker.check(TARGET) is False
    assert handler.requests == []


@pytest.mark.asyncio
async def test_first_ipv4_address_is_used(settings, static_resolver):
    handler = RecordingHandler(total=30)
    checker = make_checker(
        settings, handler, static_resolver(["2001:db8::1", "198.51.100.4", "198.51.100.5"])
    )

    result = await checker.probe(TARGET)

    assert result.up is True
    assert handler.requests[0].url.host == "198.51.100.4"


@pytest.mark.asyncio
async def test_resolution_is_repeated_for_every_probe(settings, static_resolver):
    handler = RecordingHandler(total=30)
    resolver = static_resolver(["203.0.113.7"])
    checker = make_checker(settings, handler, resolver)

    for _ in range(3):
        await checker.check(TARGET)

    assert resolver.lookups == [TARGET] * 3


@pytest.mark.asyncio
async def test_connection_failure_is_down(settings, static_resolver):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    checker = TrickleChecker(settings, client=client, resolver=static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.error_type == "ProbeTransportError"
    assert result.bytes_received == 0


@pytest.mark.asyncio
async def test_stream_error_keeps_bytes_already_counted(settings, static_resolver):
    handler = RecordingHandler(total=30, fail_after=12)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.bytes_received == 12
    assert result.error_type == "ReadError"


@pytest.mark.asyncio
async def test_stream_error_after_full_count_is_still_up(settings, static_resolver):
    handler = RecordingHandler(total=31, fail_after=30)
    checker = make_checker(settings, handler, static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is True
    assert result.bytes_received == 30


@pytest.mark.asyncio
async def test_status_code_does_not_decide_outcome(settings, static_resolver):
    def not_found(request):
        return httpx.Response(404, content=trickle_body(9, chunk=9))

    client = httpx.AsyncClient(transport=httpx.MockTransport(not_found))
    checker = TrickleChecker(settings, client=client, resolver=static_resolver(["203.0.113.7"]))

    result = await checker.probe(TARGET)

    assert result.up is False
    assert result.status_code == 404
    assert result.bytes_received == 9


@pytest.mark.asyncio
async def test_deadline_closes_the_connection(settings_factory, static_resolver):
    release = asyncio.Event()

    async def stalled_trickle(request):
        response = web.StreamResponse()
        response.content_length = 30
        await response.prepare(request)
        await response.write(b"x" * 5)
        try:
            await asyncio.wait_for(release.wait(), timeout=5)
        except asyncio.TimeoutError:
            pass
        return response

    app = web.Application()
    app.router.add_get("/trickle", stalled_trickle)

    async with TestServer(app, host="127.0.0.1") as server:
        settings = settings_factory(probe_deadline=0.5, target_port=server.port)
        checker = TrickleChecker(settings, resolver=static_resolver(["127.0.0.1"]))
        try:
            result = await checker.probe(TARGET)
            pool = checker._client._transport._pool
            assert pool.connections == []
        finally:
            release.set()
            await checker.aclose()

    assert result.up is False
    assert result.error_type == "ProbeTimeoutError"
    assert result.bytes_received == 5
