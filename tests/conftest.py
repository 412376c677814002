"""Shared fixtures: shrunken settings, fake resolvers, polling helper."""

import asyncio
from typing import Callable, List, Optional

import pytest

from config.settings import (
    Environment,
    MonitoringSettings,
    ServerSettings,
    Settings,
    TrickleSettings,
)
from exceptions.monitoring import DNSResolutionError


def make_settings(
    byte_count: int = 30,
    byte_interval: float = 0.001,
    check_interval: float = 0.02,
    probe_deadline: float = 1.0,
    pipeline_depth: int = 2,
    target_port: int = 8080,
    **monitoring,
) -> Settings:
    return Settings(
        environment=Environment.TESTING,
        server=ServerSettings(host="127.0.0.1", port=8080),
        trickle=TrickleSettings(byte_count=byte_count, byte_interval=byte_interval),
        monitoring=MonitoringSettings(
            check_interval=check_interval,
            probe_deadline=probe_deadline,
            pipeline_depth=pipeline_depth,
            target_port=target_port,
            **monitoring,
        ),
    )


class StaticResolver:
    """Answers every lookup with the same address list."""

    def __init__(self, addresses: List[str]):
        self.addresses = addresses
        self.lookups: List[str] = []

    async def resolve(self, domain: str) -> List[str]:
        self.lookups.append(domain)
        return list(self.addresses)


class FailingResolver:
    def __init__(self):
        self.lookups: List[str] = []

    async def resolve(self, domain: str) -> List[str]:
        self.lookups.append(domain)
        raise DNSResolutionError(f"Domain {domain} does not exist (NXDOMAIN)", domain=domain)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def static_resolver() -> Callable[[List[str]], StaticResolver]:
    return StaticResolver


@pytest.fixture
def failing_resolver() -> FailingResolver:
    return FailingResolver()


@pytest.fixture
def wait_until():
    async def _wait_until(
        predicate: Callable[[], bool],
        timeout: float = 5.0,
        interval: float = 0.01,
        message: Optional[str] = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError(message or "condition not met in time")
            await asyncio.sleep(interval)

    return _wait_until
