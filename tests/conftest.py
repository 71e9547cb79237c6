"""
Shared fixtures for influx-nozzle tests.
"""

from typing import Callable, List

import httpx
import pytest


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class CountingDestination:
    """Destination that counts how often the host is requested."""

    def __init__(self, host: str = "http://influx.local:8086"):
        self.host = host
        self.calls = 0

    def get_host(self) -> str:
        self.calls += 1
        return self.host


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def destination() -> CountingDestination:
    return CountingDestination()


@pytest.fixture
def mock_http() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory
