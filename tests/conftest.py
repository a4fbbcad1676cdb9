"""Pytest configuration and shared fixtures for namaste-client tests."""

import pytest

from namaste_client import APIClient, ClientConfig, MemoryStorage
from namaste_client.testing import MockAPI

BASE_URL = "http://api.test/api/v1"


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def now_ms(self) -> int:
        return int(self.now * 1000)

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear NAMASTE_* environment variables before each test."""
    import os

    for key in list(os.environ.keys()):
        if key.startswith("NAMASTE_"):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def api():
    return MockAPI()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL, max_retries=3, retry_base_delay_ms=100)


@pytest.fixture
async def make_client(api, storage, clock, sleeps, config):
    """Factory for clients wired to the mock API; closed after the test."""
    clients = []

    def factory(**kwargs):
        kwargs.setdefault("storage", storage)
        kwargs.setdefault("transport", api.transport)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sleep", sleeps)
        client = APIClient(kwargs.pop("config", config), **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
def client(make_client):
    return make_client()
