"""Shared test fixtures.

Every test gets its own data root so nothing touches ``~/.tabkeeper``.
Repository tests run against the in-memory store with a controllable clock.
"""

from __future__ import annotations

import pytest

from tabkeeper.core.gateway import RecordingGateway
from tabkeeper.core.managers.contexts import ContextRepository
from tabkeeper.core.models.context import Tab
from tabkeeper.core.settings import get_settings
from tabkeeper.core.store.base import StorageUnavailableError
from tabkeeper.core.store.collection import ContextStorage
from tabkeeper.core.store.memory import MemoryKeyValueStore


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1000) -> None:
        self.now += ms


class BrokenStore:
    """KeyValueStore whose backend is always unavailable."""

    def __init__(self) -> None:
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        msg = "disk on fire"
        raise StorageUnavailableError(msg)

    async def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        msg = "disk on fire"
        raise StorageUnavailableError(msg)

    async def delete(self, key: str) -> None:
        msg = "disk on fire"
        raise StorageUnavailableError(msg)


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point settings at a temporary data root and invalidate the cache."""
    monkeypatch.setenv("TABKEEPER_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("TABKEEPER_STORE", "local")
    monkeypatch.delenv("TABKEEPER_DATA_PREFIX", raising=False)
    monkeypatch.delenv("TABKEEPER_TABS_FILE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def storage(kv: MemoryKeyValueStore) -> ContextStorage:
    return ContextStorage(kv)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway(
        [
            Tab(url="https://a.com", title="A"),
            Tab(url="https://b.com", title="B"),
            Tab(url="https://c.com", title="C", fav_icon_url="https://c.com/favicon.ico"),
        ]
    )


@pytest.fixture
def repo(storage: ContextStorage, gateway: RecordingGateway, clock: FakeClock) -> ContextRepository:
    return ContextRepository(storage, gateway, clock=clock)


@pytest.fixture
def broken_store() -> BrokenStore:
    return BrokenStore()
