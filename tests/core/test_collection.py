"""Unit tests for ContextStorage (whole-collection load/save)."""

from __future__ import annotations

import json

import pytest

from tabkeeper.core.models.context import Context, Tab
from tabkeeper.core.store.base import StorageUnavailableError
from tabkeeper.core.store.collection import ContextStorage, CorruptCollectionError
from tabkeeper.core.store.local import LocalKeyValueStore
from tabkeeper.core.store.memory import MemoryKeyValueStore


def _context(context_id: str, **kwargs) -> Context:
    defaults = {"name": f"Workspace {context_id}", "timestamp": 1_700_000_000_000}
    defaults.update(kwargs)
    return Context(id=context_id, **defaults)


async def test_load_first_run_is_empty(storage: ContextStorage) -> None:
    assert await storage.load() == []


async def test_save_then_load(storage: ContextStorage) -> None:
    contexts = [
        _context("1", tabs=[Tab(url="https://a.com", title="A")]),
        _context("2", is_trashed=True),
    ]
    await storage.save(contexts)
    assert await storage.load() == contexts


async def test_saved_wire_format(storage: ContextStorage, kv: MemoryKeyValueStore) -> None:
    await storage.save([_context("1", tabs=[Tab(url="https://a.com", title="A", fav_icon_url="https://a.com/f.ico")])])

    data = json.loads(await kv.get("contexts"))
    assert data == [
        {
            "id": "1",
            "name": "Workspace 1",
            "timestamp": 1_700_000_000_000,
            "tabs": [{"url": "https://a.com", "title": "A", "favIconUrl": "https://a.com/f.ico"}],
            "isTrashed": False,
        }
    ]


async def test_missing_is_trashed_loads_active(kv: MemoryKeyValueStore) -> None:
    legacy = [{"id": "1", "name": "Old", "timestamp": 1, "tabs": [{"url": "https://a.com", "title": "A"}]}]
    await kv.set("contexts", json.dumps(legacy))

    loaded = await ContextStorage(kv).load()
    assert len(loaded) == 1
    assert loaded[0].is_trashed is False
    assert loaded[0].tabs[0].fav_icon_url is None


@pytest.mark.parametrize("raw", ["not json", '{"contexts": []}', "42"])
async def test_corrupt_value_loads_empty(kv: MemoryKeyValueStore, raw: str) -> None:
    await kv.set("contexts", raw)
    assert await ContextStorage(kv).load() == []


async def test_invalid_records_are_skipped(kv: MemoryKeyValueStore) -> None:
    await kv.set(
        "contexts",
        json.dumps([
            {"id": "1", "name": "Good", "timestamp": 1, "tabs": []},
            {"name": "No id"},
            "garbage",
        ]),
    )
    loaded = await ContextStorage(kv).load()
    assert [c.id for c in loaded] == ["1"]


async def test_load_unavailable_fails_closed(broken_store) -> None:
    assert await ContextStorage(broken_store).load() == []


async def test_strict_load_first_run_is_empty(storage: ContextStorage) -> None:
    assert await storage.load(strict=True) == []


async def test_strict_load_propagates_unavailable(broken_store) -> None:
    with pytest.raises(StorageUnavailableError):
        await ContextStorage(broken_store).load(strict=True)


@pytest.mark.parametrize(("raw", "message"), [("not json", "not valid JSON"), ('{"contexts": []}', "not a list")])
async def test_strict_load_rejects_corrupt_value(kv: MemoryKeyValueStore, raw: str, message: str) -> None:
    await kv.set("contexts", raw)
    with pytest.raises(CorruptCollectionError, match=message):
        await ContextStorage(kv).load(strict=True)


async def test_strict_load_rejects_invalid_record(kv: MemoryKeyValueStore) -> None:
    await kv.set("contexts", json.dumps([{"id": "1", "name": "Good", "timestamp": 1, "tabs": []}, "garbage"]))
    with pytest.raises(CorruptCollectionError, match="#1"):
        await ContextStorage(kv).load(strict=True)


def test_corrupt_collection_is_storage_unavailable() -> None:
    assert issubclass(CorruptCollectionError, StorageUnavailableError)


async def test_clear_deletes_key(storage: ContextStorage, kv: MemoryKeyValueStore) -> None:
    await storage.save([_context("1")])
    await storage.clear()
    assert await kv.get("contexts") is None
    assert await storage.load(strict=True) == []


async def test_clear_local_store(tmp_path) -> None:
    local = LocalKeyValueStore(tmp_path)
    storage = ContextStorage(local)
    await storage.save([_context("1")])

    await storage.clear()
    assert not local.path_for("contexts").exists()
    await storage.clear()


async def test_save_unavailable_propagates(broken_store) -> None:
    with pytest.raises(StorageUnavailableError):
        await ContextStorage(broken_store).save([_context("1")])


async def test_custom_key(kv: MemoryKeyValueStore) -> None:
    storage = ContextStorage(kv, key="profile-2")
    await storage.save([_context("1")])
    assert await kv.get("contexts") is None
    assert await kv.get("profile-2") is not None
    assert storage.key == "profile-2"


async def test_local_store_roundtrip(tmp_path) -> None:
    storage = ContextStorage(LocalKeyValueStore(tmp_path))
    await storage.save([_context("1"), _context("2")])

    reopened = ContextStorage(LocalKeyValueStore(tmp_path))
    assert [c.id for c in await reopened.load()] == ["1", "2"]
