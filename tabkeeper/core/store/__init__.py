"""Key-value store implementations for workspace persistence."""

from tabkeeper.core.store.base import KeyValueStore, StorageUnavailableError
from tabkeeper.core.store.collection import ContextStorage, CorruptCollectionError
from tabkeeper.core.store.local import LocalKeyValueStore
from tabkeeper.core.store.memory import MemoryKeyValueStore

__all__ = [
    "ContextStorage",
    "CorruptCollectionError",
    "KeyValueStore",
    "LocalKeyValueStore",
    "MemoryKeyValueStore",
    "StorageUnavailableError",
]
