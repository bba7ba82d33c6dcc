"""Key-value store interface for workspace persistence.

The store is a flat mapping of string keys to serialized (JSON text) values.
It knows nothing about Contexts; ``ContextStorage`` in ``collection.py`` owns
the record format.  The interface is async so local filesystem and remote
(S3) backends share one calling convention.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class StorageUnavailableError(RuntimeError):
    """Raised when the underlying store cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Async protocol for reading and writing whole values by key.

    Storage layout (keyed by name):
        {root}/store/{key}.json
    """

    async def get(self, key: str) -> str | None:
        """Read the value for ``key``.  Returns ``None`` if it was never written."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Replace the value for ``key``.  Readers never see a partial write."""
        ...

    async def delete(self, key: str) -> None:
        """Remove ``key``.  No-op if not found."""
        ...
