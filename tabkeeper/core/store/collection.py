"""Whole-collection storage for Contexts.

The entire collection is one JSON array under one key.  ``save`` replaces it;
there is no patching, so every higher-level mutation is a read-modify-write.

Two ways to load:

- ``load()`` is for rendering.  An unreadable store or a corrupt value yields
  an empty collection, and records that fail validation are skipped.
- ``load(strict=True)`` is for read-modify-write.  Anything short of a clean
  read raises, so a write can never replace stored records it failed to see.

``save`` never hides a failure.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from tabkeeper.core.models.context import Context
from tabkeeper.core.store.base import StorageUnavailableError

if TYPE_CHECKING:
    from tabkeeper.core.store.base import KeyValueStore

DEFAULT_COLLECTION_KEY = "contexts"


class CorruptCollectionError(StorageUnavailableError):
    """Raised by a strict load when the stored collection cannot be parsed in full."""


class ContextStorage:
    """Load and save the Context collection through a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_COLLECTION_KEY) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def load(self, *, strict: bool = False) -> list[Context]:
        """Return the persisted collection, ``[]`` on first run.

        Lenient mode returns ``[]`` for an unreadable or corrupt collection.
        With ``strict`` it raises ``StorageUnavailableError`` (or its subclass
        ``CorruptCollectionError``) instead.
        """
        try:
            raw = await self._store.get(self._key)
        except StorageUnavailableError as exc:
            if strict:
                raise
            logger.warning("Context store unavailable, loading empty collection: {}", exc)
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            return self._corrupt(f"Stored collection '{self._key}' is not valid JSON: {exc}", strict)

        if not isinstance(data, list):
            return self._corrupt(f"Stored collection '{self._key}' is not a list", strict)

        contexts: list[Context] = []
        for index, item in enumerate(data):
            try:
                contexts.append(Context.model_validate(item))
            except ValidationError as exc:
                if strict:
                    msg = f"Invalid context record #{index} in '{self._key}': {exc}"
                    raise CorruptCollectionError(msg) from exc
                logger.warning("Skipping invalid context record #{} in '{}': {}", index, self._key, exc)
        return contexts

    async def save(self, contexts: list[Context]) -> None:
        """Replace the persisted collection.  Raises ``StorageUnavailableError``."""
        payload = json.dumps([c.to_record() for c in contexts], indent=2, ensure_ascii=False)
        await self._store.set(self._key, payload)
        logger.debug("Saved {} contexts to '{}'", len(contexts), self._key)

    async def clear(self) -> None:
        """Delete the stored collection, corrupt or not.  Raises ``StorageUnavailableError``."""
        await self._store.delete(self._key)
        logger.debug("Cleared collection '{}'", self._key)

    def _corrupt(self, message: str, strict: bool) -> list[Context]:
        if strict:
            raise CorruptCollectionError(message)
        logger.warning("{}, loading empty collection", message)
        return []
