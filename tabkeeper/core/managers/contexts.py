"""Context repository -- workspace lifecycle over the persisted collection.

Every operation loads the whole collection, transforms a private copy and
(if anything changed) writes the whole collection back.  Operations on one
repository instance are serialized by a lock; separate instances sharing a
store are last-write-wins.

Lifecycle of a single Context::

    capture -> Active <-> Trashed -> (purged)

Mutations that target an unknown id are silent no-ops and return ``False``;
the record may already have been purged by another caller.

Reads for display fall back to an empty collection when the store is
unreadable.  Mutations load strictly and raise ``StorageUnavailableError``
instead, so a failed or partial read is never written back over the stored
records.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

import anyio
from loguru import logger

from tabkeeper.core.gateway import GatewayUnavailableError
from tabkeeper.core.ids import new_context_id, unique_context_id
from tabkeeper.core.models.context import Context, Tab
from tabkeeper.core.timeago import now_ms

if TYPE_CHECKING:
    from tabkeeper.core.gateway import TabGateway
    from tabkeeper.core.store.collection import ContextStorage

DEFAULT_NAME_TEMPLATE = "Workspace {}"


class InvalidContextNameError(ValueError):
    """Raised when a Context name is empty after trimming."""


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        msg = "Workspace name must not be empty"
        raise InvalidContextNameError(msg)
    return cleaned


def _newest_first(contexts: Iterable[Context]) -> list[Context]:
    # sorted() is stable, so equal timestamps keep insertion order.
    return sorted(contexts, key=lambda c: c.timestamp, reverse=True)


class ContextRepository:
    """CRUD and trash/restore/purge over the Context collection.

    ``gateway`` is only needed for ``capture_open_tabs`` and ``open_tabs``.
    ``clock`` returns epoch milliseconds; ``id_factory`` turns a clock reading
    into a candidate id.  Both are injectable for tests.
    """

    def __init__(
        self,
        storage: ContextStorage,
        gateway: TabGateway | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[int], str] = new_context_id,
    ) -> None:
        self._storage = storage
        self._gateway = gateway
        self._clock = clock
        self._id_factory = id_factory
        self._lock = anyio.Lock()

    # -- Create ----------------------------------------------------------------

    async def capture(self, tabs: Sequence[Tab], name: str | None = None) -> Context:
        """Persist a new active Context holding ``tabs`` in the given order.

        Without ``name`` the Context is labelled ``Workspace N`` where N is the
        number of active Contexts plus one.  Raises ``InvalidContextNameError``
        for a blank ``name`` and ``StorageUnavailableError`` if the stored
        collection cannot be read in full or the write fails.
        """
        cleaned = _clean_name(name) if name is not None else None

        async with self._lock:
            contexts = await self._storage.load(strict=True)
            now = self._clock()
            if cleaned is None:
                active_count = sum(1 for c in contexts if not c.is_trashed)
                cleaned = DEFAULT_NAME_TEMPLATE.format(active_count + 1)

            context = Context(
                id=unique_context_id({c.id for c in contexts}, now, self._id_factory),
                name=cleaned,
                timestamp=now,
                tabs=list(tabs),
                is_trashed=False,
            )
            contexts.append(context)
            await self._storage.save(contexts)

        logger.info("Context captured: {} ({!r}, {} tabs)", context.id, context.name, len(context.tabs))
        return context

    async def capture_open_tabs(
        self,
        name: str | None = None,
        *,
        selected: Iterable[int] | None = None,
    ) -> Context:
        """Capture the gateway's open tabs, optionally only the ``selected`` indices.

        Selected tabs keep window order regardless of the order of ``selected``.
        Out-of-range indices are ignored.
        """
        gateway = self._require_gateway()
        tabs = await gateway.list_open_tabs()
        if selected is not None:
            wanted = set(selected)
            tabs = [tab for i, tab in enumerate(tabs) if i in wanted]
        return await self.capture(tabs, name)

    # -- Read ------------------------------------------------------------------

    async def list(self, include_trashed: bool = False) -> list[Context]:
        """Return the active subset, or the trashed subset, newest first."""
        contexts = await self._storage.load()
        return _newest_first(c for c in contexts if c.is_trashed == include_trashed)

    async def get(self, context_id: str) -> Context | None:
        """Look up a Context in either subset."""
        for context in await self._storage.load():
            if context.id == context_id:
                return context
        return None

    # -- Update ----------------------------------------------------------------

    async def rename(self, context_id: str, new_name: str) -> bool:
        """Set the trimmed ``new_name``.  Raises ``InvalidContextNameError`` if blank."""
        cleaned = _clean_name(new_name)
        changed = await self._update(context_id, name=cleaned)
        if changed:
            logger.info("Context renamed: {} -> {!r}", context_id, cleaned)
        return changed

    async def move_to_trash(self, context_id: str) -> bool:
        """Mark a Context trashed.  Trashing a trashed Context succeeds."""
        changed = await self._update(context_id, is_trashed=True)
        if changed:
            logger.info("Context moved to trash: {}", context_id)
        return changed

    async def restore(self, context_id: str) -> bool:
        """Mark a Context active again.  Does not reopen its tabs."""
        changed = await self._update(context_id, is_trashed=False)
        if changed:
            logger.info("Context restored: {}", context_id)
        return changed

    # -- Delete ----------------------------------------------------------------

    async def purge(self, context_id: str) -> bool:
        """Permanently remove a Context, trashed or not.  Irreversible."""
        async with self._lock:
            contexts = await self._storage.load(strict=True)
            remaining = [c for c in contexts if c.id != context_id]
            if len(remaining) == len(contexts):
                logger.debug("Purge skipped, context not found: {}", context_id)
                return False
            await self._storage.save(remaining)

        logger.info("Context purged: {}", context_id)
        return True

    async def empty_trash(self) -> int:
        """Purge every trashed Context in a single write.  Returns the count."""
        async with self._lock:
            contexts = await self._storage.load(strict=True)
            remaining = [c for c in contexts if not c.is_trashed]
            removed = len(contexts) - len(remaining)
            if removed:
                await self._storage.save(remaining)

        if removed:
            logger.info("Trash emptied: {} contexts purged", removed)
        return removed

    async def reset(self) -> None:
        """Delete the whole stored collection, including records that no longer parse."""
        async with self._lock:
            await self._storage.clear()
        logger.warning("Context collection '{}' reset", self._storage.key)

    # -- Browser ---------------------------------------------------------------

    async def open_tabs(self, context: Context) -> None:
        """Open every tab of ``context`` in stored order.  Never touches storage."""
        gateway = self._require_gateway()
        for tab in context.tabs:
            await gateway.open_tab(tab.url)
        logger.info("Opened {} tabs from context {}", len(context.tabs), context.id)

    # -- Internals -------------------------------------------------------------

    def _require_gateway(self) -> TabGateway:
        if self._gateway is None:
            msg = "No tab gateway configured"
            raise GatewayUnavailableError(msg)
        return self._gateway

    async def _update(self, context_id: str, **changes: object) -> bool:
        """Apply ``changes`` to the matching record in place and persist."""
        async with self._lock:
            contexts = await self._storage.load(strict=True)
            for index, context in enumerate(contexts):
                if context.id == context_id:
                    contexts[index] = context.model_copy(update=changes)
                    break
            else:
                logger.debug("Update skipped, context not found: {}", context_id)
                return False
            await self._storage.save(contexts)
        return True
