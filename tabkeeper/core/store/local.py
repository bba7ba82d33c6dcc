"""Local filesystem key-value store.

Stores each key as a JSON file under a data root with optional namespace
prefix::

    {data_root}/{prefix}/store/{key}.json

When prefix is None, the path collapses to::

    {data_root}/store/{key}.json

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed over the target path.  A crash mid-write leaves the previous
value intact.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from functools import partial
from pathlib import Path

from anyio import to_thread

from tabkeeper.core.store.base import StorageUnavailableError


class LocalKeyValueStore:
    """Local filesystem implementation of the KeyValueStore protocol.

    Layout::

        {base}/store/{key}.json

    Where ``base`` is ``data_root / prefix`` (or just ``data_root`` if no prefix).
    """

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        base = Path(data_root).expanduser()
        if prefix:
            base = base / prefix
        self._base = base / "store"

    def path_for(self, key: str) -> Path:
        return self._base / f"{key}.json"

    async def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return await to_thread.run_sync(partial(_read_file, path))
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Cannot read {path}: {exc}"
            raise StorageUnavailableError(msg) from exc

    async def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            await to_thread.run_sync(partial(_atomic_write, path, value))
        except OSError as exc:
            msg = f"Cannot write {path}: {exc}"
            raise StorageUnavailableError(msg) from exc

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            await to_thread.run_sync(partial(path.unlink, missing_ok=True))
        except OSError as exc:
            msg = f"Cannot delete {path}: {exc}"
            raise StorageUnavailableError(msg) from exc


# -- Sync helpers (run in thread pool) -----------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    The temp file is created in the same directory so ``os.replace`` is atomic
    on POSIX and Windows.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _read_file(path: Path) -> str:
    """Read file contents.  Raises ``FileNotFoundError`` if missing."""
    return path.read_text(encoding="utf-8")
