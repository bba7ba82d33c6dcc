"""Browser integration boundary.

The workspace core never talks to a browser directly.  It asks a
``TabGateway`` for the currently open tabs on capture and hands it URLs to
open on restore.  Two implementations ship here:

- ``WebBrowserGateway``: opens URLs with the standard ``webbrowser`` module and
  reads open tabs from a JSON export file (an array of
  ``{"url", "title", "favIconUrl"}`` objects, as produced by most tab-export
  browser extensions).
- ``RecordingGateway``: fixed tab list, records opened URLs.  For tests and
  scripted use.
"""

from __future__ import annotations

import json
import webbrowser
from collections.abc import Iterable, Mapping
from functools import partial
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from anyio import to_thread
from loguru import logger

from tabkeeper.core.models.context import UNTITLED_TAB, Tab


class GatewayUnavailableError(RuntimeError):
    """Raised when a browser operation is requested but no gateway is wired."""


class InvalidTabExportError(ValueError):
    """Raised when a tab export file is not a JSON array of tab objects."""


@runtime_checkable
class TabGateway(Protocol):
    """Async protocol for the two browser primitives the core needs."""

    async def list_open_tabs(self) -> list[Tab]:
        """Return the tabs open in the current window, in window order."""
        ...

    async def open_tab(self, url: str) -> None:
        """Open ``url`` as a new tab."""
        ...


def _text(raw: Mapping[str, Any], *keys: str) -> str:
    # Non-string values (numbers, null, nested objects) count as missing.
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def tab_from_browser(raw: Mapping[str, Any]) -> Tab:
    """Normalize a raw browser tab record into a ``Tab``.

    Missing url becomes ``""``; a missing or blank title becomes ``Untitled``.
    A field holding anything other than a string is treated as missing.
    """
    title = _text(raw, "title")
    return Tab(
        url=_text(raw, "url"),
        title=title if title.strip() else UNTITLED_TAB,
        fav_icon_url=_text(raw, "favIconUrl", "fav_icon_url") or None,
    )


class WebBrowserGateway:
    """Gateway backed by the system browser and a tab export file."""

    def __init__(self, tabs_file: str | Path | None = None, *, browser: webbrowser.BaseBrowser | None = None) -> None:
        self._tabs_file = Path(tabs_file).expanduser() if tabs_file else None
        self._browser = browser

    async def list_open_tabs(self) -> list[Tab]:
        if self._tabs_file is None:
            msg = "No tab export file configured (set TABKEEPER_TABS_FILE or pass --tabs-file)"
            raise GatewayUnavailableError(msg)
        try:
            raw = await to_thread.run_sync(partial(self._tabs_file.read_text, encoding="utf-8"))
        except OSError as exc:
            msg = f"Cannot read tab export {self._tabs_file}: {exc}"
            raise GatewayUnavailableError(msg) from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Tab export {self._tabs_file} is not valid JSON: {exc}"
            raise InvalidTabExportError(msg) from exc
        if not isinstance(data, list):
            msg = f"Tab export {self._tabs_file} must contain a JSON array"
            raise InvalidTabExportError(msg)
        return [tab_from_browser(item) for item in data if isinstance(item, Mapping)]

    async def open_tab(self, url: str) -> None:
        opener = self._browser.open_new_tab if self._browser is not None else webbrowser.open_new_tab
        opened = await to_thread.run_sync(opener, url)
        if not opened:
            logger.warning("Browser refused to open {}", url)


class RecordingGateway:
    """In-memory gateway: returns a fixed tab list and records opened URLs."""

    def __init__(self, tabs: Iterable[Tab | Mapping[str, Any]] = ()) -> None:
        self.tabs: list[Tab] = [t if isinstance(t, Tab) else tab_from_browser(t) for t in tabs]
        self.opened: list[str] = []

    async def list_open_tabs(self) -> list[Tab]:
        return list(self.tabs)

    async def open_tab(self, url: str) -> None:
        self.opened.append(url)
