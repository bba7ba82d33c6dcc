"""Data models for the workspace core."""

from tabkeeper.core.models.context import UNTITLED_TAB, Context, Tab

__all__ = [
    "UNTITLED_TAB",
    "Context",
    "Tab",
]
