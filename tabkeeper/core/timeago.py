"""Relative "time ago" labels for Context timestamps."""

from __future__ import annotations

import time
from datetime import datetime

_MINUTE_MS = 60_000
_HOUR_MS = 3_600_000
_DAY_MS = 86_400_000

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def format_time_ago(timestamp_ms: int, now: int | None = None) -> str:
    """Format a creation timestamp relative to ``now`` (both epoch ms).

    Under a minute is ``just now``; then minutes, hours and days up to 30 days
    (``5m ago``, ``3h ago``, ``12d ago``); older stamps show the local date as
    ``Mar 5``.
    """
    if now is None:
        now = now_ms()
    diff = now - timestamp_ms
    minutes = diff // _MINUTE_MS
    hours = diff // _HOUR_MS
    days = diff // _DAY_MS

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 30:
        return f"{days}d ago"

    created = datetime.fromtimestamp(timestamp_ms / 1000)
    return f"{_MONTHS[created.month - 1]} {created.day}"
