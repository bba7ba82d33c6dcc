"""Context identifiers.

Ids are the creation time in epoch milliseconds rendered as a string.  Two
captures inside the same millisecond would collide, so callers check the
candidate against the live collection and fall back to a salted variant.
"""

from __future__ import annotations

import secrets
import uuid
from collections.abc import Callable, Collection

from loguru import logger

MAX_ID_ATTEMPTS = 8


def new_context_id(now_ms: int) -> str:
    return str(now_ms)


def salted_context_id(base: str) -> str:
    return f"{base}-{secrets.token_hex(3)}"


def unique_context_id(
    existing: Collection[str],
    now_ms: int,
    factory: Callable[[int], str] = new_context_id,
) -> str:
    """Return an id derived from ``now_ms`` that is not in ``existing``."""
    base = factory(now_ms)
    candidate = base
    for _ in range(MAX_ID_ATTEMPTS):
        if candidate not in existing:
            return candidate
        logger.warning("Context id collision on {}, regenerating", candidate)
        candidate = salted_context_id(base)
    # Salted candidates exhausted.
    return uuid.uuid4().hex
