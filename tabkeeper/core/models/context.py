"""Workspace data model.

A Context is a named, timestamped snapshot of browser tabs.  The whole
collection lives under a single key as a JSON array; field names on the wire
are ``id, name, timestamp, tabs, isTrashed`` and ``url, title, favIconUrl``
for tabs.  Records written before the trash feature existed have no
``isTrashed`` and load as active.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNTITLED_TAB = "Untitled"


class Tab(BaseModel):
    """A captured browser tab.  Only ever stored inside a Context."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    title: str = UNTITLED_TAB
    fav_icon_url: str | None = Field(default=None, alias="favIconUrl")


class Context(BaseModel):
    """Workspace record (one element of the persisted collection)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    timestamp: int = Field(description="Creation time, epoch milliseconds")
    tabs: list[Tab] = Field(default_factory=list, description="Capture order")
    is_trashed: bool = Field(default=False, alias="isTrashed")

    @field_validator("is_trashed", mode="before")
    @classmethod
    def _only_true_is_trashed(cls, value: Any) -> bool:
        # Anything other than a real boolean true counts as active.
        return value is True

    def to_record(self) -> dict:
        """Serialize with wire field names."""
        return self.model_dump(mode="json", by_alias=True)
