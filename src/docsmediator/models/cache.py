from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CacheEntry(BaseModel):
    """Resolved documentation text for one (library, topic) pair."""

    model_config = ConfigDict(frozen=True)

    key: str  # "<library>|<topic or ''>"
    text: str
    stored_at: float  # Clock reading at put() time, in seconds
    stale: bool = False
