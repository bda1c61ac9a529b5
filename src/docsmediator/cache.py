"""In-memory documentation cache with TTL-based staleness.

One ``Cache`` instance lives for the lifetime of the process; the lifespan in
server.py creates it and hands it to the resolver through ``AppState``.

Entries are never deleted. An entry older than the TTL is reported as a miss
by ``get`` and overwritten by the next successful ``put``. The key space is
bounded by the distinct (library, topic) pairs callers ask for, so no
capacity limit is enforced.

``put`` stores a new frozen ``CacheEntry`` with a single dict assignment.
Under the asyncio runtime that replacement is atomic per key: concurrent
requests racing on the same key can at worst fetch upstream twice, and the
last writer wins.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from docsmediator.models.cache import CacheEntry

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()

DEFAULT_TTL_SECONDS = 3600.0


def cache_key(library: str, topic: str | None = None) -> str:
    """Build the cache key for a (library, topic) pair."""
    return f"{library}|{topic or ''}"


class Cache:
    """Process-scoped TTL cache implementing CacheProtocol."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def _is_stale(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.stored_at > self._ttl

    async def get(self, key: str) -> str | None:
        """Return cached text, or ``None`` on miss or stale entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_stale(entry):
            log.debug("cache_stale", key=key)
            return None
        return entry.text

    async def put(self, key: str, text: str) -> None:
        self._entries[key] = CacheEntry(key=key, text=text, stored_at=self._clock())

    async def peek(self, key: str) -> CacheEntry | None:
        """Return the stored entry regardless of age, flagged with ``stale``.

        Used by the diagnostic route only; resolution paths go through ``get``.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.model_copy(update={"stale": self._is_stale(entry)})

    def age_of(self, entry: CacheEntry) -> float:
        return max(0.0, self._clock() - entry.stored_at)
