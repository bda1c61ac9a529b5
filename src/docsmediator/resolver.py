"""Library resolution.

``normalise_query`` and ``select_match`` are pure; ``DocsResolver`` adds the
cache in front of the Docs Transport Client. The resolver owns no I/O of its
own: both collaborators are injected.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

from docsmediator.cache import cache_key
from docsmediator.errors import ConfigurationError

if TYPE_CHECKING:
    from docsmediator.models.docs import LibraryMatch
    from docsmediator.protocols import CacheProtocol, DocsClientProtocol

log = structlog.get_logger()


def normalise_query(raw: str) -> str:
    """Normalise a raw library name for searching.

    Steps (order matters):
      1. Strip pip extras:     "package[extra1,extra2]" → "package"
      2. Strip version specs:  "package>=1.0,<2.0" → "package"
      3. Lowercase
      4. Trim whitespace
    """
    query = re.sub(r"\[.*?\]", "", raw)
    query = re.sub(r"[><=!~^].+", "", query)
    query = query.lower()
    query = query.strip()
    return query


def select_match(query: str, matches: list[LibraryMatch]) -> LibraryMatch | None:
    """Pick the most relevant search result for ``query``.

    The first match whose id or title contains the query (case-insensitive)
    wins; otherwise the first result. Returns ``None`` for an empty list.
    """
    if not matches:
        return None
    needle = normalise_query(query) or query.strip().lower()
    if needle:
        for match in matches:
            if needle in match.id.lower() or needle in match.title.lower():
                return match
    return matches[0]


class DocsResolver:
    """Cache-checked documentation resolution."""

    def __init__(
        self,
        cache: CacheProtocol,
        docs: DocsClientProtocol,
        *,
        default_token_budget: int = 10000,
    ) -> None:
        self._cache = cache
        self._docs = docs
        self._default_token_budget = default_token_budget

    async def resolve_docs(
        self,
        library_name: str,
        topic: str | None = None,
        token_budget: int | None = None,
    ) -> str:
        """Return documentation text for a library, empty if none is available."""
        key = cache_key(library_name, topic)
        cached = await self._cache.get(key)
        if cached is not None:
            log.info("cache_hit", key=key)
            return cached

        log.info("cache_miss", key=key)
        text = await self._docs.fetch_docs_for_library(
            library_name,
            topic,
            token_budget or self._default_token_budget,
        )
        if text.strip():
            await self._cache.put(key, text)
        return text

    async def auto_select_libraries(self, query_text: str, top_n: int) -> list[str]:
        """Search the Docs Service and return up to ``top_n`` library ids.

        Raises TransportError when the search fails and ConfigurationError
        when the REST transport is disabled.
        """
        if not self._docs.search_enabled:
            raise ConfigurationError("Auto-search needs the Docs Service REST transport")
        matches = await self._docs.search(query_text)
        ids = [m.id for m in matches if m.id.strip()]
        selected = ids[: max(top_n, 0)]
        log.info("auto_select_complete", query=query_text, candidates=len(ids), selected=selected)
        return selected
