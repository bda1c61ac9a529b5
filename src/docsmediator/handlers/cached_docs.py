"""Handler for the read-only cached-docs diagnostic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from docsmediator.cache import cache_key
from docsmediator.errors import InvalidInputError, NotFoundError

if TYPE_CHECKING:
    from docsmediator.state import AppState


async def handle(library_id: str, topic: str | None, state: AppState) -> dict:
    """Return the cached text for ``library_id`` (and optional topic).

    Stale entries are still returned, flagged ``stale``; this route reports
    what is stored rather than what a chat request would use.
    """
    log = structlog.get_logger().bind(handler="cached_docs", library_id=library_id)

    if not library_id.strip():
        raise InvalidInputError("library id must not be empty")

    entry = await state.cache.peek(cache_key(library_id, topic or None))
    if entry is None:
        log.info("cached_docs_not_found")
        raise NotFoundError("not found")

    return {
        "libraryId": library_id,
        "topic": topic or None,
        "text": entry.text,
        "stale": entry.stale,
        "ageSeconds": round(state.cache.age_of(entry), 3),
    }
