from __future__ import annotations

from docsmediator.models.cache import CacheEntry
from docsmediator.models.chat import ChatRequest, ChatResponse, DebugTrace
from docsmediator.models.docs import LibraryMatch, ToolResult

__all__ = [
    # cache
    "CacheEntry",
    # docs service
    "LibraryMatch",
    "ToolResult",
    # chat
    "ChatRequest",
    "ChatResponse",
    "DebugTrace",
]
