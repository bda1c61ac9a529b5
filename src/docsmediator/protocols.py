"""Protocol interfaces for swappable components.

Handlers and AppState reference these protocols, not the concrete
implementations, so tests can substitute lightweight fakes for the network
clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from docsmediator.models.cache import CacheEntry
    from docsmediator.models.docs import LibraryMatch


class CacheProtocol(Protocol):
    """Interface for the documentation cache."""

    async def get(self, key: str) -> str | None: ...

    async def put(self, key: str, text: str) -> None: ...

    async def peek(self, key: str) -> CacheEntry | None: ...

    def age_of(self, entry: CacheEntry) -> float: ...


class DocsClientProtocol(Protocol):
    """Interface for the Docs Service transport client."""

    @property
    def search_enabled(self) -> bool: ...

    async def search(self, query: str) -> list[LibraryMatch]: ...

    async def fetch_docs_for_library(
        self,
        library_name: str,
        topic: str | None,
        token_budget: int,
    ) -> str: ...


class ResolverProtocol(Protocol):
    """Interface used by the chat orchestrator."""

    async def resolve_docs(
        self,
        library_name: str,
        topic: str | None = None,
        token_budget: int | None = None,
    ) -> str: ...

    async def auto_select_libraries(self, query_text: str, top_n: int) -> list[str]: ...


class CompletionProtocol(Protocol):
    """Interface for the Completion Service client."""

    async def complete(self, prompt: str) -> str: ...
