"""Fixtures for handler and HTTP app tests.

The network clients are replaced by in-process fakes; the cache and the
resolver are the real implementations so cache behaviour is exercised end to
end.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docsmediator.cache import Cache
from docsmediator.models.docs import LibraryMatch
from docsmediator.resolver import DocsResolver
from docsmediator.state import AppState

if TYPE_CHECKING:
    from docsmediator.config import Settings
    from tests.conftest import FakeClock


class FakeDocs:
    """In-process stand-in for DocsClient."""

    def __init__(self) -> None:
        self.texts: dict[str, str] = {}
        self.errors: dict[str, Exception] = {}
        self.matches: list[LibraryMatch] = []
        self.search_error: Exception | None = None
        self.search_enabled = True
        self.fetch_calls: list[tuple[str, str | None, int]] = []
        self.search_calls: list[str] = []

    async def search(self, query: str) -> list[LibraryMatch]:
        self.search_calls.append(query)
        if self.search_error is not None:
            raise self.search_error
        return self.matches

    async def fetch_docs_for_library(
        self, library_name: str, topic: str | None, token_budget: int
    ) -> str:
        self.fetch_calls.append((library_name, topic, token_budget))
        if library_name in self.errors:
            raise self.errors[library_name]
        return self.texts.get(library_name, "")


class FakeCompletion:
    """Records prompts and returns a canned reply, or raises ``error``."""

    def __init__(self, reply: str = "stub reply") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def fake_docs() -> FakeDocs:
    return FakeDocs()


@pytest.fixture()
def fake_completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture()
def app_state(
    settings: Settings,
    clock: FakeClock,
    fake_docs: FakeDocs,
    fake_completion: FakeCompletion,
) -> AppState:
    cache = Cache(settings.cache.ttl_seconds, clock=clock)
    return AppState(
        settings=settings,
        cache=cache,
        resolver=DocsResolver(cache, fake_docs, default_token_budget=settings.docs.token_budget),
        completion=fake_completion,
    )
