"""Shared test fixtures for the docsmediator test suite."""

from __future__ import annotations

import pytest

from docsmediator.config import CompletionSettings, DocsSettings, Settings
from docsmediator.models.docs import LibraryMatch

REST_URL = "https://context7.com/api/v1"
RPC_URL = "https://mcp.context7.com/mcp"
COMPLETION_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
)


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def docs_settings() -> DocsSettings:
    return DocsSettings(rest_url=REST_URL, rpc_url=RPC_URL, api_key=None)


@pytest.fixture()
def completion_settings() -> CompletionSettings:
    return CompletionSettings(api_key="test-key")


@pytest.fixture()
def settings(docs_settings: DocsSettings, completion_settings: CompletionSettings) -> Settings:
    return Settings(docs=docs_settings, completion=completion_settings)


@pytest.fixture()
def sample_matches() -> list[LibraryMatch]:
    return [
        LibraryMatch(id="/reactjs/react.dev", title="React"),
        LibraryMatch(id="/vercel/next.js", title="Next.js"),
        LibraryMatch(id="/pydantic/pydantic", title="Pydantic"),
    ]
