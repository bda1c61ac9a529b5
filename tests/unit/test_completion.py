"""Unit tests for docsmediator.completion."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator

import httpx
import pytest
import respx

from docsmediator.completion import (
    SYSTEM_PREAMBLE,
    CompletionClient,
    build_request_body,
    extract_reply_text,
)
from docsmediator.config import CompletionSettings
from docsmediator.errors import ConfigurationError, ResponseShapeError, TransportError

COMPLETION_URL = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
)


# ---------------------------------------------------------------------------
# Reply extraction
# ---------------------------------------------------------------------------


class TestExtractReplyText:
    def test_candidate_output_text(self) -> None:
        assert extract_reply_text({"candidates": [{"outputText": "hello"}]}) == "hello"

    def test_candidate_content_parts(self) -> None:
        body = {"candidates": [{"content": {"parts": [{"text": "a"}, {"text": "b"}]}}]}
        assert extract_reply_text(body) == "ab"

    def test_candidate_content_list_of_blocks(self) -> None:
        body = {"candidates": [{"content": ["x", {"text": "y"}, {"parts": [{"text": "z"}]}]}]}
        assert extract_reply_text(body) == "xyz"

    def test_candidate_content_nested_content_list(self) -> None:
        body = {"candidates": [{"content": {"content": [{"text": "nested"}]}}]}
        assert extract_reply_text(body) == "nested"

    def test_candidate_content_text(self) -> None:
        assert extract_reply_text({"candidates": [{"content": {"text": "t"}}]}) == "t"

    def test_candidate_output_string(self) -> None:
        assert extract_reply_text({"candidates": [{"output": "out"}]}) == "out"

    def test_candidate_output_list_first_non_blank(self) -> None:
        body = {"candidates": [{"output": ["", {"parts": [{"text": "second"}]}, "third"]}]}
        assert extract_reply_text(body) == "second"

    def test_top_level_output_text(self) -> None:
        assert extract_reply_text({"outputText": "top"}) == "top"

    def test_top_level_output(self) -> None:
        assert extract_reply_text({"output": [{"text": "from output"}]}) == "from output"

    def test_earlier_rule_wins(self) -> None:
        body = {
            "candidates": [{"outputText": "first", "content": {"parts": [{"text": "second"}]}}],
            "outputText": "last",
        }
        assert extract_reply_text(body) == "first"

    def test_blank_earlier_rule_falls_through(self) -> None:
        body = {"candidates": [{"outputText": "  ", "content": {"parts": [{"text": "real"}]}}]}
        assert extract_reply_text(body) == "real"

    def test_non_dict_parts_are_skipped(self) -> None:
        body = {"candidates": [{"content": {"parts": [{"inlineData": {}}, {"text": "ok"}]}}]}
        assert extract_reply_text(body) == "ok"

    def test_unknown_shape_raises_with_raw_body(self) -> None:
        body = {"promptFeedback": {"blockReason": "SAFETY"}}
        with pytest.raises(ResponseShapeError) as exc_info:
            extract_reply_text(body)
        assert exc_info.value.raw == body
        assert "SAFETY" in exc_info.value.to_dict()["detail"]

    def test_empty_candidates_raise(self) -> None:
        with pytest.raises(ResponseShapeError):
            extract_reply_text({"candidates": []})

    def test_non_object_body_raises(self) -> None:
        with pytest.raises(ResponseShapeError):
            extract_reply_text(["not", "an", "object"])


def test_build_request_body_prefixes_preamble() -> None:
    body = build_request_body("PROMPT")
    assert body == {
        "contents": [{"role": "user", "parts": [{"text": f"{SYSTEM_PREAMBLE}\n\nPROMPT"}]}]
    }


# ---------------------------------------------------------------------------
# CompletionClient
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def completion(
    http_client: httpx.AsyncClient, completion_settings: CompletionSettings
) -> CompletionClient:
    return CompletionClient(http_client, completion_settings)


class TestCompletionClient:
    def test_endpoint(self, completion: CompletionClient) -> None:
        assert completion.endpoint == COMPLETION_URL

    async def test_missing_api_key_raises(self, http_client: httpx.AsyncClient) -> None:
        client = CompletionClient(http_client, CompletionSettings(api_key=None))
        with pytest.raises(ConfigurationError):
            await client.complete("hi")

    @respx.mock
    async def test_sends_prompt_and_key(self, completion: CompletionClient) -> None:
        route = respx.post(COMPLETION_URL).mock(
            return_value=httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": "Use useState."}]}}]}
            )
        )

        reply = await completion.complete("How do I keep state?")

        assert reply == "Use useState."
        request = route.calls.last.request
        assert request.headers["x-goog-api-key"] == "test-key"
        assert json.loads(request.content) == build_request_body("How do I keep state?")

    @respx.mock
    async def test_non_2xx_raises_transport_error(self, completion: CompletionClient) -> None:
        respx.post(COMPLETION_URL).mock(
            return_value=httpx.Response(429, json={"error": {"message": "quota"}})
        )
        with pytest.raises(TransportError) as exc_info:
            await completion.complete("hi")
        assert exc_info.value.status == 429
        assert "quota" in exc_info.value.message

    @respx.mock
    async def test_timeout_raises_transport_error(self, completion: CompletionClient) -> None:
        respx.post(COMPLETION_URL).mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(TransportError, match="timed out"):
            await completion.complete("hi")

    @respx.mock
    async def test_non_json_body_raises_shape_error(self, completion: CompletionClient) -> None:
        respx.post(COMPLETION_URL).mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(ResponseShapeError) as exc_info:
            await completion.complete("hi")
        assert exc_info.value.raw == "<html>"

    @respx.mock
    async def test_unrecognised_shape_raises(self, completion: CompletionClient) -> None:
        respx.post(COMPLETION_URL).mock(return_value=httpx.Response(200, json={"candidates": []}))
        with pytest.raises(ResponseShapeError):
            await completion.complete("hi")
