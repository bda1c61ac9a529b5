"""Completion Service client.

Sends one ``generateContent`` request per chat and normalises the reply to
plain text. Providers and API versions disagree on where the text lives, so
extraction is an ordered list of pure rule functions, each taking the parsed
body and returning text or ``None``. The first rule that yields non-blank
text wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import structlog

from docsmediator.errors import ConfigurationError, ResponseShapeError
from docsmediator.httpclient import send_checked

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from docsmediator.config import CompletionSettings

log = structlog.get_logger()

SYSTEM_PREAMBLE = (
    "You are an expert coding assistant. Use the documentation below as authoritative."
)


def build_request_body(prompt: str) -> dict[str, Any]:
    return {
        "contents": [
            {"role": "user", "parts": [{"text": f"{SYSTEM_PREAMBLE}\n\n{prompt}"}]},
        ]
    }


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def _non_blank(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _join_parts(parts: Any) -> str:
    """Concatenate the ``text`` of every ``{text}`` entry in a parts list."""
    if not isinstance(parts, list):
        return ""
    return "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    )


def _join_blocks(blocks: list[Any]) -> str:
    """Concatenate text from blocks that are strings, ``{parts}`` or ``{text}``."""
    acc: list[str] = []
    for block in blocks:
        if isinstance(block, str):
            acc.append(block)
        elif isinstance(block, dict):
            if isinstance(block.get("parts"), list):
                acc.append(_join_parts(block["parts"]))
            elif isinstance(block.get("text"), str):
                acc.append(block["text"])
    return "".join(acc)


def _first_output(output: Any) -> str | None:
    """First non-blank entry of an ``output`` field (string or list)."""
    if isinstance(output, str):
        return _non_blank(output)
    if not isinstance(output, list):
        return None
    for entry in output:
        if isinstance(entry, str):
            if entry.strip():
                return entry
            continue
        if not isinstance(entry, dict):
            continue
        text = _non_blank(_join_parts(entry.get("parts")))
        if text is None:
            text = _non_blank(entry.get("text"))
        if text is not None:
            return text
    return None


def _first_candidate(body: Any) -> dict[str, Any] | None:
    if not isinstance(body, dict):
        return None
    candidates = body.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return None


# ---------------------------------------------------------------------------
# Extraction rules, tried in order
# ---------------------------------------------------------------------------


def candidate_output_text(body: Any) -> str | None:
    candidate = _first_candidate(body)
    return _non_blank(candidate.get("outputText")) if candidate else None


def candidate_content(body: Any) -> str | None:
    candidate = _first_candidate(body)
    if candidate is None:
        return None
    content = candidate.get("content")

    if isinstance(content, list):
        return _non_blank(_join_blocks(content))

    if isinstance(content, dict):
        if isinstance(content.get("parts"), list):
            text = _non_blank(_join_blocks(content["parts"]))
            if text is not None:
                return text
        if isinstance(content.get("content"), list):
            text = _non_blank(_join_blocks(content["content"]))
            if text is not None:
                return text
        return _non_blank(content.get("text"))

    return None


def candidate_output(body: Any) -> str | None:
    candidate = _first_candidate(body)
    return _first_output(candidate.get("output")) if candidate else None


def top_level_output_text(body: Any) -> str | None:
    return _non_blank(body.get("outputText")) if isinstance(body, dict) else None


def top_level_output(body: Any) -> str | None:
    return _first_output(body.get("output")) if isinstance(body, dict) else None


EXTRACTION_RULES: tuple[Callable[[Any], str | None], ...] = (
    candidate_output_text,
    candidate_content,
    candidate_output,
    top_level_output_text,
    top_level_output,
)


def extract_reply_text(body: Any) -> str:
    """Run the extraction rules in order. Raises ResponseShapeError if none match."""
    for rule in EXTRACTION_RULES:
        text = rule(body)
        if text is not None:
            log.debug("completion_shape_matched", rule=rule.__name__)
            return text
    raise ResponseShapeError("Completion Service returned an unexpected response shape", raw=body)


class CompletionClient:
    """Completion Service client implementing CompletionProtocol."""

    def __init__(self, client: httpx.AsyncClient, settings: CompletionSettings) -> None:
        self._client = client
        self._settings = settings

    @property
    def endpoint(self) -> str:
        model = quote(self._settings.model, safe="")
        return f"{self._settings.base_url.rstrip('/')}/models/{model}:generateContent"

    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` and return the normalised reply text."""
        if not self._settings.api_key:
            raise ConfigurationError("No completion API key configured")

        request = self._client.build_request(
            "POST",
            self.endpoint,
            json=build_request_body(prompt),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self._settings.api_key,
            },
            timeout=self._settings.timeout_seconds,
        )
        response = await send_checked(self._client, request, service="Completion")

        try:
            body = response.json()
        except ValueError as exc:
            raise ResponseShapeError(
                "Completion Service returned a non-JSON body", raw=response.text
            ) from exc

        text = extract_reply_text(body)
        log.info(
            "completion_complete",
            model=self._settings.model,
            prompt_length=len(prompt),
            reply_length=len(text),
        )
        return text
