"""Docs Service client speaking both wire variants.

Transport A is the REST API (``/search`` then ``/<library id>``). Transport B
is JSON-RPC ``tools/call`` over HTTP POST, whose reply is either JSON or an
event stream. ``fetch_docs_for_library`` tries A, falls back to B, and returns
an empty string when both fail: missing documentation is never fatal to a
chat request.

The DocsClient receives an ``httpx.AsyncClient`` via constructor injection;
the lifespan owns the client lifecycle.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from docsmediator.errors import MediatorError, ProtocolError, TransportError
from docsmediator.httpclient import send_checked
from docsmediator.models.docs import LibraryMatch, ToolResult
from docsmediator.resolver import normalise_query, select_match
from docsmediator.rpc import ACCEPT_HEADER, build_envelope, decode_response

if TYPE_CHECKING:
    from docsmediator.config import DocsSettings

log = structlog.get_logger()

RESOLVE_TOOL = "resolve-library-id"
DOCS_TOOL = "get-library-docs"

_LIBRARY_ID_LINE = re.compile(r"Context7-compatible library ID:\s*(\S+)", re.IGNORECASE)


def _parse_match(raw: Any) -> LibraryMatch | None:
    """Build a LibraryMatch from one search result; entries without a usable id are dropped."""
    if not isinstance(raw, dict):
        return None
    library_id = raw.get("id")
    if not isinstance(library_id, str) or not library_id.strip():
        return None
    title = raw.get("title")
    return LibraryMatch(id=library_id.strip(), title=title if isinstance(title, str) else "")


def extract_library_id(result: ToolResult, fallback: str) -> str:
    """Pull the authoritative library id out of a resolve-library-id result."""
    structured = result.structured_content
    if isinstance(structured, dict) and isinstance(structured.get("id"), str):
        if structured["id"].strip():
            return structured["id"].strip()

    blocks = result.text_blocks()
    for text in blocks:
        found = _LIBRARY_ID_LINE.search(text)
        if found:
            return found.group(1)

    if blocks:
        for line in blocks[0].strip().splitlines():
            if line.strip():
                return line.strip()
    return fallback


def extract_docs_text(result: ToolResult) -> str:
    """Render a get-library-docs result as plain text."""
    if result.structured_content is not None:
        return json.dumps(result.structured_content, indent=2, ensure_ascii=False)
    return "\n\n".join(result.text_blocks())


class DocsClient:
    """Two-transport Docs Service client implementing DocsClientProtocol."""

    def __init__(self, client: httpx.AsyncClient, settings: DocsSettings) -> None:
        self._client = client
        self._settings = settings

    @property
    def search_enabled(self) -> bool:
        return bool(self._settings.rest_url)

    @property
    def rpc_enabled(self) -> bool:
        return bool(self._settings.rpc_url)

    def _auth_headers(self) -> dict[str, str]:
        if not self._settings.api_key:
            return {}
        return {"Authorization": f"Bearer {self._settings.api_key}"}

    def _build(self, method: str, url: str, **kwargs: Any) -> httpx.Request:
        return self._client.build_request(
            method, url, timeout=self._settings.timeout_seconds, **kwargs
        )

    # ------------------------------------------------------------------
    # Transport A: REST
    # ------------------------------------------------------------------

    def _rest_url(self, path: str) -> str:
        return f"{self._settings.rest_url.rstrip('/')}/{path.lstrip('/')}"

    async def search(self, query: str) -> list[LibraryMatch]:
        request = self._build(
            "GET",
            self._rest_url("search"),
            params={"query": query},
            headers=self._auth_headers(),
        )
        response = await send_checked(self._client, request, service="Docs search")
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"Docs search returned non-JSON body: {exc}") from exc

        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            return []
        return [match for match in map(_parse_match, results) if match is not None]

    async def fetch_docs(
        self,
        library_id: str,
        *,
        topic: str | None = None,
        tokens: int | None = None,
    ) -> str:
        params: dict[str, str | int] = {"type": self._settings.format}
        if topic:
            params["topic"] = topic
        if tokens:
            params["tokens"] = tokens
        request = self._build(
            "GET",
            self._rest_url(library_id),
            params=params,
            headers=self._auth_headers(),
        )
        response = await send_checked(self._client, request, service="Docs fetch")

        if "json" in response.headers.get("content-type", "").lower():
            try:
                return json.dumps(response.json(), indent=2, ensure_ascii=False)
            except ValueError:
                pass  # mislabelled body: fall through to raw text
        return response.text

    async def _via_rest(self, library_name: str, topic: str | None, tokens: int) -> str:
        if library_name.startswith("/"):
            # Already an authoritative id (e.g. from auto-search)
            library_id = library_name
        else:
            query = normalise_query(library_name) or library_name
            match = select_match(query, await self.search(query))
            if match is None or not match.id:
                raise TransportError(f"Docs search found no results for {library_name!r}")
            library_id = match.id

        text = await self.fetch_docs(library_id, topic=topic, tokens=tokens)
        if not text.strip():
            raise TransportError(f"Docs fetch returned empty body for {library_id!r}")
        log.info("docs_fetch_complete", transport="rest", library_id=library_id, length=len(text))
        return text

    # ------------------------------------------------------------------
    # Transport B: JSON-RPC over HTTP
    # ------------------------------------------------------------------

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        headers = {"Content-Type": "application/json", "Accept": ACCEPT_HEADER}
        headers.update(self._auth_headers())
        if self._settings.api_key:
            headers["CONTEXT7_API_KEY"] = self._settings.api_key

        request = self._build(
            "POST",
            self._settings.rpc_url,
            json=build_envelope(tool_name, arguments),
            headers=headers,
        )
        response = await send_checked(self._client, request, service=f"Docs RPC {tool_name}")
        result = ToolResult.from_result(
            decode_response(response.headers.get("content-type"), response.text)
        )
        if result.is_error:
            detail = " ".join(result.text_blocks()) or "no detail"
            raise ProtocolError(f"Docs RPC tool {tool_name} failed: {detail}")
        return result

    async def resolve_library_id(self, library_name: str) -> str:
        result = await self.call_tool(RESOLVE_TOOL, {"libraryName": library_name})
        return extract_library_id(result, library_name)

    async def get_library_docs(self, library_id: str, topic: str | None, tokens: int) -> str:
        result = await self.call_tool(
            DOCS_TOOL,
            {"context7CompatibleLibraryID": library_id, "topic": topic, "tokens": tokens},
        )
        return extract_docs_text(result)

    async def _via_rpc(self, library_name: str, topic: str | None, tokens: int) -> str:
        library_id = await self.resolve_library_id(library_name)
        text = await self.get_library_docs(library_id, topic, tokens)
        if not text.strip():
            raise ProtocolError(f"Docs RPC returned no text for {library_id!r}")
        log.info("docs_fetch_complete", transport="rpc", library_id=library_id, length=len(text))
        return text

    # ------------------------------------------------------------------
    # Fallback policy
    # ------------------------------------------------------------------

    async def fetch_docs_for_library(
        self,
        library_name: str,
        topic: str | None,
        token_budget: int,
    ) -> str:
        """Fetch docs via REST, then RPC. Returns ``""`` when both fail."""
        fetch_log = log.bind(library=library_name, topic=topic)

        if self.search_enabled:
            try:
                return await self._via_rest(library_name, topic, token_budget)
            except MediatorError as exc:
                fetch_log.warning("docs_transport_failed", transport="rest", error=exc.message)

        if self.rpc_enabled:
            try:
                return await self._via_rpc(library_name, topic, token_budget)
            except MediatorError as exc:
                fetch_log.warning("docs_transport_failed", transport="rpc", error=exc.message)

        fetch_log.warning("docs_unavailable")
        return ""
