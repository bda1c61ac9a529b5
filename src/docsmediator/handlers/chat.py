"""Handler for the chat operation: the per-request orchestrator.

One request moves through
``AutoSearch? → DocsFetch × N → PromptAssembly → Completion → Done``.
Everything before Completion degrades gracefully: a failed search or a failed
library fetch only means less documentation in the prompt. A failed
completion fails the request. No Starlette imports; server.py handles the
HTTP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from docsmediator.errors import InvalidInputError, MediatorError
from docsmediator.models.chat import ChatRequest, ChatResponse, DebugTrace
from docsmediator.prompt import DocsBlock, PromptAssembly

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from docsmediator.state import AppState

DOCS_SNIPPET_CHARS = 1000
PROMPT_PREVIEW_CHARS = 2000


def _validate(payload: Any) -> ChatRequest:
    if not isinstance(payload, dict):
        raise InvalidInputError("request body must be a JSON object")
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        if first["loc"] and first["loc"][0] == "message":
            raise InvalidInputError("missing message") from exc
        field = ".".join(str(part) for part in first["loc"])
        raise InvalidInputError(f"{field}: {first['msg']}") from exc


async def _auto_select(
    request: ChatRequest,
    state: AppState,
    trace: DebugTrace,
    log: FilteringBoundLogger,
) -> list[str]:
    query = request.auto_search_query or request.message
    try:
        return await state.resolver.auto_select_libraries(query, request.auto_search_top)
    except MediatorError as exc:
        log.warning("auto_search_failed", query=query, error=exc.message)
        trace.resolver_error = exc.message
    return []


async def _fetch_docs(
    libraries: list[str],
    request: ChatRequest,
    state: AppState,
    log: FilteringBoundLogger,
) -> list[DocsBlock]:
    blocks: list[DocsBlock] = []
    for library in libraries:
        try:
            text = await state.resolver.resolve_docs(
                library, request.topic, state.settings.docs.token_budget
            )
        except MediatorError as exc:
            log.warning("docs_fetch_failed", library=library, error=exc.message)
            continue
        except Exception:
            log.error("docs_fetch_unexpected_error", library=library, exc_info=True)
            continue

        if not text.strip():
            log.info("docs_empty", library=library)
            continue
        blocks.append(DocsBlock(library=library, text=text))
    return blocks


async def handle(payload: Any, state: AppState) -> dict:
    """Handle one chat request and return the ChatResponse wire dict.

    Raises MediatorError for invalid input and for any completion failure.
    """
    request = _validate(payload)
    log = structlog.get_logger().bind(handler="chat", debug_trace=request.debug_trace)
    log.info("handler_called", libraries=request.libraries, auto_search=request.auto_search)

    trace = DebugTrace()

    libraries = list(request.libraries)
    if not libraries and (request.auto_search or request.auto_search_query):
        libraries = await _auto_select(request, state, trace, log)

    docs = await _fetch_docs(libraries, request, state, log)

    prompt = PromptAssembly(
        message=request.message,
        project_context=request.project_context,
        system_instructions=request.system_instructions,
        docs=docs,
    ).render()

    reply = await state.completion.complete(prompt)
    log.info("chat_complete", libraries_used=[d.library for d in docs], reply_length=len(reply))

    response = ChatResponse(reply=reply)
    if request.debug_trace:
        trace.libraries_used = [d.library for d in docs]
        if docs:
            trace.docs_snippet = "\n\n".join(d.render() for d in docs)[:DOCS_SNIPPET_CHARS]
        trace.prompt_preview = prompt[:PROMPT_PREVIEW_CHARS]
        response.debug = trace
    return response.to_wire()
