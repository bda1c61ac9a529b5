"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState in the Starlette lifespan
- Register routes and map MediatorError to error payloads
- Start uvicorn
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

import docsmediator.handlers.cached_docs as t_cached_docs
import docsmediator.handlers.chat as t_chat
from docsmediator import __version__
from docsmediator.cache import Cache
from docsmediator.completion import CompletionClient
from docsmediator.config import Settings
from docsmediator.docs_client import DocsClient
from docsmediator.errors import ErrorCode, InvalidInputError, MediatorError
from docsmediator.httpclient import build_http_client
from docsmediator.resolver import DocsResolver
from docsmediator.state import AppState
from docsmediator.transport import CORSMiddleware, run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    import httpx
    from starlette.requests import Request
    from starlette.responses import Response

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire the cache, Docs Service client, resolver and completion client."""
    cache = Cache(settings.cache.ttl_seconds)
    docs = DocsClient(http_client, settings.docs)
    return AppState(
        settings=settings,
        cache=cache,
        resolver=DocsResolver(cache, docs, default_token_budget=settings.docs.token_budget),
        completion=CompletionClient(http_client, settings.completion),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _app_state(request: Request) -> AppState:
    return request.app.state.app_state


def _error_response(error: MediatorError) -> JSONResponse:
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def _unexpected_error_response() -> JSONResponse:
    return JSONResponse(
        {"error": "internal server error", "code": ErrorCode.INTERNAL_ERROR},
        status_code=500,
    )


async def index(request: Request) -> Response:
    return PlainTextResponse(
        "AI Mediator is running. Use /health for status and POST /api/ai/chat for the API."
    )


async def health(request: Request) -> Response:
    return JSONResponse({"ok": True, "ts": int(time.time() * 1000)})


async def chat(request: Request) -> Response:
    state = _app_state(request)
    try:
        try:
            payload = await request.json()
        except ValueError as exc:
            raise InvalidInputError("request body must be valid JSON") from exc
        return JSONResponse(await t_chat.handle(payload, state))
    except MediatorError as exc:
        log.warning("handler_error", handler="chat", code=exc.code, message=exc.message)
        return _error_response(exc)
    except Exception:
        log.error("handler_unexpected_error", handler="chat", exc_info=True)
        return _unexpected_error_response()


async def cached_docs(request: Request) -> Response:
    state = _app_state(request)
    library_id = request.path_params["library_id"]
    topic = request.query_params.get("topic")
    try:
        return JSONResponse(await t_cached_docs.handle(library_id, topic, state))
    except MediatorError as exc:
        log.info("handler_error", handler="cached_docs", code=exc.code, message=exc.message)
        return _error_response(exc)


ROUTES = [
    Route("/", index, methods=["GET"]),
    Route("/health", health, methods=["GET"]),
    Route("/api/ai/chat", chat, methods=["POST"]),
    Route("/api/docs/cache/{library_id:path}", cached_docs, methods=["GET"]),
]


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, *, state: AppState | None = None) -> Starlette:
    """Build the Starlette application.

    With ``state`` given, the app serves that state as-is and the lifespan
    creates nothing (tests use this). Otherwise the lifespan owns the shared
    httpx client and builds AppState around it.
    """
    if settings is None:
        settings = state.settings if state is not None else Settings()

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if state is not None:
            yield
            return

        log.info("server_starting", version=__version__, port=settings.server.port)
        http_client = build_http_client()
        app.state.app_state = build_state(settings, http_client)
        log.info(
            "server_started",
            version=__version__,
            docs_rest=bool(settings.docs.rest_url),
            docs_rpc=bool(settings.docs.rpc_url),
            completion_model=settings.completion.model,
        )
        try:
            yield
        finally:
            await http_client.aclose()
            log.info("server_stopping")

    app = Starlette(
        routes=ROUTES,
        middleware=[Middleware(CORSMiddleware, allowed_origins=settings.server.allowed_origins)],
        lifespan=lifespan,
    )
    if state is not None:
        app.state.app_state = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)
    run_http_server(create_app(settings), settings)


if __name__ == "__main__":
    main()
