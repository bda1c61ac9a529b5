"""HTTP transport: CORS middleware and the uvicorn entrypoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from docsmediator.config import Settings

log = structlog.get_logger()

ALLOW_HEADERS = "Content-Type, Authorization"
ALLOW_METHODS = "GET, POST, OPTIONS"


class CORSMiddleware:
    """Pure ASGI middleware emitting CORS headers for configured origins.

    - An ``Origin`` listed in ``allowed_origins`` is echoed back with
      ``Vary: Origin``.
    - ``"*"`` in ``allowed_origins`` allows any origin.
    - Preflight ``OPTIONS`` requests are answered with 204 directly.

    Implemented as pure ASGI (not BaseHTTPMiddleware) so response bodies are
    never buffered by the middleware layer.
    """

    def __init__(self, app: ASGIApp, *, allowed_origins: list[str]) -> None:
        self.app = app
        self.allow_any = "*" in allowed_origins
        self.allowed = frozenset(o for o in allowed_origins if o != "*")

    def cors_headers(self, origin: str) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Allow-Methods": ALLOW_METHODS,
        }
        if origin and origin in self.allowed:
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = "Origin"
        elif self.allow_any:
            headers["Access-Control-Allow-Origin"] = "*"
        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = self.cors_headers(Headers(scope=scope).get("origin", ""))

        if scope["method"] == "OPTIONS":
            await Response(status_code=204, headers=extra)(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in extra.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)


def run_http_server(app: ASGIApp, settings: Settings) -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    http_log = log.bind(transport="http")

    if not settings.server.allowed_origins:
        http_log.info("cors_disabled")
    if not settings.completion.api_key:
        http_log.warning("completion_api_key_missing")

    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )
