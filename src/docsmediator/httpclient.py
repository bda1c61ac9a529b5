"""Shared outbound HTTP plumbing.

One ``httpx.AsyncClient`` is created in the lifespan and shared by the Docs
Service and Completion Service clients. ``send_checked`` is the single place
where httpx failures become ``TransportError``.
"""

from __future__ import annotations

import httpx

from docsmediator import __version__
from docsmediator.errors import TransportError

_ERROR_BODY_CHARS = 500


def build_http_client() -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup.

    Per-call timeouts are set on each request from the relevant settings
    section; the client default only guards calls that omit one.
    """
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(30.0),
        headers={"User-Agent": f"docsmediator/{__version__}"},
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
        ),
    )


async def send_checked(
    client: httpx.AsyncClient,
    request: httpx.Request,
    *,
    service: str,
) -> httpx.Response:
    """Send a request, mapping network failures and non-2xx to TransportError.

    A non-2xx status is terminal for the call: nothing here retries.
    """
    try:
        response = await client.send(request)
    except httpx.TimeoutException as exc:
        raise TransportError(f"{service} timed out: {request.method} {request.url}") from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{service} network error: {exc}") from exc

    if not response.is_success:
        raise TransportError(
            f"{service} HTTP {response.status_code}: {response.text[:_ERROR_BODY_CHARS]}",
            status=response.status_code,
        )
    return response
