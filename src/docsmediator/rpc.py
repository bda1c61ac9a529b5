"""JSON-RPC envelope codec for the Docs Service RPC transport.

Builds ``tools/call`` request envelopes and decodes replies. The reply may be
plain JSON or an event stream depending on what the server chose to send, so
decoding dispatches on the response content type. No I/O happens here.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

from docsmediator.errors import ProtocolError
from docsmediator.sse import last_frame_data, parse_event_stream

JSONRPC_VERSION = "2.0"
ACCEPT_HEADER = "application/json, text/event-stream"


def build_envelope(
    tool_name: str,
    arguments: dict[str, Any],
    *,
    request_id: str | None = None,
) -> dict[str, Any]:
    """Build a ``tools/call`` envelope. ``None``-valued arguments are omitted."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id or uuid.uuid4().hex,
        "method": "tools/call",
        "params": {
            "name": tool_name,
            "arguments": {k: v for k, v in arguments.items() if v is not None},
        },
    }


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _unwrap(envelope: Any) -> Any:
    if not isinstance(envelope, dict):
        raise ProtocolError(f"RPC reply is not a JSON object: {type(envelope).__name__}")
    if envelope.get("error") is not None:
        raise ProtocolError(f"RPC error: {json.dumps(envelope['error'])}")
    return envelope.get("result")


def decode_event_stream(body: str) -> Any:
    """Parse the JSON payload of the last data-bearing frame of an event stream."""
    payload = last_frame_data(parse_event_stream(body))
    if payload is None or not payload.strip():
        raise ProtocolError("Event stream carried no data")
    try:
        return json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Event stream data is not valid JSON: {exc}") from exc


def decode_response(content_type: str | None, body: str) -> Any:
    """Decode an RPC reply body and return its ``result`` member.

    Raises ProtocolError when the body cannot be parsed or the envelope
    carries an ``error`` member.
    """
    media_type = _media_type(content_type)

    if media_type == "text/event-stream":
        return _unwrap(decode_event_stream(body))

    try:
        envelope = json.loads(body)
    except json.JSONDecodeError as exc:
        if media_type == "application/json":
            raise ProtocolError(f"RPC reply is not valid JSON: {exc}") from exc
        raise ProtocolError(
            f"Unrecognised RPC reply content type {media_type or '(none)'!r}"
        ) from exc
    return _unwrap(envelope)
