"""Unit tests for docsmediator.rpc."""

from __future__ import annotations

import json

import pytest

from docsmediator.errors import ProtocolError
from docsmediator.rpc import build_envelope, decode_event_stream, decode_response


def _envelope(result: object) -> str:
    return json.dumps({"jsonrpc": "2.0", "id": "1", "result": result})


class TestBuildEnvelope:
    def test_shape(self) -> None:
        envelope = build_envelope("resolve-library-id", {"libraryName": "react"}, request_id="42")
        assert envelope == {
            "jsonrpc": "2.0",
            "id": "42",
            "method": "tools/call",
            "params": {"name": "resolve-library-id", "arguments": {"libraryName": "react"}},
        }

    def test_none_arguments_omitted(self) -> None:
        envelope = build_envelope("get-library-docs", {"topic": None, "tokens": 100})
        assert envelope["params"]["arguments"] == {"tokens": 100}

    def test_generated_ids_are_unique(self) -> None:
        first = build_envelope("t", {})["id"]
        second = build_envelope("t", {})["id"]
        assert first != second


class TestDecodeEventStream:
    def test_returns_object_from_second_frame_only(self) -> None:
        body = 'data: {"a":1}\n\ndata: {"a":2}\n\n'
        assert decode_event_stream(body) == {"a": 2}

    def test_no_data_raises(self) -> None:
        with pytest.raises(ProtocolError):
            decode_event_stream("event: ping\n\n")

    def test_blank_data_raises(self) -> None:
        with pytest.raises(ProtocolError):
            decode_event_stream("data:\n\n")

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ProtocolError):
            decode_event_stream("data: {not json\n\n")


class TestDecodeResponse:
    def test_json_returns_result(self) -> None:
        assert decode_response("application/json", _envelope({"ok": True})) == {"ok": True}

    def test_json_with_charset_parameter(self) -> None:
        body = _envelope({"ok": True})
        assert decode_response("application/json; charset=utf-8", body) == {"ok": True}

    def test_json_error_field_raises(self) -> None:
        body = json.dumps({"jsonrpc": "2.0", "id": "1", "error": {"code": -32600}})
        with pytest.raises(ProtocolError, match="-32600"):
            decode_response("application/json", body)

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ProtocolError):
            decode_response("application/json", "<html>oops</html>")

    def test_non_object_envelope_raises(self) -> None:
        with pytest.raises(ProtocolError):
            decode_response("application/json", "[1, 2]")

    def test_event_stream_uses_last_frame(self) -> None:
        body = f"event: message\ndata: {_envelope('partial')}\n\ndata: {_envelope('final')}\n\n"
        assert decode_response("text/event-stream", body) == "final"

    def test_event_stream_error_envelope_raises(self) -> None:
        error = json.dumps({"jsonrpc": "2.0", "id": "1", "error": {"message": "boom"}})
        with pytest.raises(ProtocolError, match="boom"):
            decode_response("text/event-stream", f"data: {error}\n\n")

    def test_unknown_content_type_best_effort_json(self) -> None:
        assert decode_response("text/plain", _envelope("x")) == "x"
        assert decode_response(None, _envelope("y")) == "y"

    def test_unknown_content_type_unparseable_raises(self) -> None:
        with pytest.raises(ProtocolError, match="text/plain"):
            decode_response("text/plain", "not json at all")
