from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

_RAW_PREVIEW_CHARS = 2000


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    RESPONSE_SHAPE_ERROR = "RESPONSE_SHAPE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MediatorError(Exception):
    """Base class for every expected failure condition.

    Raised from business logic and caught by server.py, which serialises it
    into the ``{"error": ..., "code": ...}`` payload. Documentation fetch
    paths catch it locally and degrade to "no docs"; completion paths let it
    propagate so the request fails.
    """

    code: ErrorCode = ErrorCode.TRANSPORT_ERROR
    status_code: int = 502

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class InvalidInputError(MediatorError):
    code = ErrorCode.INVALID_INPUT
    status_code = 400


class NotFoundError(MediatorError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class ConfigurationError(MediatorError):
    """A required setting (typically a credential) is missing."""

    code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500


class TransportError(MediatorError):
    """Non-2xx status, network failure or timeout on an outbound call."""

    code = ErrorCode.TRANSPORT_ERROR
    status_code = 502

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ProtocolError(MediatorError):
    """Malformed or error-bearing JSON-RPC envelope."""

    code = ErrorCode.PROTOCOL_ERROR
    status_code = 502


class ResponseShapeError(MediatorError):
    """No extraction rule matched the completion reply."""

    code = ErrorCode.RESPONSE_SHAPE_ERROR
    status_code = 502

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw

    def raw_preview(self) -> str:
        if isinstance(self.raw, str):
            text = self.raw
        else:
            try:
                text = json.dumps(self.raw, ensure_ascii=False)
            except (TypeError, ValueError):
                text = repr(self.raw)
        return text[:_RAW_PREVIEW_CHARS]

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["detail"] = self.raw_preview()
        return payload
