"""Server-sent-event frame parser.

Pure text-in, frames-out. No I/O: the RPC codec hands it a fully buffered
response body. Follows the field rules of the EventSource format that matter
for a single-shot JSON-RPC reply:

- frames are separated by one or more blank lines
- ``\\r\\n``, ``\\r`` and ``\\n`` are all line terminators
- lines starting with ``:`` are comments
- ``field: value`` strips one leading space from the value; a bare ``field``
  line has an empty value
- ``id`` and ``retry`` fields are accepted and ignored
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")


@dataclass
class SseFrame:
    """One blank-line-delimited unit of an event stream."""

    event: str | None = None
    data_lines: list[str] = field(default_factory=list)

    @property
    def data(self) -> str:
        return "\n".join(self.data_lines)


def _split_field(line: str) -> tuple[str, str]:
    name, sep, value = line.partition(":")
    if not sep:
        return line, ""
    if value.startswith(" "):
        value = value[1:]
    return name, value


def parse_event_stream(text: str) -> list[SseFrame]:
    """Split an event-stream body into frames.

    Frames that carry no fields at all (runs of blank lines, comment-only
    blocks) are dropped.
    """
    frames: list[SseFrame] = []
    current = SseFrame()
    has_fields = False

    for line in _LINE_SPLIT.split(text):
        if line == "":
            if has_fields:
                frames.append(current)
            current = SseFrame()
            has_fields = False
            continue

        if line.startswith(":"):
            continue

        name, value = _split_field(line)
        if name == "data":
            current.data_lines.append(value)
            has_fields = True
        elif name == "event":
            current.event = value
            has_fields = True
        elif name in ("id", "retry"):
            has_fields = True

    # Unterminated final frame
    if has_fields:
        frames.append(current)

    return frames


def last_frame_data(frames: list[SseFrame]) -> str | None:
    """Return the joined ``data`` payload of the last frame that has any.

    Later frames supersede earlier ones; payloads are never merged across
    frames. Returns ``None`` when no frame carries data.
    """
    for frame in reversed(frames):
        if frame.data_lines:
            return frame.data
    return None
