"""Classification of single lines from a server-sent-event body."""

from __future__ import annotations

import enum
from dataclasses import dataclass

DATA_PREFIX = "data: "
EVENT_PREFIX = "event:"
DONE_TOKEN = "[DONE]"


class FrameKind(enum.Enum):
    EMPTY = "empty"
    EVENT = "event"
    DATA = "data"
    DONE = "done"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StreamFrame:
    """One classified line.  ``data`` is only set for ``DATA`` frames."""

    kind: FrameKind
    data: str = ""


_EMPTY = StreamFrame(FrameKind.EMPTY)
_EVENT = StreamFrame(FrameKind.EVENT)
_DONE = StreamFrame(FrameKind.DONE)
_UNKNOWN = StreamFrame(FrameKind.UNKNOWN)


def classify_line(line: str | bytes) -> StreamFrame:
    """Classify *line* (without its trailing newline).

    The terminator is recognised only when the payload is exactly
    ``[DONE]``; anything else after ``data: `` is handed on as JSON text.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    if not line:
        return _EMPTY
    if line.startswith(EVENT_PREFIX):
        return _EVENT
    if line.startswith(DATA_PREFIX):
        payload = line[len(DATA_PREFIX):]
        if payload == DONE_TOKEN:
            return _DONE
        return StreamFrame(FrameKind.DATA, payload)
    return _UNKNOWN
