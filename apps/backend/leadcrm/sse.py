"""
Server-Sent Events framing for the advisor chat stream.

Each frame is a single ``data: <json>`` line followed by a blank line. Payloads:

- ``{"conversationId": n}`` first frame on the advisor endpoint
- ``{"content": "<delta>"}`` one per streamed text delta
- ``{"done": true}`` the reply was stored
- ``{"error": "<message>"}`` the reply failed; nothing more follows
"""

import json
from typing import Any, Iterable, Optional

DATA_PREFIX = "data: "


class ChatStreamError(Exception):
    """The server reported a failure inside the event stream."""


def encode_frame(payload: dict[str, Any]) -> str:
    return f"{DATA_PREFIX}{json.dumps(payload)}\n\n"


class SSEDecoder:
    """Incremental line splitter: bytes in, decoded ``data:`` payloads out.

    A trailing partial line is carried over to the next ``feed`` call, so frames
    may be split across network reads at any byte, including inside a UTF-8
    sequence.
    """

    def __init__(self):
        self._buffer = b""

    def feed(self, chunk: bytes) -> list[dict[str, Any]]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        return [p for p in (self._decode_line(line) for line in lines) if p is not None]

    def flush(self) -> list[dict[str, Any]]:
        line, self._buffer = self._buffer, b""
        payload = self._decode_line(line)
        return [payload] if payload is not None else []

    @staticmethod
    def _decode_line(raw: bytes) -> Optional[dict[str, Any]]:
        line = raw.decode("utf-8").rstrip("\r")
        if not line.startswith(DATA_PREFIX):
            return None
        try:
            return json.loads(line[len(DATA_PREFIX):])
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed event frame: {line!r}") from e


def collect_reply(frames: Iterable[dict[str, Any]]) -> str:
    """Concatenate ``content`` deltas in arrival order."""
    parts = []
    for frame in frames:
        if "error" in frame:
            raise ChatStreamError(frame["error"])
        if frame.get("content"):
            parts.append(frame["content"])
    return "".join(parts)
