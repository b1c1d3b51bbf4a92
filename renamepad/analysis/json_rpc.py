"""`Content-Length` framed JSON-RPC notifications for the analysis backend pipe.

Only notifications travel on this pipe: no ``id``, no responses. A frame is
one header block terminated by an empty line, followed by exactly
``Content-Length`` bytes of UTF-8 JSON.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

log = structlog.get_logger(__name__)

_HEADER_TERMINATOR = b"\r\n\r\n"


class FrameError(ValueError):
    """A frame header or body that cannot be turned into a message."""


def make_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": str(method or ""),
        "params": params if isinstance(params, dict) else {},
    }


def encode_message(payload: dict[str, Any]) -> bytes:
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return b"Content-Length: %d" % len(body) + _HEADER_TERMINATOR + body


def parse_frame_header(block: bytes) -> int:
    """Return the body length announced by a header block.

    Header names are case-insensitive; headers other than ``Content-Length``
    are ignored.
    """
    fields: dict[str, str] = {}
    for line in block.decode("ascii", errors="ignore").splitlines():
        name, sep, value = line.partition(":")
        if sep:
            fields.setdefault(name.strip().lower(), value.strip())

    raw = fields.get("content-length")
    if raw is None:
        raise FrameError("missing Content-Length header")
    if not raw.isdigit():
        raise FrameError(f"bad Content-Length value {raw!r}")
    return int(raw)


def decode_frame_body(body: bytes) -> dict[str, Any]:
    try:
        decoded = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FrameError(f"body is not JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise FrameError(f"body is a JSON {type(decoded).__name__}, expected an object")
    return decoded


class MessageParser:
    """Turns a byte stream of arbitrary chunks into decoded messages.

    A bad header drops just that header block; a bad body drops just that
    frame. Either way the stream stays in sync on the next frame.
    """

    def __init__(self) -> None:
        self._pending = bytearray()
        self._body_length: int | None = None

    def reset(self) -> None:
        self._pending.clear()
        self._body_length = None

    def pending_bytes(self) -> int:
        return len(self._pending)

    def feed(self, chunk: bytes | bytearray) -> list[dict[str, Any]]:
        self._pending += chunk or b""
        messages: list[dict[str, Any]] = []
        while self._take_header():
            body = self._take_body()
            if body is None:
                break
            try:
                messages.append(decode_frame_body(body))
            except FrameError as exc:
                log.warning("frame_body_invalid", error=str(exc), size=len(body))
        return messages

    def _take_header(self) -> bool:
        """Consume header blocks until one yields a length; False when more input is needed."""
        while self._body_length is None:
            end = self._pending.find(_HEADER_TERMINATOR)
            if end < 0:
                return False
            block = bytes(self._pending[:end])
            del self._pending[: end + len(_HEADER_TERMINATOR)]
            try:
                self._body_length = parse_frame_header(block)
            except FrameError as exc:
                log.warning("frame_header_invalid", error=str(exc))
        return True

    def _take_body(self) -> bytes | None:
        size = self._body_length
        if size is None or len(self._pending) < size:
            return None
        body = bytes(self._pending[:size])
        del self._pending[:size]
        self._body_length = None
        return body


__all__ = [
    "FrameError",
    "MessageParser",
    "decode_frame_body",
    "encode_message",
    "make_notification",
    "parse_frame_header",
]
