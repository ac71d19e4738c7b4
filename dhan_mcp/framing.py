"""Content-Length framing for the stdio message protocol.

Each frame is a header block terminated by a blank line followed by a JSON
body of exactly ``Content-Length`` bytes::

    Content-Length: 46\r\n
    \r\n
    {"jsonrpc":"2.0","id":1,"method":"initialize"}
"""

from __future__ import annotations

import json
import re
from typing import Any

HEADER_DELIMITER = b"\r\n\r\n"
MAX_BODY_BYTES = 4 * 1024 * 1024  # 4 MiB
MAX_HEADER_BYTES = 8 * 1024

_CONTENT_LENGTH = re.compile(rb"content-length[ \t]*:[ \t]*([^\r\n]*)", re.IGNORECASE)
_DIGITS = re.compile(r"^\d+$")
# Bytes kept after a failed resync, enough to hold a split "Content-Length:" prefix
_RESYNC_TAIL = len(b"content-length:") - 1


class FrameError(Exception):
    """Raised when a frame cannot be decoded.

    Attributes:
        messages: Messages decoded before the offending frame
        remainder: Buffer from the start of the offending frame, unconsumed
        resume: Bytes to continue decoding from, starting at the next
            Content-Length header (or the tail that may still grow into one)
    """

    def __init__(
        self,
        reason: str,
        messages: list[Any] | None = None,
        remainder: bytes = b"",
        resume: bytes = b"",
    ):
        super().__init__(reason)
        self.reason = reason
        self.messages = messages or []
        self.remainder = remainder
        self.resume = resume


def _content_length(header_block: bytes) -> int:
    """Extract a non-negative Content-Length, raising ValueError otherwise.

    The header is located anywhere in the block and matched
    case-insensitively, so stray bytes ahead of it do not hide it.
    """
    match = _CONTENT_LENGTH.search(header_block)
    if match is None:
        raise ValueError("Missing Content-Length header")
    value = match.group(1).decode("ascii", errors="replace").strip()
    if not _DIGITS.match(value):
        raise ValueError(f"Invalid Content-Length header: {value!r}")
    return int(value)


def _resync(data: bytes, start: int) -> bytes:
    """Drop bytes before the next Content-Length header at or after ``start``."""
    match = _CONTENT_LENGTH.search(data, start)
    if match is not None:
        return data[match.start():]
    return data[max(start, len(data) - _RESYNC_TAIL):]


def decode_frames(
    buffer: bytes,
    max_body_bytes: int = MAX_BODY_BYTES,
    max_header_bytes: int = MAX_HEADER_BYTES,
) -> tuple[list[Any], bytes]:
    """Extract every complete frame from ``buffer``.

    Args:
        buffer: Accumulated bytes read from the stream
        max_body_bytes: Largest body a frame may declare
        max_header_bytes: Largest header block accepted before its blank line

    Returns:
        Tuple of (decoded messages in order, unconsumed remainder). An
        incomplete trailing frame is left in the remainder untouched.

    Raises:
        FrameError: If a header block has no valid Content-Length, grows past
            ``max_header_bytes``, declares an oversized body, or the body is
            not valid JSON
    """
    messages: list[Any] = []
    working = bytes(buffer)

    while True:
        header_end = working.find(HEADER_DELIMITER)
        if header_end == -1 and len(working) <= max_header_bytes:
            # Partial header; wait for more bytes
            break
        if header_end == -1 or header_end > max_header_bytes:
            raise FrameError(
                f"Header block exceeds limit of {max_header_bytes} bytes",
                messages=messages,
                remainder=working,
                resume=_resync(working, 1),
            )

        body_start = header_end + len(HEADER_DELIMITER)

        try:
            length = _content_length(working[:header_end])
        except ValueError as e:
            raise FrameError(
                str(e),
                messages=messages,
                remainder=working,
                resume=_resync(working, body_start),
            ) from e

        if length > max_body_bytes:
            raise FrameError(
                f"Content-Length {length} exceeds limit of {max_body_bytes} bytes",
                messages=messages,
                remainder=working,
                resume=_resync(working, body_start),
            )

        body_end = body_start + length
        if len(working) < body_end:
            # Partial frame; wait for more bytes
            break

        body = working[body_start:body_end]
        try:
            messages.append(json.loads(body.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FrameError(
                f"Invalid JSON body: {e}",
                messages=messages,
                remainder=working,
                resume=working[body_end:],
            ) from e

        working = working[body_end:]

    return messages, working


def encode_frame(message: Any) -> bytes:
    """Serialize a message into a single Content-Length frame."""
    body = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body
