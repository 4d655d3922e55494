"""Length-prefixed JSON framing: a 4-byte big-endian size, then the payload."""

from __future__ import annotations

import json
import struct
from typing import Any

HEADER_SIZE = 4
_HEADER = struct.Struct(">I")


def encode_packet(payload: bytes) -> bytes:
    """Prefix a payload with its length as an unsigned 32-bit big-endian integer."""
    return _HEADER.pack(len(payload)) + bytes(payload)


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialise a message as compact JSON with sorted keys and frame it."""
    text = json.dumps(message, separators=(",", ":"), ensure_ascii=False, sort_keys=True)
    return encode_packet(text.encode("utf-8"))


class PacketDecoder:
    """Accumulates a byte stream and yields the payloads of complete packets."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._expected: int | None = None

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet returned as a payload."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[bytes]:
        """Add bytes to the stream; return every payload now complete, in order."""
        self._buffer.extend(data)
        payloads: list[bytes] = []
        while True:
            if self._expected is None:
                if len(self._buffer) < HEADER_SIZE:
                    break
                (self._expected,) = _HEADER.unpack_from(self._buffer)
                del self._buffer[:HEADER_SIZE]
            if len(self._buffer) < self._expected:
                break
            payloads.append(bytes(self._buffer[: self._expected]))
            del self._buffer[: self._expected]
            self._expected = None
        return payloads