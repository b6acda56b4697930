"""Byte-level parsing primitives and the Internet checksum."""

from __future__ import annotations

import enum
import struct


class ParseResult(enum.Enum):
    """Reasons a packet can fail to parse."""

    BAD_CHECKSUM = "bad checksum"
    PACKET_TOO_SHORT = "packet too short"
    WRONG_IP_VERSION = "wrong IP version"
    HEADER_TOO_SHORT = "header too short"
    TRUNCATED_PACKET = "truncated packet"
    UNSUPPORTED = "unsupported"


class ParseError(ValueError):
    """Raised when bytes cannot be parsed; ``result`` says why."""

    def __init__(self, result: ParseResult, message: str | None = None) -> None:
        super().__init__(message or result.value)
        self.result = result


def internet_checksum(data: bytes, initial: int = 0) -> int:
    """Return the ones'-complement Internet checksum of ``data``.

    ``initial`` is a partial sum to start from, such as a pseudo-header sum.
    An odd trailing byte is padded with zero.
    """
    raw = bytes(data)
    if len(raw) % 2:
        raw += b"\x00"
    total = initial + sum(struct.unpack(f"!{len(raw) // 2}H", raw))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF


class ByteReader:
    """Reads big-endian integers from the front of a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def _take(self, count: int) -> bytes:
        if count < 0:
            raise ValueError("cannot take a negative number of bytes")
        if count > len(self._data) - self._pos:
            raise ParseError(ParseResult.PACKET_TOO_SHORT)
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return chunk

    def u8(self) -> int:
        """Read one byte."""
        return self._take(1)[0]

    def u16(self) -> int:
        """Read a 16-bit big-endian integer."""
        return int.from_bytes(self._take(2), "big")

    def u32(self) -> int:
        """Read a 32-bit big-endian integer."""
        return int.from_bytes(self._take(4), "big")

    def skip(self, count: int) -> None:
        """Discard ``count`` bytes."""
        self._take(count)

    def remaining(self) -> bytes:
        """Return the bytes not yet read."""
        return self._data[self._pos :]