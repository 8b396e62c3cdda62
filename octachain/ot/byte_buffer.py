"""
Growable big-endian byte buffer for .ot records.

Every multi-byte field of an .ot file is stored big-endian. One ByteBuffer
is owned by one encode call; nothing is shared between calls.
"""

from __future__ import annotations

import struct

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF


def _check_range(value: int, maximum: int, name: str) -> int:
    value = int(value)
    if value < 0 or value > maximum:
        raise ValueError(f"{name} value out of range: {value} (must be 0-{maximum})")
    return value


class ByteBuffer:
    """Append-only byte buffer with big-endian integer helpers."""

    def __init__(self, initial: bytes = b"") -> None:
        self._data = bytearray(initial)

    def push_u8(self, value: int) -> "ByteBuffer":
        self._data.append(_check_range(value, U8_MAX, "u8"))
        return self

    def push_u16(self, value: int) -> "ByteBuffer":
        self._data += struct.pack(">H", _check_range(value, U16_MAX, "u16"))
        return self

    def push_u32(self, value: int) -> "ByteBuffer":
        self._data += struct.pack(">I", _check_range(value, U32_MAX, "u32"))
        return self

    def extend(self, data: bytes) -> "ByteBuffer":
        self._data += data
        return self

    def sum_bytes(self, start: int = 0) -> int:
        """Unsigned sum of every byte from ``start`` to the end."""
        return sum(self._data[start:])

    def __len__(self) -> int:
        return len(self._data)

    def to_bytes(self) -> bytes:
        return bytes(self._data)
