"""Cursor helpers for the archive byte layout.

``ByteWriter`` owns a growable buffer and appends little-endian fixed-width
integers, length-prefixed byte strings and raw bytes. ``ByteReader`` walks an
immutable buffer with the same primitives and bounds-checks every read before
slicing, so layout code never does offset arithmetic against the raw buffer.
"""

from __future__ import annotations

import struct
from typing import Union

from .constants import U16_MAX, U32_MAX
from .errors import CorruptArchiveError


_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")

_WIDTHS = {2: (_U16, U16_MAX), 4: (_U32, U32_MAX)}


def _check_width(width: int):
    try:
        return _WIDTHS[width]
    except KeyError:
        raise ValueError(f"unsupported integer width: {width}") from None


class ByteWriter:
    def __init__(self) -> None:
        self._buf = bytearray()

    def tell(self) -> int:
        return len(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def write_uint(self, value: int, width: int) -> None:
        packer, limit = _check_width(width)
        if value < 0 or value > limit:
            raise ValueError(f"value {value} does not fit in {width * 8} bits")
        self._buf += packer.pack(value)

    def write_u16(self, value: int) -> None:
        self.write_uint(value, 2)

    def write_u32(self, value: int) -> None:
        self.write_uint(value, 4)

    def write_raw(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self._buf += data

    def write_prefixed(self, data: bytes, width: int = 2) -> None:
        """Write ``len(data)`` as a *width*-byte integer followed by *data*."""
        _packer, limit = _check_width(width)
        if len(data) > limit:
            raise ValueError(f"{len(data)} bytes exceed a {width * 8}-bit length prefix")
        self.write_uint(len(data), width)
        self.write_raw(data)

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class ByteReader:
    def __init__(self, data: Union[bytes, bytearray, memoryview], pos: int = 0) -> None:
        self._data = bytes(data)
        self.pos = pos

    def __len__(self) -> int:
        return len(self._data)

    def remaining(self) -> int:
        return max(0, len(self._data) - self.pos)

    def seek(self, pos: int) -> None:
        if pos < 0 or pos > len(self._data):
            raise CorruptArchiveError(f"offset {pos} outside buffer of {len(self._data)} bytes")
        self.pos = pos

    def read_raw(self, n: int) -> bytes:
        if n < 0 or self.pos + n > len(self._data):
            raise CorruptArchiveError(
                f"read of {n} bytes at offset {self.pos} exceeds buffer of {len(self._data)} bytes"
            )
        out = self._data[self.pos : self.pos + n]
        self.pos += n
        return out

    def read_uint(self, width: int) -> int:
        packer, _limit = _check_width(width)
        return packer.unpack(self.read_raw(width))[0]

    def read_u16(self) -> int:
        return self.read_uint(2)

    def read_u32(self) -> int:
        return self.read_uint(4)

    def read_prefixed(self, width: int = 2) -> bytes:
        return self.read_raw(self.read_uint(width))
