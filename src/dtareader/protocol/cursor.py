"""Bounds-checked sequential reader for header bytes.

Classes:
    - ByteCursor: Forward-only little-endian reader over an in-memory buffer

Every read either returns the full value or raises TruncatedError; the cursor
never reads past the end of the buffer it was given. The field definition
block gets its own cursor, so no field record can reach past the block
boundary declared in the header preamble.
"""

from __future__ import annotations

import struct

from ..exceptions import TruncatedError

# =============================================================================
# Cursor Constants
# =============================================================================

_U32_LE = struct.Struct("<I")
_U16_LE = struct.Struct("<H")
_I16_LE = struct.Struct("<h")

COLOR_SIZE = 3  # R, G, B
COLOR_ALPHA_OPAQUE = 0xFF000000

STRING_TERMINATOR = 0x00
STRING_ENCODING = "latin-1"  # One byte per character

# =============================================================================
# ByteCursor
# =============================================================================


class ByteCursor:
    """Sequential little-endian reader with bounds checking.

    Attributes:
        base_offset: Absolute offset of the first buffer byte within the header
                     record, used to report error positions

    Usage:
        cursor = ByteCursor(block, base_offset=8)
        while cursor.has_remaining():
            tag = cursor.read_u8()
    """

    base_offset: int

    _data: bytes
    _position: int

    def __init__(self, data: bytes | bytearray | memoryview, base_offset: int = 0) -> None:
        self._data = bytes(data)
        self._position = 0
        self.base_offset = base_offset

    @property
    def offset(self) -> int:
        """Absolute offset of the next unread byte."""
        return self.base_offset + self._position

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    def has_remaining(self) -> bool:
        return self._position < len(self._data)

    def _take(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise TruncatedError(self.offset, size, self.remaining, what)

        chunk = self._data[self._position : self._position + size]
        self._position += size
        return chunk

    def read_exact(self, size: int) -> bytes:
        """Read exactly size bytes.

        Raises:
            TruncatedError: If fewer than size bytes remain
        """
        return self._take(size, f"{size}-byte block")

    def read_u32_le(self) -> int:
        return _U32_LE.unpack(self._take(_U32_LE.size, "uint32"))[0]

    def read_u16_le(self) -> int:
        return _U16_LE.unpack(self._take(_U16_LE.size, "uint16"))[0]

    def read_i16_le(self) -> int:
        return _I16_LE.unpack(self._take(_I16_LE.size, "int16"))[0]

    def read_u8(self) -> int:
        return self._take(1, "uint8")[0]

    def read_nul_terminated_string(self) -> str:
        """Read a zero-terminated single-byte string.

        The terminator is consumed but not returned. The scan is bounded by
        the buffer: running out of bytes before the terminator is an error,
        not the end of the string.

        Raises:
            TruncatedError: If the buffer ends before a zero byte is found
        """
        start = self._position
        end = self._data.find(STRING_TERMINATOR, start)

        if end == -1:
            raise TruncatedError(self.offset, self.remaining + 1, self.remaining, "string terminator")

        self._position = end + 1
        return self._data[start:end].decode(STRING_ENCODING)

    def read_color(self) -> int:
        """Read three colour bytes (R, G, B) as an opaque 32-bit ARGB value."""
        red, green, blue = self._take(COLOR_SIZE, "color")
        return COLOR_ALPHA_OPAQUE | red << 16 | green << 8 | blue
