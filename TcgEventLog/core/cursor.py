"""
Forward-only byte cursor used by all decoders.

Every read reports failure with ``None`` (or ``False`` for :meth:`ByteCursor.skip`)
instead of raising, and a failed read never moves the cursor.
"""

import struct
from typing import Optional, Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]

_U8 = struct.Struct('<B')
_U16 = struct.Struct('<H')
_U32 = struct.Struct('<I')
_U64 = struct.Struct('<Q')


class ByteCursor:
    """Sequential little-endian reader over an immutable byte buffer."""

    def __init__(self, data: BytesLike):
        self._data = bytes(data)
        self._position = 0

    def __repr__(self) -> str:
        return f"ByteCursor(position={self._position}, remaining={self.remaining})"

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        """Number of bytes that have not been consumed yet."""
        return len(self._data) - self._position

    @property
    def at_end(self) -> bool:
        return self._position >= len(self._data)

    def _unpack(self, fmt: struct.Struct) -> Optional[int]:
        if self.remaining < fmt.size:
            return None
        (value,) = fmt.unpack_from(self._data, self._position)
        self._position += fmt.size
        return value

    def read_u8(self) -> Optional[int]:
        return self._unpack(_U8)

    def read_u16(self) -> Optional[int]:
        return self._unpack(_U16)

    def read_u32(self) -> Optional[int]:
        return self._unpack(_U32)

    def read_u64(self) -> Optional[int]:
        return self._unpack(_U64)

    def unpack(self, fmt: str) -> Optional[Tuple]:
        """
        Read consecutive fields described by a little-endian ``struct`` format.

        Args:
            fmt: A format starting with ``<`` so no alignment padding applies

        Returns:
            The unpacked fields, or None if the buffer is too short for all of them
        """
        size = struct.calcsize(fmt)
        if self.remaining < size:
            return None
        fields = struct.unpack_from(fmt, self._data, self._position)
        self._position += size
        return fields

    def read_bytes(self, count: int) -> Optional[bytes]:
        """
        Read exactly ``count`` bytes.

        Args:
            count: Number of bytes to read

        Returns:
            The bytes, or None if fewer than ``count`` bytes remain
        """
        if count < 0 or count > self.remaining:
            return None
        chunk = self._data[self._position:self._position + count]
        self._position += count
        return chunk

    def read_remaining(self) -> bytes:
        """Read everything up to the end of the buffer (possibly nothing)."""
        chunk = self._data[self._position:]
        self._position = len(self._data)
        return chunk

    def skip(self, count: int) -> bool:
        """Advance by ``count`` bytes; returns False without moving if that is impossible."""
        if count < 0 or count > self.remaining:
            return False
        self._position += count
        return True

    def sub_cursor(self, count: int) -> Optional['ByteCursor']:
        """
        Isolate the next ``count`` bytes into an independent cursor.

        The parent cursor moves past the isolated span whatever the child
        later consumes, so a decoder working on the child cannot disturb the
        parent's position.

        Args:
            count: Size of the span to isolate

        Returns:
            A new cursor over the span, or None if the span runs past the end
        """
        chunk = self.read_bytes(count)
        if chunk is None:
            return None
        return ByteCursor(chunk)

    def read_utf16_string(self) -> str:
        """
        Read UTF-16LE code units up to a zero unit or the end of the buffer.

        The terminating zero unit is consumed; a trailing odd byte is not.
        """
        units = bytearray()
        while self.remaining >= 2:
            unit = self._data[self._position:self._position + 2]
            self._position += 2
            if unit == b'\x00\x00':
                break
            units += unit
        return units.decode('utf-16-le', errors='replace')
