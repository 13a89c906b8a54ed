"""Bounds-checked read head over an in-memory byte buffer."""
from typing import NoReturn, Optional
import struct

from .errors import StructuralValidationError

_FORMATS = {1: 'B', 2: 'H', 4: 'I', 8: 'Q'}


class BinaryCursor:
    """Sequential reader for little- and big-endian unsigned integers.

    Every read is checked against the end of the buffer and raises
    StructuralValidationError instead of returning short data.
    """

    def __init__(self, data: bytes, offset: int = 0, source: Optional[str] = None):
        """
        Initialize the cursor

        Args:
            data: Buffer to read from
            offset: Initial position
            source: Name of the file the buffer came from, used in errors
        """
        self.data = data
        self.source = source
        self.pos = 0
        self.seek(offset)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def tell(self) -> int:
        return self.pos

    def seek(self, offset: int) -> 'BinaryCursor':
        if offset < 0 or offset > len(self.data):
            raise StructuralValidationError(
                self.pos, f"an offset within 0x{len(self.data):X} bytes", offset, self.source
            )
        self.pos = offset
        return self

    def skip(self, length: int) -> 'BinaryCursor':
        return self.seek(self.pos + length)

    def _require(self, size: int) -> None:
        if size < 0 or self.pos + size > len(self.data):
            raise StructuralValidationError(
                self.pos,
                f"{size} readable bytes",
                f"{self.remaining} bytes before end of buffer",
                self.source
            )

    def read_bytes(self, size: int) -> bytes:
        """Read exact number of bytes"""
        self._require(size)
        chunk = self.data[self.pos:self.pos + size]
        self.pos += size
        return chunk

    def read_uint(self, width: int, big_endian: bool = False) -> int:
        """Read an unsigned integer of `width` bytes."""
        if width not in _FORMATS:
            raise ValueError(f"Unsupported integer width: {width}")
        self._require(width)
        fmt = ('>' if big_endian else '<') + _FORMATS[width]
        value = struct.unpack_from(fmt, self.data, self.pos)[0]
        self.pos += width
        return value

    def read_u8(self) -> int:
        return self.read_uint(1)

    def read_u16(self) -> int:
        return self.read_uint(2)

    def read_u32(self) -> int:
        return self.read_uint(4)

    def read_u32_be(self) -> int:
        return self.read_uint(4, big_endian=True)

    def expect(self, expected: int, width: int = 4, big_endian: bool = False,
               description: Optional[str] = None) -> int:
        """
        Read a value and check it against `expected`

        Raises:
            StructuralValidationError: At the offset where the field starts
        """
        start = self.pos
        actual = self.read_uint(width, big_endian)
        if actual != expected:
            raise StructuralValidationError(
                start, description or f"0x{expected:X}", actual, self.source
            )
        return actual

    def fail(self, offset: int, expected: str, actual) -> NoReturn:
        """Raise a validation error for a field already consumed."""
        raise StructuralValidationError(offset, expected, actual, self.source)
