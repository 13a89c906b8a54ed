"""Error types raised while unpacking a CGRP container."""
from typing import Any, Optional


class CgrpError(Exception):
    """Base class for container errors."""
    pass


class StructuralValidationError(CgrpError):
    """Raised when a magic number, tag or length does not match.

    Carries the byte offset of the offending field, a description of what was
    expected there, the value actually decoded, and the file being decoded.
    """

    def __init__(self, offset: int, expected: str, actual: Any,
                 source: Optional[str] = None):
        self.offset = offset
        self.expected = expected
        self.actual = actual
        self.source = source
        super().__init__(self._format())

    def _format(self) -> str:
        actual = f"0x{self.actual:X}" if isinstance(self.actual, int) else self.actual
        where = f"{self.source} @ 0x{self.offset:X}" if self.source else f"0x{self.offset:X}"
        return f"{where}: expected {self.expected}, got {actual}"


class UnsupportedKindWarning(UserWarning):
    """A recognized chunk or file kind that is skipped rather than decoded.

    Collected by the extractor and logged; never raised.
    """

    def __init__(self, offset: int, message: str, source: Optional[str] = None):
        self.offset = offset
        self.message = message
        self.source = source
        super().__init__(f"0x{offset:X}: {message}")

    def to_dict(self):
        return {
            'offset': self.offset,
            'message': self.message,
            'source': self.source
        }
