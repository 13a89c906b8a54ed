"""Registry of the files currently being decoded, for error reporting."""
from contextlib import contextmanager
from typing import Iterator, List, Optional
import logging

logger = logging.getLogger(__name__)


class SourceRegistry:
    """Stack of open source files.

    Nested decoders push their own file on top of the container's, so the
    innermost file is the one named in diagnostics.
    """

    def __init__(self):
        self._stack: List[str] = []

    def push(self, path: str) -> None:
        self._stack.append(str(path))
        logger.debug(f"Decoding {path} (depth {len(self._stack)})")

    def pop(self) -> str:
        if not self._stack:
            raise RuntimeError("Source registry is empty")
        return self._stack.pop()

    @property
    def current(self) -> Optional[str]:
        return self._stack[-1] if self._stack else None

    @property
    def depth(self) -> int:
        return len(self._stack)

    @contextmanager
    def opened(self, path: str) -> Iterator[str]:
        """Register `path` for the duration of the block."""
        self.push(path)
        try:
            yield str(path)
        finally:
            self.pop()

