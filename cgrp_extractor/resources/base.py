"""Base class for sub-resources embedded in a CGRP container."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
import logging

from ..constants import BYTE_ORDER_MARK, SubResourceKind
from ..cursor import BinaryCursor
from ..diagnostics import SourceRegistry
from ..errors import StructuralValidationError, UnsupportedKindWarning

logger = logging.getLogger(__name__)


@dataclass
class BlockReference:
    """Location of a block inside a sub-resource file"""
    type_id: int
    offset: int
    size: int


@dataclass
class ResourceHeader:
    """Header shared by CWAR, CBNK and CSEQ files"""
    magic: int
    header_size: int
    version: int
    file_size: int
    blocks: Dict[int, BlockReference] = field(default_factory=dict)


class SubResource:
    """A sub-resource file written out by the extractor.

    The handle owns the bytes read back from `path`. Subclasses implement
    the kind-specific extract or convert step on top of `read_header` and
    `open_block`.
    """

    KIND: SubResourceKind = None

    def __init__(self, path: Path, index: int, registry: Optional[SourceRegistry] = None):
        """
        Args:
            path: File the extractor wrote this sub-resource to
            index: Kind-local sequential index within the container
            registry: Diagnostic source registry shared with the extractor;
                a private one is created when omitted
        """
        self.path = Path(path)
        self.index = index
        self.registry = registry if registry is not None else SourceRegistry()
        self.header: Optional[ResourceHeader] = None
        self.warnings: List[UnsupportedKindWarning] = []

        with open(self.path, 'rb') as f:
            self.data = f.read()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(index={self.index}, path='{self.path}')"

    def cursor(self, offset: int = 0) -> BinaryCursor:
        return BinaryCursor(self.data, offset, source=self.registry.current or str(self.path))

    def has_block_header(self) -> bool:
        """Whether the file carries a byte order mark and a block table."""
        return len(self.data) >= 0x14 and self.data[4:6] == BYTE_ORDER_MARK.to_bytes(2, 'little')

    def _warn(self, offset: int, message: str) -> None:
        self.warnings.append(UnsupportedKindWarning(offset, message, str(self.path)))
        logger.warning(f"{self.path} @ 0x{offset:X}: {message}")

    def read_header(self, cursor: BinaryCursor) -> ResourceHeader:
        """Read the common header and its block reference table."""
        cursor.seek(0)
        magic = cursor.expect(self.KIND.tag, 4, big_endian=True,
                              description=f"'{self.KIND.extension.upper()}' magic")
        cursor.expect(BYTE_ORDER_MARK, 2, description="byte order mark 0xFEFF")
        header_size = cursor.read_u16()
        version = cursor.read_u32()
        file_size = cursor.expect(len(cursor), 4, description=f"file size {len(cursor)}")
        block_count = cursor.read_u16()
        cursor.skip(2)

        header = ResourceHeader(magic, header_size, version, file_size)
        for _ in range(block_count):
            type_id = cursor.read_u16()
            cursor.skip(2)
            offset = cursor.read_u32()
            size = cursor.read_u32()
            header.blocks[type_id] = BlockReference(type_id, offset, size)

        self.header = header
        return header

    def open_block(self, cursor: BinaryCursor, type_id: int, magic: int) -> Optional[int]:
        """
        Seek to a block and validate its magic and size

        Returns:
            Offset of the block body, or None when the block is absent
        """
        ref = self.header.blocks.get(type_id)
        if ref is None:
            return None
        cursor.seek(ref.offset)
        cursor.expect(magic, 4, big_endian=True,
                      description=f"block magic 0x{magic:08X}")
        cursor.expect(ref.size, 4, description=f"block size {ref.size}")
        return cursor.tell()

    def _run(self, step: Callable[[], None]) -> bool:
        """Run a decode step with this file registered, logging failures."""
        with self.registry.opened(self.path):
            try:
                step()
            except StructuralValidationError as e:
                logger.error(f"Failed to decode {self.path}: {e}")
                return False
            except OSError as e:
                logger.error(f"I/O error while decoding {self.path}: {e}")
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.KIND.name,
            'index': self.index,
            'path': str(self.path),
            'size': len(self.data)
        }
