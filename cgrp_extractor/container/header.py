# cgrp_extractor/container/header.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

from ..constants import (
    CGRP_MAGIC, BYTE_ORDER_MARK, HEADER_SIZE, ChunkTag
)
from ..cursor import BinaryCursor

logger = logging.getLogger(__name__)


@dataclass
class ContainerHeader:
    """Fixed header at the start of a CGRP file."""
    version: int
    total_length: int
    chunk_count: int

    @classmethod
    def read(cls, cursor: BinaryCursor) -> 'ContainerHeader':
        """Validate magic, byte order and header size, then read the rest.

        The cursor is left at the first chunk directory entry.
        """
        cursor.expect(CGRP_MAGIC, 4, big_endian=True, description="'CGRP' magic")
        cursor.expect(BYTE_ORDER_MARK, 2, description="byte order mark 0xFEFF")
        cursor.expect(HEADER_SIZE, 2, description=f"header size 0x{HEADER_SIZE:X}")

        version = cursor.read_u32()
        logger.debug(f"CGRP version 0x{version:08X}")

        cursor.expect(len(cursor), 4, description=f"total length {len(cursor)}")
        chunk_count = cursor.read_u32()

        return cls(version=version, total_length=len(cursor), chunk_count=chunk_count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'total_length': self.total_length,
            'chunk_count': self.chunk_count
        }


@dataclass
class ChunkDirectoryEntry:
    tag: ChunkTag
    offset: int
    length: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag.name,
            'offset': self.offset,
            'length': self.length
        }


@dataclass
class ChunkDirectory:
    """Location of each top-level chunk, keyed by tag.

    `offset` is where the directory starts in the container.
    """
    entries: Dict[ChunkTag, ChunkDirectoryEntry] = field(default_factory=dict)
    offset: int = 0

    @classmethod
    def read(cls, cursor: BinaryCursor, count: int) -> 'ChunkDirectory':
        """Read `count` {tag, offset, length} triples in any order."""
        directory = cls(offset=cursor.tell())
        for _ in range(count):
            tag_offset = cursor.tell()
            raw_tag = cursor.read_u32()
            try:
                tag = ChunkTag(raw_tag)
            except ValueError:
                cursor.fail(tag_offset, "a valid chunk type", raw_tag)

            if tag in directory.entries:
                cursor.fail(tag_offset, f"a single {tag.name} chunk", raw_tag)

            offset = cursor.read_u32()
            length = cursor.read_u32()
            directory.entries[tag] = ChunkDirectoryEntry(tag, offset, length)
            logger.debug(f"Chunk {tag.name} at 0x{offset:X} ({length} bytes)")

        return directory

    def get(self, tag: ChunkTag) -> Optional[ChunkDirectoryEntry]:
        return self.entries.get(tag)

    def __contains__(self, tag: ChunkTag) -> bool:
        return tag in self.entries

    def to_dict(self) -> Dict[str, Any]:
        return {
            tag.name: entry.to_dict()
            for tag, entry in sorted(self.entries.items())
        }
