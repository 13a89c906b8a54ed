# cgrp_extractor/container/file_table.py
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from ..constants import (
    INFO_MAGIC, FILE_MAGIC, FILE_SLOT_TAG, EMBEDDED_FILE_FLAG, ChunkTag
)
from ..cursor import BinaryCursor
from .header import ChunkDirectory, ChunkDirectoryEntry

logger = logging.getLogger(__name__)

# Chunk magic + chunk length
CHUNK_HEADER_SIZE = 8


@dataclass
class FileTableEntry:
    """One slot of the INFO chunk's file table.

    Each entry is 16 bytes: id, location flag, offset into the FILE chunk
    body and length. Only entries flagged as embedded carry a payload.
    """
    id: int
    offset_flag: int
    raw_offset: int
    length: int
    payload_offset: Optional[int]

    @property
    def has_payload(self) -> bool:
        return self.payload_offset is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'offset_flag': self.offset_flag,
            'raw_offset': self.raw_offset,
            'length': self.length,
            'payload_offset': self.payload_offset
        }


def _require_chunk(directory: ChunkDirectory, tag: ChunkTag,
                   cursor: BinaryCursor) -> ChunkDirectoryEntry:
    entry = directory.get(tag)
    if entry is None:
        cursor.fail(directory.offset, f"a {tag.name} chunk in the chunk directory", "none")
    return entry


def _check_chunk_header(cursor: BinaryCursor, entry: ChunkDirectoryEntry,
                        magic: int) -> None:
    """Validate a chunk's own magic and length against its directory entry."""
    cursor.seek(entry.offset)
    cursor.expect(magic, 4, big_endian=True, description=f"'{entry.tag.name}' magic")
    cursor.expect(entry.length, 4, description=f"{entry.tag.name} length {entry.length}")


def read_file_table(cursor: BinaryCursor, directory: ChunkDirectory) -> List[FileTableEntry]:
    """
    Parse the INFO chunk's file table

    Slot offsets are relative to the INFO chunk body; payload offsets are
    relative to the FILE chunk body.

    Returns:
        Entries in table order, including those without a payload
    """
    info = _require_chunk(directory, ChunkTag.INFO, cursor)
    file_chunk = _require_chunk(directory, ChunkTag.FILE, cursor)

    _check_chunk_header(cursor, file_chunk, FILE_MAGIC)
    _check_chunk_header(cursor, info, INFO_MAGIC)

    info_base = info.offset + CHUNK_HEADER_SIZE
    file_base = file_chunk.offset + CHUNK_HEADER_SIZE

    count = cursor.read_u32()
    slots: List[int] = []
    for _ in range(count):
        cursor.expect(FILE_SLOT_TAG, 4, description=f"file slot tag 0x{FILE_SLOT_TAG:X}")
        slots.append(info_base + cursor.read_u32())

    # Entries are reached through their slot pointers and are always 16 bytes,
    # offset field included, so an entry without a payload never shifts the
    # position of the next one
    entries: List[FileTableEntry] = []
    for slot in slots:
        cursor.seek(slot)
        file_id = cursor.read_u32()
        offset_flag = cursor.read_u32()
        raw_offset = cursor.read_u32()
        length = cursor.read_u32()

        if offset_flag == EMBEDDED_FILE_FLAG:
            payload_offset = file_base + raw_offset
        else:
            payload_offset = None
            logger.debug(f"File {file_id} has no embedded payload (flag 0x{offset_flag:X})")

        entries.append(FileTableEntry(file_id, offset_flag, raw_offset, length, payload_offset))

    logger.debug(f"File table: {len(entries)} entries, "
                 f"{sum(1 for e in entries if e.has_payload)} embedded")
    return entries
