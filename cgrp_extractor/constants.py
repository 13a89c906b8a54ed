# cgrp_extractor/constants.py
from enum import Enum, IntEnum

# Magic numbers are compared as big-endian u32 so they read as ASCII.
CGRP_MAGIC = 0x43475250     # 'CGRP'
INFO_MAGIC = 0x494E464F     # 'INFO'
FILE_MAGIC = 0x46494C45     # 'FILE'
DATA_MAGIC = 0x44415441     # 'DATA'
LABL_MAGIC = 0x4C41424C     # 'LABL'

BYTE_ORDER_MARK = 0xFEFF
HEADER_SIZE = 0x40

# Entry location references
FILE_SLOT_TAG = 0x7900
EMBEDDED_FILE_FLAG = 0x1F00
NULL_OFFSET = 0xFFFFFFFF

# Offset of the file size field inside every NW4C-style header
FILE_SIZE_FIELD = 0x0C


class ChunkTag(IntEnum):
    """Chunk directory tags of a CGRP container."""
    INFO = 0x7800
    FILE = 0x7801
    INFX = 0x7802


class SubResourceKind(Enum):
    """Embedded file kinds, keyed by their big-endian type tag."""
    WAVE_ARCHIVE = (0x43574152, 'cwar')   # 'CWAR'
    BANK = (0x43424E4B, 'cbnk')           # 'CBNK'
    SEQUENCE = (0x43534551, 'cseq')       # 'CSEQ'
    WAVE_SOUND = (0x43575344, 'cwsd')     # 'CWSD', recognized but not decoded

    def __init__(self, tag: int, extension: str):
        self.tag = tag
        self.extension = extension

    @classmethod
    def from_tag(cls, tag: int) -> 'SubResourceKind':
        for kind in cls:
            if kind.tag == tag:
                return kind
        raise ValueError(f"Unknown sub-resource tag 0x{tag:08X}")


class CwarBlock(IntEnum):
    INFO = 0x6800
    FILE = 0x6801


class CbnkBlock(IntEnum):
    INFO = 0x5800


class CbnkTable(IntEnum):
    """Reference type ids inside a CBNK INFO block."""
    WAVE_ID_TABLE = 0x0100
    INSTRUMENT_TABLE = 0x0101


class CseqBlock(IntEnum):
    DATA = 0x5000
    LABL = 0x5001


LABEL_REF_TAG = 0x5100
CWAV_MAGIC = 0x43574156     # 'CWAV'

# Low bits of a wave archive id hold the archive's index in the group
ARCHIVE_INDEX_MASK = 0x00FFFFFF


def fourcc(value: int) -> str:
    """Render a big-endian tag as text, falling back to hex."""
    raw = value.to_bytes(4, 'big')
    if all(0x20 <= b < 0x7F for b in raw):
        return raw.decode('ascii')
    return f"0x{value:08X}"
