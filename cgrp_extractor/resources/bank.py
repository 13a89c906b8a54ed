# cgrp_extractor/resources/bank.py
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging
import os
import shutil

from ..constants import (
    INFO_MAGIC, NULL_OFFSET, ARCHIVE_INDEX_MASK, CbnkBlock, CbnkTable, SubResourceKind
)
from ..cursor import BinaryCursor
from .base import SubResource
from .wave_archive import WaveArchiveArena

logger = logging.getLogger(__name__)


@dataclass
class WaveReference:
    """Entry of a bank's wave id table."""
    archive_id: int
    wave_index: int
    path: Optional[str] = None

    @property
    def archive_index(self) -> int:
        return self.archive_id & ARCHIVE_INDEX_MASK


@dataclass
class InstrumentSlot:
    program: int
    type_id: int
    offset: Optional[int]

    @property
    def is_empty(self) -> bool:
        return self.offset is None


class Bank(SubResource):
    """CBNK instrument bank.

    Wave references name a wave archive and a wave inside it. They are
    resolved against the shared WaveArchiveArena at convert time.
    """

    KIND = SubResourceKind.BANK
    MANIFEST_NAME = 'bank.json'

    def __init__(self, path: Path, index: int, wave_archives: WaveArchiveArena,
                 copy_waves: bool = False, registry=None):
        super().__init__(path, index, registry)
        self.wave_archives = wave_archives
        self.copy_waves = copy_waves
        self.directory = self.path.parent
        self.instruments: List[InstrumentSlot] = []
        self.waves: List[WaveReference] = []
        self.unresolved: List[WaveReference] = []

    def convert(self, directory: Optional[Path] = None, parent_dir: Optional[Path] = None) -> bool:
        """
        Decode the bank and write its manifest

        Args:
            directory: Bank output directory (default: beside the raw file)
            parent_dir: Root that wave paths in the manifest are relative to
        """
        if directory is not None:
            self.directory = Path(directory)
        root = Path(parent_dir) if parent_dir is not None else self.directory.parent
        return self._run(lambda: self._convert(root))

    def _read_table_ref(self, cursor: BinaryCursor, type_id: int, base: int) -> Optional[int]:
        cursor.expect(type_id, 2, description=f"table reference 0x{type_id:04X}")
        cursor.skip(2)
        offset = cursor.read_u32()
        return None if offset == NULL_OFFSET else base + offset

    def _read_wave_table(self, cursor: BinaryCursor, offset: int) -> List[WaveReference]:
        cursor.seek(offset)
        count = cursor.read_u32()
        return [WaveReference(cursor.read_u32(), cursor.read_u32()) for _ in range(count)]

    def _read_instruments(self, cursor: BinaryCursor, offset: int, base: int) -> List[InstrumentSlot]:
        cursor.seek(offset)
        count = cursor.read_u32()
        slots = []
        for program in range(count):
            type_id = cursor.read_u16()
            cursor.skip(2)
            inst_offset = cursor.read_u32()
            slots.append(InstrumentSlot(
                program, type_id, None if inst_offset == NULL_OFFSET else base + inst_offset
            ))
        return slots

    def _resolve(self, ref: WaveReference, root: Path) -> None:
        archive = self.wave_archives.get(ref.archive_index)
        wave_path = archive.wave_path(ref.wave_index) if archive else None
        if wave_path is None:
            logger.warning(f"Bank {self.index}: unresolved wave "
                           f"{ref.archive_index}/{ref.wave_index}")
            self.unresolved.append(ref)
            return

        if self.copy_waves:
            target = self.directory / f"{ref.archive_index}_{ref.wave_index}.cwav"
            shutil.copyfile(wave_path, target)
            wave_path = target
        ref.path = Path(os.path.relpath(wave_path, root)).as_posix()

    def _convert(self, root: Path) -> None:
        self.instruments = []
        self.waves = []
        self.unresolved = []

        cursor = self.cursor()
        self.read_header(cursor)
        info_body = self.open_block(cursor, CbnkBlock.INFO, INFO_MAGIC)
        if info_body is None:
            cursor.fail(0, "an INFO block", f"blocks {sorted(self.header.blocks)}")

        wave_table = self._read_table_ref(cursor, CbnkTable.WAVE_ID_TABLE, info_body)
        inst_table = self._read_table_ref(cursor, CbnkTable.INSTRUMENT_TABLE, info_body)

        if wave_table is not None:
            self.waves = self._read_wave_table(cursor, wave_table)
        if inst_table is not None:
            self.instruments = self._read_instruments(cursor, inst_table, info_body)

        self.directory.mkdir(parents=True, exist_ok=True)
        for ref in self.waves:
            self._resolve(ref, root)

        manifest = {
            'index': self.index,
            'instruments': [asdict(slot) for slot in self.instruments],
            'waves': [
                {
                    'archive': ref.archive_index,
                    'wave': ref.wave_index,
                    'path': ref.path
                }
                for ref in self.waves
            ]
        }
        with open(self.directory / self.MANIFEST_NAME, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2)

        logger.info(f"Bank {self.index}: {len(self.instruments)} instruments, "
                    f"{len(self.waves)} waves ({len(self.unresolved)} unresolved)")

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['instruments'] = len(self.instruments)
        result['waves'] = len(self.waves)
        result['unresolved_waves'] = len(self.unresolved)
        return result
