# cgrp_extractor/resources/wave_archive.py
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
import logging

from ..constants import (
    INFO_MAGIC, FILE_MAGIC, CWAV_MAGIC, EMBEDDED_FILE_FLAG, FILE_SIZE_FIELD,
    CwarBlock, SubResourceKind
)
from .base import SubResource

logger = logging.getLogger(__name__)


class WaveArchive(SubResource):
    """CWAR wave archive.

    `extract` splits the archive into one `<n>.cwav` file per embedded wave
    inside the archive's own directory.
    """

    KIND = SubResourceKind.WAVE_ARCHIVE

    def __init__(self, path: Path, index: int, registry=None):
        super().__init__(path, index, registry)
        self.directory = self.path.parent
        self.wave_paths: List[Path] = []

    def extract(self, directory: Optional[Path] = None) -> bool:
        """Write every embedded wave into `directory` (default: beside the archive)."""
        if directory is not None:
            self.directory = Path(directory)
        return self._run(self._extract_waves)

    def _extract_waves(self) -> None:
        self.wave_paths = []
        cursor = self.cursor()
        self.read_header(cursor)

        file_body = self.open_block(cursor, CwarBlock.FILE, FILE_MAGIC)
        info_body = self.open_block(cursor, CwarBlock.INFO, INFO_MAGIC)
        if info_body is None or file_body is None:
            cursor.fail(0, "INFO and FILE blocks", f"blocks {sorted(self.header.blocks)}")

        count = cursor.read_u32()
        locations = []
        for _ in range(count):
            cursor.expect(EMBEDDED_FILE_FLAG, 2, description="embedded wave reference")
            cursor.skip(2)
            offset = cursor.read_u32()
            size = cursor.read_u32()
            locations.append((file_body + offset, size))

        self.directory.mkdir(parents=True, exist_ok=True)
        for i, (offset, size) in enumerate(locations):
            cursor.seek(offset)
            cursor.expect(CWAV_MAGIC, 4, big_endian=True, description="'CWAV' magic")
            cursor.seek(offset + FILE_SIZE_FIELD)
            wave_size = cursor.read_u32()
            if wave_size != size:
                logger.warning(f"Wave {i} of archive {self.index}: "
                               f"header size {wave_size} != reference size {size}")

            cursor.seek(offset)
            wave = cursor.read_bytes(size)
            wave_path = self.directory / f"{i}.cwav"
            with open(wave_path, 'wb') as f:
                f.write(wave)
            self.wave_paths.append(wave_path)

        logger.info(f"Wave archive {self.index}: extracted {len(self.wave_paths)} waves")

    @property
    def wave_count(self) -> int:
        return len(self.wave_paths)

    def wave_path(self, wave_index: int) -> Optional[Path]:
        if 0 <= wave_index < len(self.wave_paths):
            return self.wave_paths[wave_index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['waves'] = [str(p) for p in self.wave_paths]
        return result


class WaveArchiveArena:
    """Wave archives of one container, addressed by dense index.

    Banks keep a reference to the arena and look archives up only when they
    are converted, after every archive has been extracted.
    """

    def __init__(self):
        self._archives: List[WaveArchive] = []

    def add(self, archive: WaveArchive) -> int:
        if archive.index != len(self._archives):
            raise ValueError(
                f"Wave archive index {archive.index} is not the next dense index "
                f"({len(self._archives)})"
            )
        self._archives.append(archive)
        return archive.index

    def get(self, index: int) -> Optional[WaveArchive]:
        if 0 <= index < len(self._archives):
            return self._archives[index]
        return None

    def __getitem__(self, index: int) -> WaveArchive:
        return self._archives[index]

    def __len__(self) -> int:
        return len(self._archives)

    def __iter__(self) -> Iterator[WaveArchive]:
        return iter(self._archives)
