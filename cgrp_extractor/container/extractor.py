"""CGRP container extraction engine."""
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

from ..constants import FILE_SIZE_FIELD, ChunkTag, SubResourceKind, fourcc
from ..cursor import BinaryCursor
from ..diagnostics import SourceRegistry
from ..errors import CgrpError, StructuralValidationError, UnsupportedKindWarning
from ..options import ExtractionOptions
from ..resources.bank import Bank
from ..resources.sequence import Sequence
from ..resources.wave_archive import WaveArchive, WaveArchiveArena
from .file_table import FileTableEntry, read_file_table
from .header import ChunkDirectory, ContainerHeader

logger = logging.getLogger(__name__)


class GroupExtractor:
    """Unpacks a CGRP group into its wave archives, banks and sequences.

    Wave archives and banks get a directory each under `output_root`, named
    by their kind-local index; sequences are written to `output_root`
    itself. A failed extraction leaves whatever it already wrote in place.

    The container is registered as a diagnostic source until `close()`; use
    the extractor as a context manager so the registration is released when
    the block exits. Garbage collection releases it otherwise.

    Usage:
        with GroupExtractor('group.bcgrp', 'out') as extractor:
            ok = extractor.extract()
    """

    _registered = False

    def __init__(self, file_path: Union[str, Path], output_root: Union[str, Path],
                 options: Optional[ExtractionOptions] = None,
                 registry: Optional[SourceRegistry] = None):
        """
        Read the container and register it as the current diagnostic source

        Raises:
            OSError: If the file cannot be opened or read in full
        """
        self.file_path = Path(file_path)
        self.output_root = Path(output_root)
        self.options = options or ExtractionOptions()
        self.registry = registry if registry is not None else SourceRegistry()

        expected = self.file_path.stat().st_size
        with open(self.file_path, 'rb') as f:
            self.data = f.read()
        if len(self.data) != expected:
            raise OSError(f"Short read on {self.file_path}: {len(self.data)} of {expected} bytes")

        self._reset()

        self.registry.push(str(self.file_path))
        self._registered = True

    def __del__(self):
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        """Release the diagnostic registration; safe to call twice."""
        if self._registered:
            self.registry.pop()
            self._registered = False

    def _reset(self) -> None:
        self.header: Optional[ContainerHeader] = None
        self.directory: Optional[ChunkDirectory] = None
        self.file_table: List[FileTableEntry] = []
        self.wave_archives = WaveArchiveArena()
        self.banks: List[Bank] = []
        self.sequences: List[Sequence] = []
        self.warnings: List[UnsupportedKindWarning] = []
        self.error: Optional[Exception] = None

    @property
    def version(self) -> Optional[int]:
        return self.header.version if self.header else None

    def _cursor(self, offset: int = 0) -> BinaryCursor:
        return BinaryCursor(self.data, offset, source=str(self.file_path))

    def _warn(self, offset: int, message: str) -> None:
        warning = UnsupportedKindWarning(offset, message, str(self.file_path))
        self.warnings.append(warning)
        logger.warning(f"{self.file_path} @ 0x{offset:X}: {message}")

    def extract(self) -> bool:
        """
        Unpack every embedded file and run the convert pass

        Returns:
            bool: False at the first structural or I/O failure
        """
        # Each run starts from an empty result; indices restart at 0
        self._reset()
        logger.info(f"Extracting {self.file_path} to {self.output_root}")
        try:
            self._parse_tables()
            self._materialize()
            if self.options.convert and not self._convert_all():
                return False
        except StructuralValidationError as e:
            self.error = e
            logger.error(f"Extraction failed: {e}")
            return False
        except OSError as e:
            self.error = e
            logger.error(f"I/O error while extracting {self.file_path}: {e}")
            return False

        infx = self.directory.get(ChunkTag.INFX)
        if infx is not None:
            self._warn(infx.offset, "Skipping INFX chunk")

        logger.info(f"Extracted {len(self.wave_archives)} wave archives, "
                    f"{len(self.banks)} banks, {len(self.sequences)} sequences")
        return True

    def _parse_tables(self) -> None:
        cursor = self._cursor()
        self.header = ContainerHeader.read(cursor)
        self.directory = ChunkDirectory.read(cursor, self.header.chunk_count)
        self.file_table = read_file_table(cursor, self.directory)

    def _materialize(self) -> None:
        """Split each embedded payload out to disk and open a handle on it."""
        self.output_root.mkdir(parents=True, exist_ok=True)
        cursor = self._cursor()

        for entry in self.file_table:
            if not entry.has_payload:
                continue

            cursor.seek(entry.payload_offset)
            tag = cursor.read_u32_be()
            try:
                kind = SubResourceKind.from_tag(tag)
            except ValueError:
                cursor.fail(entry.payload_offset, "a valid file type", fourcc(tag))

            if kind is SubResourceKind.WAVE_SOUND:
                self._warn(entry.payload_offset, f"Skipping {kind.extension.upper()} file {entry.id}")
                continue

            cursor.seek(entry.payload_offset + FILE_SIZE_FIELD)
            length = cursor.read_u32()
            cursor.seek(entry.payload_offset)
            payload = cursor.read_bytes(length)
            if length != entry.length:
                logger.debug(f"File {entry.id}: payload length {length} != table length {entry.length}")

            if kind is SubResourceKind.WAVE_ARCHIVE:
                path = self._write(payload, kind, len(self.wave_archives), scoped=True)
                self.wave_archives.add(WaveArchive(path, len(self.wave_archives), self.registry))
            elif kind is SubResourceKind.BANK:
                path = self._write(payload, kind, len(self.banks), scoped=True)
                self.banks.append(Bank(path, len(self.banks), self.wave_archives,
                                       self.options.copy_waves, self.registry))
            else:
                path = self._write(payload, kind, len(self.sequences), scoped=False)
                self.sequences.append(Sequence(path, len(self.sequences), self.registry))

    def _write(self, payload: bytes, kind: SubResourceKind, index: int, scoped: bool) -> Path:
        directory = self.output_root / str(index) if scoped else self.output_root
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{index}.{kind.extension}"
        with open(path, 'wb') as f:
            f.write(payload)
        logger.debug(f"Wrote {path} ({len(payload)} bytes)")
        return path

    def _convert_all(self) -> bool:
        # Banks dereference wave archives, so every archive is extracted first
        for archive in self.wave_archives:
            if not archive.extract(self.output_root / str(archive.index)):
                self.error = CgrpError(f"Wave archive {archive.index} failed to extract")
                return False

        for bank in self.banks:
            if not bank.convert(self.output_root / str(bank.index), self.output_root):
                self.error = CgrpError(f"Bank {bank.index} failed to convert")
                return False

        for sequence in self.sequences:
            converted = sequence.convert(self.output_root)
            self.warnings.extend(sequence.warnings)
            if not converted:
                self.error = CgrpError(f"Sequence {sequence.index} failed to convert")
                return False

        return True

    def catalog(self) -> Dict[str, Any]:
        """Summary of everything decoded so far, ready for JSON output."""
        return {
            'file_path': str(self.file_path),
            'output_root': str(self.output_root),
            'options': self.options.to_dict(),
            'header': self.header.to_dict() if self.header else None,
            'chunks': self.directory.to_dict() if self.directory else {},
            'file_table': [entry.to_dict() for entry in self.file_table],
            'wave_archives': [archive.to_dict() for archive in self.wave_archives],
            'banks': [bank.to_dict() for bank in self.banks],
            'sequences': [sequence.to_dict() for sequence in self.sequences],
            'warnings': [warning.to_dict() for warning in self.warnings],
            'error': str(self.error) if self.error else None
        }
