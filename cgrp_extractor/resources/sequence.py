# cgrp_extractor/resources/sequence.py
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional
import json
import logging

from ..constants import (
    DATA_MAGIC, LABL_MAGIC, LABEL_REF_TAG, EMBEDDED_FILE_FLAG, CseqBlock, SubResourceKind
)
from .base import SubResource

logger = logging.getLogger(__name__)


@dataclass
class SequenceLabel:
    """Named entry point into the sequence data"""
    name: str
    offset: int


class Sequence(SubResource):
    """CSEQ sequence.

    `convert` decodes the label table and writes `<n>.json` next to the raw
    sequence file. A payload without a block header is kept as is.
    """

    KIND = SubResourceKind.SEQUENCE

    def __init__(self, path: Path, index: int, registry=None):
        super().__init__(path, index, registry)
        self.labels: List[SequenceLabel] = []
        self.data_size = 0
        self.output_path: Optional[Path] = None

    def convert(self, directory: Optional[Path] = None) -> bool:
        directory = Path(directory) if directory is not None else self.path.parent
        return self._run(lambda: self._convert(directory))

    def _convert(self, directory: Path) -> None:
        self.labels = []
        self.warnings = []
        if not self.has_block_header():
            # Bare payload: nothing to decode, the raw .cseq is the only output
            self._warn(0, "No block header, sequence left unconverted")
            return

        cursor = self.cursor()
        self.read_header(cursor)

        data_body = self.open_block(cursor, CseqBlock.DATA, DATA_MAGIC)
        if data_body is not None:
            self.data_size = max(self.header.blocks[CseqBlock.DATA].size - 8, 0)

        label_body = self.open_block(cursor, CseqBlock.LABL, LABL_MAGIC)
        if label_body is not None:
            count = cursor.read_u32()
            label_offsets = []
            for _ in range(count):
                cursor.expect(LABEL_REF_TAG, 2, description=f"label reference 0x{LABEL_REF_TAG:X}")
                cursor.skip(2)
                label_offsets.append(label_body + cursor.read_u32())

            for offset in label_offsets:
                cursor.seek(offset)
                cursor.expect(EMBEDDED_FILE_FLAG, 2, description="sequence data reference")
                cursor.skip(2)
                data_offset = cursor.read_u32()
                name_length = cursor.read_u32()
                name = cursor.read_bytes(name_length).decode('ascii', 'replace')
                if data_body is not None and data_offset >= self.data_size:
                    cursor.fail(offset + 4, f"a data offset below {self.data_size}", data_offset)
                self.labels.append(SequenceLabel(name, data_offset))

        directory.mkdir(parents=True, exist_ok=True)
        self.output_path = directory / f"{self.index}.json"
        with open(self.output_path, 'w', encoding='utf-8') as f:
            json.dump({
                'index': self.index,
                'data_size': self.data_size,
                'labels': [asdict(label) for label in self.labels]
            }, f, indent=2)

        logger.info(f"Sequence {self.index}: {len(self.labels)} labels")

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['labels'] = [label.name for label in self.labels]
        return result
