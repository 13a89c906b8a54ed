"""
Tests for the wave archive, bank and sequence decoders
"""

import os
import sys
import json
import struct
import pytest
from pathlib import Path

# Add the parent directory to sys.path to allow direct imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cgrp_extractor import SourceRegistry
from cgrp_extractor.resources import Bank, Sequence, WaveArchive, WaveArchiveArena

from builders import create_cbnk, create_cseq, create_cwar, create_cwav, create_resource


@pytest.fixture
def registry():
    return SourceRegistry()


def write_file(directory: Path, name: str, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(data)
    return path


def extracted_arena(root: Path, archives, registry) -> WaveArchiveArena:
    """Write and extract one wave archive per list of waves"""
    arena = WaveArchiveArena()
    for i, waves in enumerate(archives):
        path = write_file(root / str(i), f"{i}.cwar", create_cwar(waves))
        archive = WaveArchive(path, i, registry)
        assert archive.extract(root / str(i))
        arena.add(archive)
    return arena


class TestWaveArchive:
    """Test CWAR splitting"""

    def test_extract_waves(self, tmp_path, registry):
        waves = [create_cwav(b'\x01' * 8), create_cwav(b'\x02' * 12)]
        path = write_file(tmp_path / "0", "0.cwar", create_cwar(waves))
        archive = WaveArchive(path, 0, registry)

        assert archive.extract(tmp_path / "0")
        assert archive.wave_count == 2
        assert (tmp_path / "0" / "0.cwav").read_bytes() == waves[0]
        assert (tmp_path / "0" / "1.cwav").read_bytes() == waves[1]
        assert archive.wave_path(1) == tmp_path / "0" / "1.cwav"
        assert archive.wave_path(2) is None
        assert registry.depth == 0

    def test_bad_wave_magic(self, tmp_path, registry):
        wave = b'XWAV' + create_cwav()[4:]
        path = write_file(tmp_path, "0.cwar", create_cwar([wave]))
        archive = WaveArchive(path, 0, registry)

        assert not archive.extract(tmp_path)
        assert registry.depth == 0

    def test_wrong_magic(self, tmp_path, registry):
        path = write_file(tmp_path, "0.cwar", create_cbnk())
        assert not WaveArchive(path, 0, registry).extract()

    def test_truncated_archive(self, tmp_path, registry):
        data = create_cwar([create_cwav()])
        path = write_file(tmp_path, "0.cwar", data[:-4])
        assert not WaveArchive(path, 0, registry).extract()


class TestWaveArchiveArena:
    """Test dense index addressing"""

    def test_rejects_gaps(self, tmp_path, registry):
        path = write_file(tmp_path, "1.cwar", create_cwar([]))
        arena = WaveArchiveArena()
        with pytest.raises(ValueError):
            arena.add(WaveArchive(path, 1, registry))

    def test_lookup(self, tmp_path, registry):
        arena = extracted_arena(tmp_path, [[create_cwav()]], registry)
        assert len(arena) == 1
        assert arena.get(0) is arena[0]
        assert arena.get(1) is None
        assert arena.get(-1) is None


class TestBank:
    """Test CBNK decoding and wave resolution"""

    def test_resolves_waves(self, tmp_path, registry):
        arena = extracted_arena(tmp_path, [[create_cwav()], [create_cwav(), create_cwav()]], registry)
        data = create_cbnk(waves=[(0x05000000, 0), (0x05000001, 1)], instruments=[0x6000, None])
        path = write_file(tmp_path / "0", "0.cbnk", data)
        bank = Bank(path, 0, arena, registry=registry)

        assert bank.convert(tmp_path / "0", tmp_path)
        assert [ref.path for ref in bank.waves] == ['0/0.cwav', '1/1.cwav']
        assert bank.unresolved == []
        assert [slot.is_empty for slot in bank.instruments] == [False, True]
        assert bank.instruments[0].type_id == 0x6000

        manifest = json.loads((tmp_path / "0" / "bank.json").read_text())
        assert manifest['index'] == 0
        assert manifest['waves'][1] == {'archive': 1, 'wave': 1, 'path': '1/1.cwav'}
        assert len(manifest['instruments']) == 2

    def test_copy_waves(self, tmp_path, registry):
        wave = create_cwav(b'\x07' * 4)
        arena = extracted_arena(tmp_path, [[wave]], registry)
        path = write_file(tmp_path / "0", "0.cbnk", create_cbnk(waves=[(0x05000000, 0)]))
        bank = Bank(path, 0, arena, copy_waves=True, registry=registry)

        assert bank.convert(tmp_path / "0", tmp_path)
        assert (tmp_path / "0" / "0_0.cwav").read_bytes() == wave
        assert bank.waves[0].path == '0/0_0.cwav'

    def test_unresolved_wave_is_not_fatal(self, tmp_path, registry):
        arena = extracted_arena(tmp_path, [[create_cwav()]], registry)
        data = create_cbnk(waves=[(0x05000003, 0), (0x05000000, 9)])
        path = write_file(tmp_path / "0", "0.cbnk", data)
        bank = Bank(path, 0, arena, registry=registry)

        assert bank.convert(tmp_path / "0", tmp_path)
        assert len(bank.unresolved) == 2
        assert all(ref.path is None for ref in bank.waves)

    def test_missing_info_block(self, tmp_path, registry):
        path = write_file(tmp_path, "0.cbnk", create_resource(b'CBNK'))
        bank = Bank(path, 0, WaveArchiveArena(), registry=registry)
        assert not bank.convert(tmp_path, tmp_path)


class TestSequence:
    """Test CSEQ label decoding"""

    def test_labels(self, tmp_path, registry):
        data = create_cseq([('intro', 0), ('loop', 12)], data=b'\0' * 32)
        path = write_file(tmp_path, "3.cseq", data)
        sequence = Sequence(path, 3, registry)

        assert sequence.convert(tmp_path)
        assert [(l.name, l.offset) for l in sequence.labels] == [('intro', 0), ('loop', 12)]
        assert sequence.data_size == 32

        output = json.loads((tmp_path / "3.json").read_text())
        assert output['labels'][1] == {'name': 'loop', 'offset': 12}

    def test_label_outside_data(self, tmp_path, registry):
        data = create_cseq([('bad', 64)], data=b'\0' * 16)
        path = write_file(tmp_path, "0.cseq", data)
        assert not Sequence(path, 0, registry).convert(tmp_path)
        assert not (tmp_path / "0.json").exists()

    def test_header_only(self, tmp_path, registry):
        path = write_file(tmp_path, "0.cseq", create_resource(b'CSEQ'))
        sequence = Sequence(path, 0, registry)
        assert sequence.convert(tmp_path)
        assert sequence.labels == []

    def test_no_block_header(self, tmp_path, registry):
        data = b'CSEQ' + b'\0' * 8 + struct.pack('<I', 32) + b'\0' * 16
        path = write_file(tmp_path, "0.cseq", data)
        sequence = Sequence(path, 0, registry)

        assert not sequence.has_block_header()
        assert sequence.convert(tmp_path)
        assert sequence.labels == []
        assert len(sequence.warnings) == 1
        assert sequence.warnings[0].offset == 0
        assert not (tmp_path / "0.json").exists()
        assert registry.depth == 0
