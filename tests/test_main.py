"""
Tests for the command line entry point
"""

import os
import sys
import json
import logging
import pytest

# Add the parent directory to sys.path to allow direct imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cgrp_extractor import ExtractionOptions, SourceRegistry
from cgrp_extractor.main import extract_group, main

from builders import create_group, create_cseq, create_cwar, create_cwav, create_cbnk


@pytest.fixture(autouse=True)
def restore_logging():
    """main() replaces the root handlers; put pytest's back afterwards"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_extracts_group(tmp_path):
    payloads = [create_cwar([create_cwav()]), create_cbnk(waves=[(0, 0)]), create_cseq()]
    group = create_group(payloads).write(tmp_path / "music.bcgrp")

    status = main([str(group), '--output', str(tmp_path / "out"),
                   '--log-dir', str(tmp_path / "logs"), '--copy-waves'])

    out = tmp_path / "out" / "music"
    assert status == 0
    assert (out / "0" / "0.cwav").is_file()
    assert (out / "0" / "0_0.cwav").is_file()
    assert (out / "0.cseq").is_file()
    catalog = json.loads((out / "catalog.json").read_text())
    assert catalog['options'] == {'copy_waves': True, 'convert': True}
    assert len(catalog['banks']) == 1
    assert list((tmp_path / "logs").glob("cgrp_extract_*.log"))


def test_failure_status(tmp_path):
    good = create_group([create_cseq()]).write(tmp_path / "good.bcgrp")
    bad = tmp_path / "bad.bcgrp"
    bad.write_bytes(b'CGRP')

    status = main([str(good), str(bad), str(tmp_path / "missing.bcgrp"),
                   '--output', str(tmp_path / "out"), '--log-dir', str(tmp_path / "logs")])

    assert status == 1
    assert (tmp_path / "out" / "good" / "0.cseq").is_file()
    catalog = json.loads((tmp_path / "out" / "bad" / "catalog.json").read_text())
    assert catalog['error'] is not None


def test_extract_group_releases_registry(tmp_path):
    group = create_group([create_cseq()]).write(tmp_path / "g.bcgrp")
    registry = SourceRegistry()

    assert extract_group(group, tmp_path / "out", ExtractionOptions(), registry)
    assert registry.depth == 0
    assert (tmp_path / "out" / "catalog.json").is_file()
