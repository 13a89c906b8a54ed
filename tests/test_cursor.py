"""
Tests for the bounds-checked cursor and the diagnostic registry
"""

import os
import sys
import pytest

# Add the parent directory to sys.path to allow direct imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cgrp_extractor import SourceRegistry, StructuralValidationError
from cgrp_extractor.cursor import BinaryCursor


class TestBinaryCursor:
    """Test integer decoding and bounds checks"""

    def test_byte_order(self):
        cursor = BinaryCursor(b'CGRP\xff\xfe\x40\x00')
        assert cursor.read_u32_be() == 0x43475250
        assert cursor.read_u16() == 0xFEFF
        assert cursor.read_uint(2, big_endian=True) == 0x4000
        assert cursor.remaining == 0

    def test_read_past_end(self):
        cursor = BinaryCursor(b'\x01\x02\x03', source='test.bin')
        cursor.read_u8()
        with pytest.raises(StructuralValidationError) as exc_info:
            cursor.read_u32()
        assert exc_info.value.offset == 1
        assert exc_info.value.source == 'test.bin'
        assert cursor.tell() == 1

    def test_seek_bounds(self):
        cursor = BinaryCursor(b'\0' * 4)
        cursor.seek(4)
        with pytest.raises(StructuralValidationError):
            cursor.seek(5)
        with pytest.raises(StructuralValidationError):
            cursor.seek(-1)

    def test_expect_reports_field_start(self):
        cursor = BinaryCursor(b'\0\0\0\0\x01\0\0\0')
        cursor.expect(0)
        with pytest.raises(StructuralValidationError) as exc_info:
            cursor.expect(2, description="two")
        error = exc_info.value
        assert error.offset == 4
        assert error.expected == "two"
        assert error.actual == 1
        assert "0x4" in str(error)

    def test_read_bytes(self):
        cursor = BinaryCursor(b'abcdef', offset=2)
        assert cursor.read_bytes(3) == b'cde'
        with pytest.raises(StructuralValidationError):
            cursor.read_bytes(2)

    def test_unsupported_width(self):
        with pytest.raises(ValueError):
            BinaryCursor(b'\0' * 8).read_uint(3)


class TestSourceRegistry:
    """Test push/pop discipline"""

    def test_nesting(self):
        registry = SourceRegistry()
        assert registry.current is None
        registry.push('group.bcgrp')
        with registry.opened('0.cwar'):
            assert registry.current == '0.cwar'
            assert registry.depth == 2
        assert registry.current == 'group.bcgrp'
        assert registry.pop() == 'group.bcgrp'

    def test_pop_on_error(self):
        registry = SourceRegistry()
        with pytest.raises(KeyError):
            with registry.opened('0.cbnk'):
                raise KeyError('boom')
        assert registry.depth == 0

    def test_pop_empty(self):
        with pytest.raises(RuntimeError):
            SourceRegistry().pop()
