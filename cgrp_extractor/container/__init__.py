# cgrp_extractor/container/__init__.py
"""CGRP container parsing and extraction."""
from .extractor import GroupExtractor
from .file_table import FileTableEntry, read_file_table
from .header import ChunkDirectory, ChunkDirectoryEntry, ContainerHeader

__all__ = [
    'GroupExtractor',
    'FileTableEntry',
    'read_file_table',
    'ChunkDirectory',
    'ChunkDirectoryEntry',
    'ContainerHeader'
]
