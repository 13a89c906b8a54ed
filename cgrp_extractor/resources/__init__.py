# cgrp_extractor/resources/__init__.py
"""Decoders for the sub-resources embedded in a CGRP group."""
from .base import SubResource
from .bank import Bank
from .sequence import Sequence
from .wave_archive import WaveArchive, WaveArchiveArena

__all__ = ['SubResource', 'Bank', 'Sequence', 'WaveArchive', 'WaveArchiveArena']
