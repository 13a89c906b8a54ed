# cgrp_extractor/__init__.py
"""CGRP audio group extractor package."""
from .container import GroupExtractor
from .diagnostics import SourceRegistry
from .errors import CgrpError, StructuralValidationError, UnsupportedKindWarning
from .options import ExtractionOptions

__version__ = '0.1.0'

__all__ = [
    'GroupExtractor',
    'SourceRegistry',
    'CgrpError',
    'StructuralValidationError',
    'UnsupportedKindWarning',
    'ExtractionOptions'
]
