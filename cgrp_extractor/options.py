# cgrp_extractor/options.py
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class ExtractionOptions:
    """Settings for a single container extraction."""
    copy_waves: bool = False    # Copy referenced waves into each bank directory
    convert: bool = True        # Run the wave archive / bank / sequence pass

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
