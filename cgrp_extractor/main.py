# cgrp_extractor/main.py
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .container import GroupExtractor
from .diagnostics import SourceRegistry
from .options import ExtractionOptions

logger = logging.getLogger(__name__)

CATALOG_NAME = 'catalog.json'


def setup_logging(log_dir: str, log_level: int = logging.INFO) -> Path:
    """Setup logging configuration.

    Installs a file handler writing to a timestamped file in log_dir and a
    console handler writing to stderr.

    Returns:
        Path of the log file
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    log_file = log_path / f'cgrp_extract_{timestamp}.log'
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    file_handler.setLevel(log_level)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    root_logger.debug(f"Log file: {log_file}")
    return log_file


def extract_group(file_path: Path, output_dir: Path, options: ExtractionOptions,
                  registry: Optional[SourceRegistry] = None) -> bool:
    """Extract one group into `output_dir` and write its catalog.

    Each group gets its own source registry unless one is passed in. The
    catalog is written on failure too, so a partial tree can be inspected.
    """
    registry = registry if registry is not None else SourceRegistry()
    try:
        with GroupExtractor(file_path, output_dir, options, registry) as extractor:
            ok = extractor.extract()
            catalog = extractor.catalog()
    except OSError as e:
        logger.error(f"Failed to read {file_path}: {e}")
        return False

    output_dir.mkdir(parents=True, exist_ok=True)
    catalog_path = output_dir / CATALOG_NAME
    with open(catalog_path, 'w', encoding='utf-8') as f:
        json.dump(catalog, f, indent=2)
    logger.info(f"Catalog written to {catalog_path}")
    return ok


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Extract wave archives, banks and sequences from CGRP audio groups'
    )
    parser.add_argument('files',
                       nargs='+',
                       help='CGRP files to extract')
    parser.add_argument('--output',
                       default='output',
                       help='Output directory; each group gets a subdirectory named after it')
    parser.add_argument('--log-dir',
                       default='logs',
                       help='Log directory')
    parser.add_argument('--copy-waves',
                       action='store_true',
                       help='Copy referenced waves into each bank directory')
    parser.add_argument('--no-convert',
                       action='store_true',
                       help='Only split the group, skip the convert pass')
    parser.add_argument('--verbose', '-v',
                       action='store_true',
                       help='Enable verbose logging')

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(args.log_dir, log_level)

    options = ExtractionOptions(copy_waves=args.copy_waves, convert=not args.no_convert)
    output_root = Path(args.output)

    failed = []
    for file_name in tqdm(args.files, desc='Extracting groups', disable=len(args.files) < 2):
        file_path = Path(file_name)
        if not file_path.is_file():
            logger.error(f"File not found: {file_path}")
            failed.append(file_path)
            continue

        if not extract_group(file_path, output_root / file_path.stem, options):
            failed.append(file_path)

    if failed:
        logger.error(f"{len(failed)} of {len(args.files)} groups failed: "
                     f"{', '.join(str(p) for p in failed)}")
        return 1

    logger.info("Processing complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
