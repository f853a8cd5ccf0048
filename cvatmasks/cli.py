from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from cvatmasks.core.config import get_settings
from cvatmasks.core.logging import configure_logging
from cvatmasks.pipeline.document import load_document
from cvatmasks.pipeline.errors import CvatMaskError
from cvatmasks.pipeline.orchestrator import run_pipeline
from cvatmasks.pipeline.sink import DirectoryMaskSink

logger = logging.getLogger(__name__)


def _existing_file(value: str) -> Path:
    path = Path(value)
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"file does not exist: {value}")
    return path


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="cvat-masks",
        description="Generate per-label binary masks from a CVAT XML annotation file.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("annotations", type=_existing_file, help="CVAT XML annotation file")
    parser.add_argument("out_dir", type=Path, help="Output directory; one subdirectory per label is created")
    parser.add_argument("--workers", type=int, default=settings.max_workers, help="Parallel image workers")
    parser.add_argument(
        "--mode",
        choices=["combined", "grouped"],
        default=settings.mask_mode,
        help="One mask per image and label, or one per group instance",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default=settings.log_level,
    )
    parser.add_argument("--log-format", choices=["json", "text"], default=settings.log_format)
    args = parser.parse_args(argv)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"error: invalid CVATMASKS_* settings: {e}", file=sys.stderr)
        return 1

    args = parse_args(argv)
    configure_logging(args.log_level, args.log_format)

    try:
        document = load_document(args.annotations)
        report = run_pipeline(
            document,
            DirectoryMaskSink(args.out_dir),
            mode=args.mode,
            max_workers=args.workers,
            extension=settings.mask_extension,
        )
    except CvatMaskError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not report.ok:
        for line in report.summary_lines():
            print(line, file=sys.stderr)
        return 1

    print(f"processing time: {report.elapsed_ms}ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
