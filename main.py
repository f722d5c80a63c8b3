"""
Dish Decoder - Entry Point

Recognizes text in a menu photo, either the whole photo or one or more
regions, and prints one line per region.

Example:
    python main.py menu.jpg
    python main.py menu.jpg --display 390x844 --region 20,120,200,40
    python main.py menu.jpg --region 260,120,80,40 --psm 7 --whitelist 0123456789.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from dishdecoder.ocr import (
    CoordinateSpace,
    OCRError,
    RecognitionTask,
    Rect,
    SegmentationMode,
    Size,
    TaskFailure,
)
from dishdecoder.settings import SETTINGS_FILE, build_orchestrator, load_settings


logger = logging.getLogger(__name__)

# Exit codes
EXIT_OK = 0
EXIT_TASK_FAILED = 1
EXIT_BATCH_FAILED = 2


def setup_logging(verbose: bool, log_file: Optional[str]) -> None:
    """Configure logging - output to console and optionally a file."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
    )


def parse_size(value: str) -> Size:
    """Parse 'WxH' into a Size."""
    try:
        width, height = value.lower().split("x")
        return Size(float(width), float(height))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got '{value}'")


def parse_region(value: str) -> Rect:
    """Parse 'left,top,width,height' into a display-space Rect."""
    try:
        left, top, width, height = (float(v) for v in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected LEFT,TOP,WIDTH,HEIGHT, got '{value}'")
    return Rect(left, top, width, height, CoordinateSpace.DISPLAY)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Dish Decoder - recognize text in a menu photo"
    )
    parser.add_argument("image", help="Photo to recognize (PNG, JPEG, ...)")
    parser.add_argument(
        "--region", "-r",
        action="append",
        type=parse_region,
        default=[],
        help="Region in display pixels as LEFT,TOP,WIDTH,HEIGHT (repeatable)"
    )
    parser.add_argument(
        "--display",
        type=parse_size,
        help="Viewport size the regions were drawn on, as WxH (default: photo size)"
    )
    parser.add_argument(
        "--psm",
        type=int,
        choices=[int(m) for m in SegmentationMode],
        help="Segmentation mode applied to every region"
    )
    parser.add_argument(
        "--lang", "-l",
        action="append",
        help="Recognition language (repeatable, default from settings)"
    )
    parser.add_argument(
        "--whitelist",
        help="Only recognize these characters"
    )
    parser.add_argument(
        "--config", "-c",
        default=str(SETTINGS_FILE),
        help=f"Settings file (default: {SETTINGS_FILE})"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Save the preprocessed working image to ./debug"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug-level logging"
    )
    parser.add_argument(
        "--log-file",
        help="Also write the log to this file"
    )
    return parser.parse_args(argv)


def build_tasks(args) -> List[RecognitionTask]:
    """One task per --region, or a single whole-photo task."""
    parameters = {}
    if args.whitelist:
        parameters["tessedit_char_whitelist"] = args.whitelist
    mode = SegmentationMode(args.psm) if args.psm is not None else None
    languages = tuple(args.lang) if args.lang else None

    regions = args.region or [None]
    return [
        RecognitionTask(
            languages=languages,
            region=region,
            segmentation_mode=mode,
            parameters=dict(parameters),
        )
        for region in regions
    ]


def main(argv: Optional[List[str]] = None) -> int:
    """Run recognition once and print the results."""
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    settings = load_settings(Path(args.config))
    # CLI flag overrides saved setting
    if args.debug:
        settings["debug_enabled"] = True

    orchestrator = build_orchestrator(settings)
    tasks = build_tasks(args)

    try:
        payload = Path(args.image).read_bytes()
    except OSError as e:
        logger.error(f"Cannot read {args.image}: {e}")
        return EXIT_BATCH_FAILED

    try:
        results = orchestrator.recognize(payload, tasks, args.display)
    except OCRError as e:
        logger.error(f"Recognition aborted: [{e.code}] {e.message}")
        return EXIT_BATCH_FAILED
    finally:
        orchestrator.terminate()

    exit_code = EXIT_OK
    for result in results:
        if isinstance(result, TaskFailure):
            exit_code = EXIT_TASK_FAILED
        print(str(result))

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
