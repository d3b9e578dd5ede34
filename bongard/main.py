"""Command-line entry point for the Bongard picture generator."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from bongard.core.generator import DatasetGenerator
from bongard.core.models import IdCounters
from bongard.infra.config import load_default_env_files, load_settings
from bongard.infra.logging import setup_logging, shutdown_logging
from bongard.output.repository import FoldRepository

logger = logging.getLogger(__name__)

USAGE = (
    "Usage: bongard-generator NUM_PICTURES DIRECTORY\n"
    "Create NUM_PICTURES Bongard pictures in the directory DIRECTORY\n"
)
_MAX_PICTURES = 2**64 - 1


class _UsageParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors without a failing exit status."""

    def error(self, message: str) -> NoReturn:
        sys.stderr.write(USAGE)
        self.exit(0, f"Error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _UsageParser(prog="bongard-generator", description=USAGE.splitlines()[1])
    parser.add_argument("num_pictures", metavar="NUM_PICTURES")
    parser.add_argument("directory", metavar="DIRECTORY")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible output.")
    parser.add_argument("--start-picture-id", type=int, default=0)
    parser.add_argument("--start-shape-id", type=int, default=0)
    parser.add_argument("--start-fold", type=int, default=0)
    return parser


def parse_picture_count(raw: str) -> int | None:
    """Return the requested picture count, or None when it is not usable."""
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        return None
    count = int(text)
    if count == 0 or count >= _MAX_PICTURES:
        return None
    return count


def validate_directory(raw: str) -> tuple[Path | None, str]:
    """Return the output root, or None with an error message."""
    root = Path(raw)
    if not root.exists():
        return None, f"Error: The path {raw} does not exist."
    if not root.is_dir():
        return None, f"Error: {raw} is not a directory."
    return root, ""


def run(argv: Sequence[str] | None = None) -> None:
    """Validate arguments and generate pictures; errors go to stderr."""
    args = build_parser().parse_args(argv)

    root, reason = validate_directory(args.directory)
    if root is None:
        sys.stderr.write(f"{reason}\n")
        return
    num_pictures = parse_picture_count(args.num_pictures)
    if num_pictures is None:
        sys.stderr.write(f"Error: {args.num_pictures} is not a valid input number.\n")
        return
    if min(args.start_picture_id, args.start_shape_id, args.start_fold) < 0:
        sys.stderr.write("Error: start ids must be non-negative.\n")
        return

    try:
        settings = load_settings()
        params = settings.params()
    except ValueError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return

    seed = args.seed if args.seed is not None else settings.seed
    generator = DatasetGenerator(
        params,
        FoldRepository(root),
        random.Random(seed),
        IdCounters(
            picture_id=args.start_picture_id,
            shape_id=args.start_shape_id,
            fold_id=args.start_fold,
        ),
        cutoff=settings.cutoff,
        print_gran=settings.print_gran,
        max_tries=settings.max_tries,
    )
    try:
        counters = generator.generate(num_pictures)
    except OSError:
        logger.exception("fold_write_failed root=%s", root)
        return
    logger.info(
        "generation_finished next_picture_id=%d next_shape_id=%d folds=%d",
        counters.picture_id,
        counters.shape_id,
        counters.fold_id,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the generator; the exit status is 0 even when input is rejected."""
    load_default_env_files(override_existing=False)
    setup_logging()
    try:
        run(argv)
    finally:
        shutdown_logging()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
