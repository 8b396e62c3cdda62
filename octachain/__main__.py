#!/usr/bin/env python3
"""
octachain main entry point.

Builds an Octatrack sample chain from WAV files: python3 -m octachain a.wav b.wav
"""

import argparse
import logging
import sys
from typing import List, Optional

from octachain.chain import Slicer
from octachain.config import VALID_LOG_LEVELS, load_config
from octachain.errors import SlicerError
from octachain.slicer.slice import LoopPointPolicy

logger = logging.getLogger("octachain")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Octatrack sample chain generator")
    parser.add_argument("inputs", nargs="+", help="Mono 16-bit PCM WAV files, in slice order")
    parser.add_argument(
        "--output-folder",
        type=str,
        help="Folder for the generated .wav and .ot files (overrides env)"
    )
    parser.add_argument(
        "--output-filename",
        type=str,
        help="Name of the generated files without extension (overrides env)"
    )
    parser.add_argument(
        "--sample-rate",
        type=int,
        help="Sample rate every input must have, in Hz (overrides env)"
    )
    parser.add_argument(
        "--tempo",
        type=int,
        help="Chain tempo in BPM (overrides env)"
    )
    parser.add_argument(
        "--evenly-spaced",
        action="store_true",
        help="Pad every input to the longest one so slices share a grid"
    )
    parser.add_argument(
        "--no-loop",
        action="store_true",
        help="Write the 'no loop' marker as each slice's loop point"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=VALID_LOG_LEVELS,
        help="Log level (overrides env)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        if args.output_folder is not None:
            config.output_folder = args.output_folder
        if args.output_filename is not None:
            config.output_filename = args.output_filename
        if args.sample_rate is not None:
            config.sample_rate = args.sample_rate
        if args.tempo is not None:
            config.tempo = args.tempo
        if args.evenly_spaced:
            config.evenly_spaced = True
        if args.no_loop:
            config.loop_policy = LoopPointPolicy.NO_LOOP
        if args.log_level is not None:
            config.log_level = args.log_level
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    slicer = Slicer(
        output_folder=config.output_folder,
        output_filename=config.output_filename,
        sample_rate=config.sample_rate,
        tempo=config.tempo,
        loop_policy=config.loop_policy,
    )

    for path in args.inputs:
        try:
            slicer.add_file(path)
        except SlicerError as e:
            logger.warning("Skipping %s: %s", path, e)

    if not slicer.accumulator.pending:
        logger.error("No valid input files")
        return 1

    try:
        result = slicer.generate(evenly_spaced=config.evenly_spaced)
    except SlicerError as e:
        logger.error("Chain generation failed: %s", e)
        return 1

    logger.info(
        "Wrote %s and %s (%d slices)",
        result.wav_path,
        result.ot_path,
        len(result.batch.slices),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
