#!/usr/bin/env python
"""Board generation CLI.

Usage:
    python scripts/generate_board.py --seed 1
    python scripts/generate_board.py --biomes Rainforest,Savannah,"Dry Forest","Montane Forest"
    python scripts/generate_board.py --require lion,giraffe --compatible --parks 3

Generates a board from the packaged catalogue, prints it in the export
layout together with its validation result, and optionally swaps in
popularity-locked animals and proposes parks. Exits with status 1 when no
board satisfies the requested constraints.

Examples:
    # Reproducible board
    python scripts/generate_board.py --seed 42

    # Keep two national parks intact, Base Game sizing only
    python scripts/generate_board.py --preserve-park serengeti,banff --compatible

    # Check an official sample board
    python scripts/generate_board.py --sample "Base Game"
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from zooboard import rules
from zooboard.board import animals as board_animals
from zooboard.catalogue import default_catalogue
from zooboard.exceptions import ZooBoardError
from zooboard.formatting import board_to_text, park_summary, validation_summary
from zooboard.generator import GenerationOptions, search_board
from zooboard.injector import inject_popularity_locked
from zooboard.logging_config import setup_logging
from zooboard.national_parks import broken_parks
from zooboard.parks import ParkOptions, generate_balanced_parks
from zooboard.samples import find_sample, sample_to_board
from zooboard.validation import validate_board

logger = logging.getLogger(__name__)


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated option into stripped, non-empty parts."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a valid zoo board from the packaged catalogue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible boards")
    parser.add_argument(
        "--loose",
        action="store_true",
        help="Skip the strict co-species pass and use the small attempt budget",
    )
    parser.add_argument("--require", type=str, default=None, help="Comma-separated ids to include")
    parser.add_argument(
        "--biomes",
        type=str,
        default=None,
        help=f"Comma-separated focus biomes (from: {', '.join(rules.BIOMES)})",
    )
    parser.add_argument(
        "--compatible",
        action="store_true",
        help="Only use animals sharing a group size with the Base Game board",
    )
    parser.add_argument(
        "--preserve-park",
        type=str,
        default=None,
        help="Comma-separated national park ids to keep intact",
    )
    parser.add_argument(
        "--inject",
        type=int,
        choices=list(rules.INJECT_COUNTS),
        default=None,
        help="Swap in this many popularity-locked animals after generation",
    )
    parser.add_argument("--parks", type=int, default=0, help="Number of parks to propose (default: 0)")
    parser.add_argument(
        "--park-size",
        type=int,
        choices=list(rules.PARK_SIZES),
        default=rules.DEFAULT_PARK_SIZE,
        help=f"Animals per park (default: {rules.DEFAULT_PARK_SIZE})",
    )
    parser.add_argument(
        "--legacy-rules",
        action="store_true",
        help="Validate with the earlier rule set (nine level-2 slots, extra advisories)",
    )
    parser.add_argument("--sample", type=str, default=None, help="Validate a named sample board instead")
    parser.add_argument("--json-logs", action="store_true", help="Emit log lines as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log every attempt")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Board generation CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    args = build_parser().parse_args(argv)
    setup_logging(level="DEBUG" if args.verbose else "INFO", format_json=args.json_logs)
    ruleset = rules.LEGACY_RULES if args.legacy_rules else rules.DEFAULT_RULES

    try:
        catalogue = default_catalogue()

        if args.sample:
            sample = find_sample(args.sample)
            if sample is None:
                logger.error("Unknown sample board: %s", args.sample)
                return 1
            board = sample_to_board(sample, catalogue)
            print(board_to_text(board))
            print()
            print(validation_summary(validate_board(board, catalogue.co_species, rules=ruleset)))
            return 0

        focus = split_list(args.biomes)
        options = GenerationOptions(
            seed=args.seed,
            strict=not args.loose,
            required_ids=split_list(args.require),
            focus_biomes=focus,
            compatible_with_reference=args.compatible,
            preserve_national_parks=split_list(args.preserve_park),
            rules=ruleset,
        )
        outcome = search_board(catalogue.animals, catalogue.co_species, options)
        if outcome.board is None:
            print(
                f"Could not generate a compatible board after {outcome.attempts} attempts. "
                "Try selecting exactly 4 biomes, more biomes, or fewer required animals.",
                file=sys.stderr,
            )
            logger.debug("Abandoned attempts: %s", dict(outcome.abandoned))
            return 1

        board = outcome.board
        if args.inject:
            board = inject_popularity_locked(board, catalogue.animals, args.inject, focus or None, rules=ruleset)

        print(board_to_text(board))
        print()
        print(validation_summary(validate_board(board, catalogue.co_species, rules=ruleset)))

        broken = broken_parks(board, game="base")
        if broken:
            print()
            print("Broken national parks:")
            for park, status in broken:
                print(f"  {park.name}: missing {', '.join(status.missing)}")

        if args.parks:
            parks = generate_balanced_parks(
                board_animals(board),
                ParkOptions(
                    seed=args.seed,
                    count=args.parks,
                    size=args.park_size,
                    focus_biomes=focus,
                    available_co_species=board.co_species,
                ),
            )
            print()
            print("Parks:")
            for park in parks:
                print(f"  {park_summary(park, catalogue)}")
        return 0

    except ZooBoardError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    except KeyboardInterrupt:
        logger.info("Generation interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
