#!/usr/bin/env python3
"""
Link riders to races: set each race's topRiders from the riders' announced
programs (sorted by ranking). Races nobody is linked to lose topRiders.

Usage:
    python scripts/populate_race_riders.py
    python scripts/populate_race_riders.py --gender women --dry-run
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.riders import populate_race_riders
from spoilerfree.store import load_race_data, load_riders, save_race_data, save_riders


def print_stats(stats: dict) -> None:
    print(f"Races with riders: {stats['racesWithRiders']}")
    print(f"Rider participations: {stats['participations']}")
    if stats["unmatchedSlugs"]:
        print(f"Unmatched race slugs ({len(stats['unmatchedSlugs'])}):")
        for slug in stats["unmatchedSlugs"]:
            print(f"  - {slug}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Populate races with their top riders")
    parser.add_argument("--gender", choices=("men", "women"), default="men")
    parser.add_argument("--dry-run", action="store_true", help="Show stats, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        store = open_store(settings)
        riders_doc = load_riders(store, args.gender)
        race_data = load_race_data(store)
        stats = populate_race_riders(riders_doc, race_data, settings.season_year, args.gender)
        print_stats(stats)

        if args.dry_run:
            print("\n[dry run] Data not written")
            return 0
        save_race_data(store, race_data)
        # Program entries now carry their matched raceId
        save_riders(store, riders_doc, args.gender)
        print("✓ Saved")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
