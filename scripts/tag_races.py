#!/usr/bin/env python3
"""
Tag every race with raceFormat, terrain, distance and prestige.

Usage:
    python scripts/tag_races.py
    python scripts/tag_races.py --dry-run
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.store import load_race_data, save_race_data
from spoilerfree.tagging import tag_races


def print_counts(title: str, counts: dict) -> None:
    print(f"\n{title}:")
    for key, count in sorted(counts.items(), key=lambda kv: -kv[1]):
        print(f"  {key:<20} {count}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Tag races with format, terrain, distance, prestige")
    parser.add_argument("--dry-run", action="store_true", help="Show stats, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        store = open_store(settings_from_args(args))
        data = load_race_data(store)
        tagged, stats = tag_races(data.get("races", []))
        data["races"] = tagged

        print(f"Tagged {len(tagged)} races")
        print_counts("Format", stats["formats"])
        print_counts("Prestige", stats["prestige"])
        print_counts("Terrain", stats["terrain"])

        if args.dry_run:
            print("\n[dry run] Race data not written")
            return 0
        save_race_data(store, data)
        print("\n✓ Saved")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
