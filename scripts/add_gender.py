#!/usr/bin/env python3
"""
Add a gender field (men / women / mixed) to races that lack a valid one.

Races that already carry a valid gender are left alone.

Usage:
    python scripts/add_gender.py
    python scripts/add_gender.py --dry-run
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.store import load_race_data, save_race_data
from spoilerfree.tagging import tag_gender


def main(argv=None):
    parser = argparse.ArgumentParser(description="Add gender to races in race-data.json")
    parser.add_argument("--dry-run", action="store_true", help="Show changes, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        store = open_store(settings_from_args(args))
        data = load_race_data(store)

        updated, counts = [], Counter()
        changed = 0
        for race in data.get("races", []):
            tagged, already_valid = tag_gender(race)
            if not already_valid:
                changed += 1
                if tagged["gender"] != "men":
                    print(f"  {tagged['gender']:<6} {tagged.get('name')}")
            counts[tagged["gender"]] += 1
            updated.append(tagged)
        data["races"] = updated

        print(f"\nSet gender on {changed} races")
        print(f"  men: {counts['men']}, women: {counts['women']}, mixed: {counts['mixed']}")

        if args.dry_run:
            print("\n[dry run] Race data not written")
            return 0
        save_race_data(store, data)
        print("✓ Saved")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
