#!/usr/bin/env python3
"""
Remove races that point at the same URL, keeping the first one.

TBD placeholders are never treated as duplicates. --sort-by-type regroups
the list by content type (live, full race, extended, highlights).

Usage:
    python scripts/cleanup_duplicates.py
    python scripts/cleanup_duplicates.py --dry-run
    python scripts/cleanup_duplicates.py --sort-by-type
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.races import dedupe_by_url, sort_by_content_type
from spoilerfree.store import load_race_data, save_race_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Remove duplicate races by URL")
    parser.add_argument("--sort-by-type", action="store_true", help="Group races by content type")
    parser.add_argument("--dry-run", action="store_true", help="Show counts, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        store = open_store(settings_from_args(args))
        data = load_race_data(store)
        before = len(data.get("races", []))
        unique, removed = dedupe_by_url(data.get("races", []))
        if args.sort_by_type:
            unique = sort_by_content_type(unique)
        data["races"] = unique

        print(f"Races: {before} → {len(unique)} ({removed} duplicates removed)")
        if args.dry_run:
            print("[dry run] Race data not written")
            return 0
        if removed or args.sort_by_type:
            save_race_data(store, data)
            print("✓ Saved")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
