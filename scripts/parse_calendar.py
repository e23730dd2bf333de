#!/usr/bin/env python3
"""
Parse a UCI calendar markdown table into data/race-data.json.

By default only races whose id isn't already in race-data.json are added,
so curated data survives a re-parse. --replace writes a fresh document.

Usage:
    python scripts/parse_calendar.py CALENDAR.md
    python scripts/parse_calendar.py CALENDAR.md --include-women
    python scripts/parse_calendar.py CALENDAR.md --year 2027 --replace --dry-run
"""

import argparse
import sys
from collections import Counter
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.calendar_parser import build_race_document, parse_calendar
from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.races import add_race, find_race
from spoilerfree.store import RACE_DATA, load_race_data, save_race_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Parse a calendar markdown file into race-data.json")
    parser.add_argument("calendar", type=Path, help="Calendar markdown file")
    parser.add_argument("--year", type=int, help="Season year (default: SEASON_YEAR)")
    parser.add_argument("--include-women", action="store_true", help="Keep women's races, tagged by gender")
    parser.add_argument("--replace", action="store_true", help="Overwrite race-data.json instead of adding")
    parser.add_argument("--dry-run", action="store_true", help="Show counts, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        year = args.year or settings.season_year
        races = parse_calendar(args.calendar.read_text(encoding="utf-8"), year, args.include_women)
        print(f"Parsed {len(races)} races from {args.calendar.name}")

        ratings = Counter(r["rating"] for r in races)
        for rating in sorted(ratings, reverse=True):
            print(f"  {'★' * rating}{'☆' * (5 - rating)}  {ratings[rating]}")

        store = open_store(settings)
        if args.replace:
            data = build_race_document(races, year)
            added = len(races)
        else:
            data = load_race_data(store)
            if not data.get("event"):
                data["event"] = build_race_document([], year)["event"]
            added = 0
            for race in races:
                if find_race(data.get("races", []), race["id"]) is None:
                    add_race(data, race)
                    added += 1
            print(f"  {added} new, {len(races) - added} already present")

        if args.dry_run:
            print("\n[dry run] Race data not written")
            return 0

        save_race_data(store, data)
        print(f"✓ Saved {len(data['races'])} races ({added} added) to {store.path_for(RACE_DATA)}")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
