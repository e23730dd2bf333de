#!/usr/bin/env python3
"""
Refresh every rider's announced race program, report newly added races,
then relink race topRiders.

Usage:
    python scripts/update_rider_programs.py
    python scripts/update_rider_programs.py --gender women
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.firecrawl import FirecrawlClient
from spoilerfree.riders import RiderScraper, populate_race_riders, update_programs
from spoilerfree.store import load_race_data, load_riders, save_race_data, save_riders

from populate_race_riders import print_stats


def main(argv=None):
    parser = argparse.ArgumentParser(description="Update rider race programs from ProCyclingStats")
    parser.add_argument("--gender", choices=("men", "women"), default="men")
    parser.add_argument("--delay", type=float, default=1.5, help="Seconds between riders")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        store = open_store(settings)
        riders_doc = load_riders(store, args.gender)
        if not riders_doc.get("riders"):
            print_error("No riders found. Run scrape_riders.py first.")
            return 1

        scraper = RiderScraper(FirecrawlClient(settings), settings.season_year)
        changes, errors = update_programs(riders_doc, scraper, delay=args.delay)
        save_riders(store, riders_doc, args.gender)

        if changes:
            print(f"\nProgram changes ({len(changes)} riders):")
            for change in changes:
                print(f"  #{change['ranking']} {change['rider']}: +{', '.join(change['added'])}")
        else:
            print("\nNo program changes")
        if errors:
            print(f"⚠ {len(errors)} riders failed to update")

        race_data = load_race_data(store)
        stats = populate_race_riders(riders_doc, race_data, settings.season_year, args.gender)
        save_race_data(store, race_data)
        save_riders(store, riders_doc, args.gender)
        print()
        print_stats(stats)
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
