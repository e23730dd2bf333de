#!/usr/bin/env python3
"""
Scrape top-ranked riders from ProCyclingStats into data/riders.json
(or data/riders-women.json with --gender women).

Each rider gets profile fields, specialties, a downloaded photo and the
announced race program. One failing rider doesn't stop the run.

Usage:
    python scripts/scrape_riders.py --limit 20
    python scripts/scrape_riders.py --gender women --limit 50
    python scripts/scrape_riders.py --slug tadej-pogacar
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
from spoilerfree.riders import RiderScraper, sort_by_ranking, upsert_rider
from spoilerfree.store import load_riders, save_riders


def main(argv=None):
    parser = argparse.ArgumentParser(description="Scrape riders from ProCyclingStats")
    parser.add_argument("--limit", type=int, default=20, help="Number of ranked riders (default: 20)")
    parser.add_argument("--gender", choices=("men", "women"), default="men")
    parser.add_argument("--slug", help="Scrape (or refresh) a single rider by PCS slug")
    parser.add_argument("--photos-dir", type=Path, help="Where rider photos go (default: <output>/riders/photos)")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        store = open_store(settings)
        photos_dir = args.photos_dir or settings.output_dir / "riders" / "photos"
        scraper = RiderScraper(FirecrawlClient(settings), settings.season_year, photos_dir)
        riders_doc = load_riders(store, args.gender)

        if args.slug:
            existing = next((r for r in riders_doc.get("riders", []) if r.get("slug") == args.slug), {})
            rider = scraper.scrape_full_rider(args.slug, existing.get("ranking"), existing.get("team"),
                                              existing.get("points"), existing.get("name"))
            is_new = upsert_rider(riders_doc, rider)
            print(f"✓ {'Added' if is_new else 'Updated'} {rider['name']}")
            errors = []
        else:
            riders, errors = scraper.scrape_all(args.limit, args.gender)
            riders_doc["riders"] = riders
            sort_by_ranking(riders_doc["riders"])
            print(f"✓ Scraped {len(riders)} riders")

        save_riders(store, riders_doc, args.gender)
        announced = sum(1 for r in riders_doc["riders"]
                        if (r.get("raceProgram") or {}).get("status") == "announced")
        print(f"  Programs announced: {announced}/{len(riders_doc['riders'])}")
        if errors:
            print(f"  ⚠ {len(errors)} riders failed:")
            for error in errors:
                print(f"    {error['slug']}: {error['error']}")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
