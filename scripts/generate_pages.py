#!/usr/bin/env python3
"""
Generate the static site from the JSON data files.

Outputs (under OUTPUT_DIR, default site/):
  index.html                    race calendar by content type
  riders.html, riders-women.html
  riders/<slug>.html            one page per rider
  race-details/<race-id>.html   races with raceDetails, stages or broadcast info

Usage:
    python scripts/generate_pages.py
    python scripts/generate_pages.py --only index
    python scripts/generate_pages.py --only race-details --output /tmp/site
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.pages.common import write_page
from spoilerfree.pages.index_page import build_index_page
from spoilerfree.pages.race_details import build_race_page
from spoilerfree.pages.rider_details import build_rider_page
from spoilerfree.pages.riders_index import build_riders_index_page
from spoilerfree.store import load_race_data, load_riders

PAGE_GROUPS = ("index", "riders", "riders-women", "riders-details", "race-details")


def has_detail_page(race: dict) -> bool:
    return bool(race.get("raceDetails") or race.get("stages") or (race.get("broadcast") or {}).get("geos"))


def generate(store, output_dir: Path, only=None, year: int = None) -> dict[str, int]:
    """Write the selected page groups; returns pages written per group."""
    def wanted(group: str) -> bool:
        return only is None or only == group

    counts = {}
    race_data = load_race_data(store)

    if wanted("index"):
        write_page(output_dir / "index.html", build_index_page(race_data))
        counts["index"] = 1

    for gender, group, filename in (("men", "riders", "riders.html"),
                                    ("women", "riders-women", "riders-women.html")):
        riders_doc = load_riders(store, gender)
        if wanted(group):
            html = build_riders_index_page(riders_doc["riders"], riders_doc.get("lastUpdated"), gender)
            write_page(output_dir / filename, html)
            counts[group] = 1
        if wanted("riders-details"):
            for rider in riders_doc["riders"]:
                html = build_rider_page(rider, race_data, year=year, gender=gender)
                write_page(output_dir / "riders" / f"{rider['slug']}.html", html)
                counts["riders-details"] = counts.get("riders-details", 0) + 1

    if wanted("race-details"):
        counts["race-details"] = 0
        for race in race_data["races"]:
            if has_detail_page(race):
                write_page(output_dir / "race-details" / f"{race['id']}.html", build_race_page(race))
                counts["race-details"] += 1

    return counts


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate static HTML pages")
    parser.add_argument("--only", choices=PAGE_GROUPS, help="Generate one page group")
    parser.add_argument("--output", type=Path, help="Output directory (default: OUTPUT_DIR)")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        output_dir = args.output or settings.output_dir
        counts = generate(open_store(settings), output_dir, args.only, settings.season_year)
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1

    for group, count in counts.items():
        print(f"✓ {group}: {count} page{'s' if count != 1 else ''}")
    print(f"Output: {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
