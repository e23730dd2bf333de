#!/usr/bin/env python3
"""
Discover content for one race.

  --youtube    tiered YouTube search (official → trusted → broad channels)
  --broadcast  search each licensed broadcaster's site per region
  --research   AI search for course, favorites and climbs → raceDetails

YouTube and broadcast hits are candidates for manual review and go to
data/candidates/<race-id>.json. Research results are merged into the
race's raceDetails. With no flag, all three run.

Usage:
    python scripts/discover_content.py --race paris-roubaix-2026
    python scripts/discover_content.py --race paris-roubaix-2026 --youtube
    python scripts/discover_content.py --race paris-roubaix-2026 --research --dry-run
"""

import argparse
import re
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.firecrawl import FirecrawlClient
from spoilerfree.perplexity import PerplexityClient, extract_race_details
from spoilerfree.races import get_race, update_race
from spoilerfree.store import dump_json, load_broadcasters, load_race_data, save_race_data, utc_now_iso
from spoilerfree.youtube import ChannelRegistry, YouTubeDiscovery, flatten_discovery


def search_name(race: dict) -> str:
    """Race name without a trailing year, for search queries."""
    return re.sub(r"\s*\b\d{4}\b\s*$", "", race["name"]).strip()


def research_details(perplexity: PerplexityClient, race: dict, year: int) -> dict:
    result = perplexity.search_race_comprehensive(search_name(race), year)
    if result.get("error"):
        print(f"  ⚠ Research failed: {result['error']}")
        return {}
    details = extract_race_details(result)
    if not details["summary"]:
        print("  ⚠ Research found nothing, raceDetails left as is")
        return {}
    race_details = {"courseSummary": details["summary"], "lastFetched": utc_now_iso()}
    if details["sources"]:
        race_details["sources"] = details["sources"]
    if details["distance"]:
        race_details["distanceText"] = details["distance"]
    if details["elevation"]:
        race_details["elevationText"] = details["elevation"]
    return race_details


def main(argv=None):
    parser = argparse.ArgumentParser(description="Discover video, broadcast and research content for a race")
    parser.add_argument("--race", required=True, help="Race id")
    parser.add_argument("--youtube", action="store_true", help="Tiered YouTube discovery")
    parser.add_argument("--broadcast", action="store_true", help="Licensed broadcaster site search")
    parser.add_argument("--research", action="store_true", help="AI search into raceDetails")
    parser.add_argument("--dry-run", action="store_true", help="Print results, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    run_all = not (args.youtube or args.broadcast or args.research)

    try:
        settings = settings_from_args(args)
        store = open_store(settings)
        race_data = load_race_data(store)
        race = get_race(race_data["races"], args.race)
        year = int(race["raceDate"][:4])
        name = search_name(race)
        print(f"🔍 {race['name']} ({race['raceDate']})")

        candidates = {"raceId": race["id"], "searchedAt": utc_now_iso()}

        if args.youtube or args.broadcast or run_all:
            firecrawl = FirecrawlClient(settings)
            broadcasters = load_broadcasters(store)

            if args.youtube or run_all:
                discovery = YouTubeDiscovery(firecrawl.search, ChannelRegistry(broadcasters))
                results = discovery.discover(name, year)
                hits = flatten_discovery(results)
                candidates["youtube"] = results
                print(f"\n📺 YouTube: {len(hits)} candidates "
                      f"({results['metadata']['apiCallsUsed']} searches)")
                for hit in hits:
                    tag = " (previous year)" if hit.get("yearFallback") else ""
                    print(f"  [{hit['sourceTier']}] {hit.get('title')}{tag}")
                    print(f"      {hit.get('url')}")

            if args.broadcast or run_all:
                results = firecrawl.discover_broadcast_urls(broadcasters, name, year)
                candidates["broadcast"] = results
                print(f"\n📡 Broadcasters: {results['metadata']['totalUrls']} URLs")
                for geo, tiers in results["byGeo"].items():
                    for tier in ("primary", "secondary"):
                        for entry in tiers[tier]:
                            print(f"  {geo} {tier} {entry['broadcaster']}: {len(entry['urls'])} URLs")

        if args.research or run_all:
            details = research_details(PerplexityClient(settings), race, year)
            if details:
                update_race(race_data, race["id"], {"raceDetails": details})
                print(f"\n📖 Research: {len(details.get('sources', []))} sources")
                print(f"  {details['courseSummary'][:200]}")

        if args.dry_run:
            print("\n[dry run] Nothing written")
            return 0

        if "youtube" in candidates or "broadcast" in candidates:
            path = settings.data_dir / "candidates" / f"{race['id']}.json"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dump_json(candidates), encoding="utf-8")
            print(f"\n✓ Candidates saved to {path}")
        if args.research or run_all:
            save_race_data(store, race_data)
            print("✓ Race data saved")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
