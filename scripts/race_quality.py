#!/usr/bin/env python3
"""
Race quality checks: data completeness, race details, broadcast links and
(optionally) live link accessibility through a headless browser.

Exits 1 if any selected race fails.

Usage:
    python scripts/race_quality.py --race tour-down-under-2026
    python scripts/race_quality.py --from 2026-01-01 --to 2026-02-28
    python scripts/race_quality.py --race paris-roubaix-2026 --only broadcast
    python scripts/race_quality.py --race tdf-2026 --check-links
    python scripts/race_quality.py --all --compact
    python scripts/race_quality.py --race paris-roubaix-2026 --json
"""

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, settings_from_args, setup_logging,
)
from spoilerfree.link_tester import LinkTester
from spoilerfree.quality import SECTIONS, run_race_tests
from spoilerfree.races import select_races
from spoilerfree.report import ReportFormatter, generate_json_report
from spoilerfree.store import load_race_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run quality checks on races")
    parser.add_argument("--race", help="Test a specific race by id")
    parser.add_argument("--from", dest="from_date", help="Test races from this date (YYYY-MM-DD)")
    parser.add_argument("--to", dest="to_date", help="Test races until this date (YYYY-MM-DD)")
    parser.add_argument("--all", action="store_true", help="Test all races")
    parser.add_argument("--only", choices=SECTIONS, help="Only run one section")
    parser.add_argument("--check-links", action="store_true", help="Open URLs in a headless browser")
    parser.add_argument("--compact", action="store_true", help="One line per race")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument("--no-color", action="store_true", help="Plain text output")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not (args.race or args.from_date or args.to_date or args.all):
        print_error("Must specify --race, --from/--to, or --all")
        return 1

    try:
        settings = settings_from_args(args)
        store = open_store(settings)
        races = load_race_data(store).get("races", [])
        selected = select_races(races, args.race, args.from_date, args.to_date)
        if not selected:
            print_error(f"No races found for race={args.race} from={args.from_date} to={args.to_date}")
            return 1

        tester = LinkTester(concurrency=settings.link_check_concurrency,
                            delay=settings.link_check_delay) if args.check_links else None
        all_results = [
            run_race_tests(race, only=args.only, check_links=args.check_links,
                           tester=tester, verbose=args.verbose)
            for race in selected
        ]
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1

    formatter = ReportFormatter(color=not args.no_color and sys.stdout.isatty())
    if args.json:
        reports = [generate_json_report(r) for r in all_results]
        print(json.dumps(reports[0] if len(reports) == 1 else reports, indent=2, ensure_ascii=False))
    elif args.compact:
        for results in all_results:
            print(formatter.generate_compact_summary(results))
        print()
        print(formatter.generate_batch_summary(all_results))
    else:
        for results in all_results:
            print(formatter.generate_report(results))
            print()
        if len(all_results) > 1:
            print(formatter.generate_batch_summary(all_results))

    failed = sum(1 for r in all_results if r["summary"]["status"] == "fail")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
