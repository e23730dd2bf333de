#!/usr/bin/env python3
"""
Add a race to data/race-data.json in chronological position.

The race JSON needs at least id, name and raceDate (YYYY-MM-DD). Missing
optional fields get defaults (raceDay from the date, url/platform TBD).

Usage:
    python scripts/add_race.py --file race.json
    cat race.json | python scripts/add_race.py --stdin
    python scripts/add_race.py --file race.json --dry-run
"""

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from spoilerfree.cli import (
    HANDLED_ERRORS, add_common_args, open_store, print_error, read_json_input,
    settings_from_args, setup_logging,
)
from spoilerfree.races import add_race
from spoilerfree.store import RACE_DATA, load_race_data, save_race_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Add a race to race-data.json")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read race JSON from a file")
    source.add_argument("--stdin", action="store_true", help="Read race JSON from stdin")
    parser.add_argument("--dry-run", action="store_true", help="Validate and show, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        race = read_json_input(args.file, args.stdin)
        store = open_store(settings_from_args(args))
        data = load_race_data(store)
        new_race, index = add_race(data, race)

        print(f"✓ {new_race['name']} ({new_race['id']})")
        print(f"  Date: {new_race['raceDay']}, {new_race['raceDate']}")
        print(f"  Position: {index + 1} of {len(data['races'])}")

        if args.dry_run:
            print("\n[dry run] Race data not written:")
            print(json.dumps(new_race, indent=2, ensure_ascii=False))
            return 0

        save_race_data(store, data)
        print(f"  Saved to {store.path_for(RACE_DATA)}")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
