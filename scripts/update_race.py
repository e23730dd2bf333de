#!/usr/bin/env python3
"""
Update an existing race with field-aware merging.

Plain values replace; broadcast and raceDetails deep-merge; topRiders merge
by rider id; stages replace wholesale (with a warning). The id can't change.

Usage:
    python scripts/update_race.py --id paris-roubaix-2026 --file updates.json
    echo '{"rating": 5}' | python scripts/update_race.py --id paris-roubaix-2026 --stdin
    python scripts/update_race.py --id paris-roubaix-2026 --set rating=5 --set platform=FloBikes
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
from spoilerfree.merge import parse_set_args
from spoilerfree.races import update_race
from spoilerfree.store import RACE_DATA, load_race_data, save_race_data


def main(argv=None):
    parser = argparse.ArgumentParser(description="Update a race in race-data.json")
    parser.add_argument("--id", required=True, help="Race id, e.g. paris-roubaix-2026")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Read updates JSON from a file")
    source.add_argument("--stdin", action="store_true", help="Read updates JSON from stdin")
    source.add_argument("--set", action="append", metavar="KEY=VALUE", help="Set one field (repeatable)")
    parser.add_argument("--dry-run", action="store_true", help="Show the result, don't write")
    add_common_args(parser)
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        if args.set:
            updates = parse_set_args(args.set)
        else:
            updates = read_json_input(args.file, args.stdin)

        store = open_store(settings_from_args(args))
        data = load_race_data(store)
        updated = update_race(data, args.id, updates)

        print(f"✓ Updated {updated['id']}: {', '.join(sorted(updates))}")
        if args.dry_run:
            print("\n[dry run] Race data not written:")
            print(json.dumps(updated, indent=2, ensure_ascii=False))
            return 0

        save_race_data(store, data)
        print(f"  Saved to {store.path_for(RACE_DATA)}")
        return 0
    except HANDLED_ERRORS as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
