"""Helpers shared by the scripts/ entry points."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

from spoilerfree.config import Settings
from spoilerfree.errors import CurationError, ValidationError
from spoilerfree.store import JsonFileStore

# Errors a script reports as "✗ Error: ..." with exit code 1
HANDLED_ERRORS = (CurationError, json.JSONDecodeError, OSError)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def add_common_args(parser) -> None:
    parser.add_argument("--data-dir", type=Path, help="Directory holding the JSON data files")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")


def settings_from_args(args) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "data_dir", None):
        settings.data_dir = args.data_dir
    return settings


def open_store(settings: Settings) -> JsonFileStore:
    return JsonFileStore(settings.data_dir)


def read_json_input(path: Optional[Path] = None, use_stdin: bool = False):
    """JSON from ``--file`` or ``--stdin``."""
    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
    elif use_stdin:
        text = sys.stdin.read()
    else:
        raise ValidationError("Provide --file PATH or --stdin")
    return json.loads(text)


def print_error(error) -> None:
    print(f"✗ Error: {error}", file=sys.stderr)
