"""Race record CRUD against the race-data document."""

from __future__ import annotations

import copy
import logging
import re
from datetime import date, datetime
from typing import Optional

from spoilerfree.errors import DuplicateRaceError, RaceNotFoundError, ValidationError
from spoilerfree.merge import apply_updates
from spoilerfree.store import utc_now_iso

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "name", "raceDate")
VALID_GENDERS = ("men", "women", "mixed")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TBD = "TBD"

# Lower sorts first when ordering by content type
TYPE_PRIORITY = {
    "live": 0,
    "full-race": 1,
    "extended-highlights": 2,
    "highlights": 3,
    "time-trial": 4,
    "recording": 5,
}


def parse_race_date(value) -> date:
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise ValidationError(f"Invalid raceDate format: {value} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid raceDate: {value} is not a calendar date")


def validate_race(race: dict) -> None:
    """Raise ValidationError when a new race record is unusable."""
    if not isinstance(race, dict):
        raise ValidationError("Race must be a JSON object")

    missing = [f for f in REQUIRED_FIELDS if not race.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    parse_race_date(race["raceDate"])
    if race.get("endDate"):
        parse_race_date(race["endDate"])

    gender = race.get("gender")
    if gender is not None and gender not in VALID_GENDERS:
        raise ValidationError(f"Invalid gender: {gender} (expected one of {', '.join(VALID_GENDERS)})")


def weekday_name(race_date: str) -> str:
    return parse_race_date(race_date).strftime("%A")


def add_defaults(race: dict) -> dict:
    """Fill the fields every card needs; values on ``race`` win."""
    result = {
        "platform": TBD,
        "url": TBD,
        "type": "full-race",
        "discoveredAt": utc_now_iso(),
    }
    result.update(copy.deepcopy(race))
    if not result.get("raceDay"):
        result["raceDay"] = weekday_name(race["raceDate"])
    return result


def find_insert_index(races: list[dict], race: dict) -> int:
    """Index of the first race dated strictly after ``race``, else the end."""
    new_date = race["raceDate"]
    for i, existing in enumerate(races):
        existing_date = existing.get("raceDate")
        if existing_date and existing_date > new_date:
            return i
    return len(races)


def find_race_index(races: list[dict], race_id: str) -> int:
    for i, race in enumerate(races):
        if race.get("id") == race_id:
            return i
    return -1


def find_race(races: list[dict], race_id: str) -> Optional[dict]:
    idx = find_race_index(races, race_id)
    return races[idx] if idx != -1 else None


def get_race(races: list[dict], race_id: str) -> dict:
    race = find_race(races, race_id)
    if race is None:
        raise RaceNotFoundError(race_id)
    return race


def add_race(data: dict, race: dict) -> tuple[dict, int]:
    """Validate, default and insert ``race`` in date order.

    Returns:
        (the stored race, its index in data["races"])
    """
    validate_race(race)
    races = data.setdefault("races", [])
    if find_race(races, race["id"]) is not None:
        raise DuplicateRaceError(race["id"])

    new_race = add_defaults(race)
    index = find_insert_index(races, new_race)
    races.insert(index, new_race)
    logger.info("Inserted %s at position %d", new_race["id"], index)
    return new_race, index


def update_race(data: dict, race_id: str, updates: dict) -> dict:
    """Merge ``updates`` into the race with ``race_id`` and store the result."""
    races = data.get("races", [])
    idx = find_race_index(races, race_id)
    if idx == -1:
        raise RaceNotFoundError(race_id)

    updated = apply_updates(races[idx], updates)
    if updates.get("gender") is not None and updated.get("gender") not in VALID_GENDERS:
        raise ValidationError(f"Invalid gender: {updated.get('gender')}")
    if updates.get("raceDate") is not None:
        parse_race_date(updated["raceDate"])
    races[idx] = updated
    return updated


def select_races(races: list[dict], race_id: Optional[str] = None,
                 from_date: Optional[str] = None, to_date: Optional[str] = None) -> list[dict]:
    """Filter by id or by an inclusive raceDate window."""
    if race_id:
        return [r for r in races if r.get("id") == race_id]
    selected = []
    for race in races:
        race_date = race.get("raceDate") or ""
        if from_date and race_date < from_date:
            continue
        if to_date and race_date > to_date:
            continue
        selected.append(race)
    return selected


def dedupe_by_url(races: list[dict]) -> tuple[list[dict], int]:
    """Keep the first race per URL. TBD and missing URLs are never duplicates."""
    seen = set()
    unique = []
    for race in races:
        url = race.get("url")
        if url and url != TBD:
            if url in seen:
                continue
            seen.add(url)
        unique.append(race)
    return unique, len(races) - len(unique)


def sort_by_content_type(races: list[dict]) -> list[dict]:
    """Stable sort by content type, then by date."""
    fallback = max(TYPE_PRIORITY.values()) + 1
    return sorted(
        races,
        key=lambda r: (TYPE_PRIORITY.get(r.get("type"), fallback), r.get("raceDate") or ""),
    )
