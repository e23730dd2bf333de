"""Parse a markdown race calendar into race-data records.

Expected shape: markdown tables ``| Race | Start | End | Location | Category |``
under ``## Full Calendar`` and under the Grand Tours / World Championships /
Monuments sections.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from spoilerfree.errors import ParseError, ValidationError
from spoilerfree.races import DATE_RE, weekday_name
from spoilerfree.store import utc_now_iso
from spoilerfree.tagging import assign_rating, detect_gender, normalize_race_name

logger = logging.getLogger(__name__)

FULL_CALENDAR_HEADING = "## Full Calendar"
EXTRA_SECTIONS = ("## Grand Tours", "## World Championships", "## Monuments")


@dataclass
class CalendarRow:
    name: str
    start: str
    end: str
    location: str
    category: str


def slugify(name: str, year: int) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", normalize_race_name(name)).strip("-")
    return f"{slug}-{year}"


def parse_table_row(line: str):
    """Return a CalendarRow, or None for header/separator/short rows."""
    cells = [c.strip() for c in line.split("|")]
    cells = [c for c in cells if c]
    if len(cells) < 4:
        return None
    name, start, end, location = cells[:4]
    category = cells[4] if len(cells) > 4 else ""
    if name == "Race" or set(name) <= set("-: "):
        return None
    return CalendarRow(name, start, end, location, category)


def iter_calendar_rows(markdown: str):
    in_full_calendar = False
    in_extra_table = False
    extra_rows = 0

    for line in markdown.splitlines():
        if FULL_CALENDAR_HEADING in line:
            in_full_calendar = True
            continue
        if in_full_calendar and line.startswith("## "):
            break
        if any(section in line for section in EXTRA_SECTIONS):
            in_extra_table = True
            extra_rows = 0
            continue
        if not in_full_calendar and not in_extra_table:
            continue
        if not line.startswith("|"):
            # A blank line ends an extra table only once its rows have started
            if in_extra_table and extra_rows and not line.strip():
                in_extra_table = False
            continue

        if in_extra_table:
            extra_rows += 1
        row = parse_table_row(line)
        if row is not None:
            yield row


def row_to_race(row: CalendarRow, year: int) -> dict:
    if not DATE_RE.match(row.start):
        raise ParseError("calendar", f"bad start date {row.start!r} for {row.name}")
    race = {
        "id": slugify(row.name, year),
        "name": row.name,
        "description": f"{row.category} cycling race in {row.location}",
        "platform": "TBD",
        "url": "TBD",
        "type": "full-race",
        "raceDate": row.start,
        "raceDay": weekday_name(row.start),
        "location": row.location,
        "category": row.category,
        "rating": assign_rating(row.name, row.category),
        "discoveredAt": utc_now_iso(),
    }
    if row.end and row.end != row.start and DATE_RE.match(row.end):
        race["endDate"] = row.end
    return race


def parse_calendar(markdown: str, year: int, include_women: bool = False) -> list[dict]:
    """Parse calendar markdown into races sorted by date.

    Women's races are skipped unless ``include_women`` is set, in which case
    every race is tagged with its detected gender. Rows with unusable dates
    are logged and skipped. Duplicate ids (a race listed in two sections)
    keep the first occurrence.
    """
    races = []
    seen = set()
    for row in iter_calendar_rows(markdown):
        gender = detect_gender({"name": row.name, "category": row.category})
        if gender == "women" and not include_women:
            continue
        try:
            race = row_to_race(row, year)
        except (ParseError, ValidationError) as e:
            logger.warning("Skipping row: %s", e)
            continue
        if race["id"] in seen:
            continue
        seen.add(race["id"])
        if include_women:
            race["gender"] = gender
        races.append(race)

    races.sort(key=lambda r: r["raceDate"])
    return races


def build_race_document(races: list[dict], year: int, event_name: str = None) -> dict:
    return {
        "lastUpdated": utc_now_iso(),
        "event": {
            "name": event_name or f"UCI Elite Cycling Calendar {year}",
            "location": "Worldwide",
            "year": year,
        },
        "races": races,
    }
