"""ProCyclingStats rider scraping and rider/race linking.

PCS pages are fetched as markdown through Firecrawl. Each page format has a
named parser that returns a typed result, or raises ParseError when the page
no longer looks like what it is supposed to be.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from spoilerfree.errors import ApiError, ParseError
from spoilerfree.http_client import HttpClient, RequestsHttpClient
from spoilerfree.store import utc_now_iso

logger = logging.getLogger(__name__)

PCS_BASE_URL = "https://www.procyclingstats.com"

RIDER_LINK_RE = re.compile(r"\[([^\]]+)\]\(https://www\.procyclingstats\.com/rider/([^)]+)\)")
TEAM_LINK_RE = re.compile(r"\[([^\]]+)\]\(https://www\.procyclingstats\.com/team/[^)]+\)")
RANK_RE = re.compile(r"^\|\s*(\d+)\s*\|")
POINTS_RE = re.compile(r"\|\s*\[?(\d+)\]?[^|]*\|?\s*$")

NATIONALITY_RE = re.compile(
    r"Nationality:[\s\S]*?\[([^\]]+)\]\(https://www\.procyclingstats\.com/nation/([^)]+)\)"
)
PHOTO_RE = re.compile(r"!\[\]\((https://www\.procyclingstats\.com/images/riders/[^)]+)\)")
WEIGHT_RE = re.compile(r"Weight:\s*(\d+)\s*kg")
HEIGHT_RE = re.compile(r"Height:\s*([\d.]+)\s*m")
DOB_RE = re.compile(r"Date of birth:[\s\S]*?(\d{1,2})[a-z]*\s*([A-Z][a-z]+)\s*(\d{4})")

SPECIALTY_PATTERNS = [
    (re.compile(r"(\d+)\s*\[Onedayraces\]"), "one-day"),
    (re.compile(r"(\d+)\s*\[GC\]"), "gc-contender"),
    (re.compile(r"(\d+)\s*\[TT\]"), "time-trialist"),
    (re.compile(r"(\d+)\s*\[Sprint\]"), "sprinter"),
    (re.compile(r"(\d+)\s*\[Climber\]"), "climber"),
    (re.compile(r"(\d+)\s*\[Hills\]"), "puncheur"),
]
SPECIALTY_MIN_POINTS = 1000
MAX_SPECIALTIES = 3

PROGRAM_START = "Upcoming program"
PROGRAM_END = "Program in the current season"
PROGRAM_RACE_RE = re.compile(r"\[([^\]]+)\]\(https://www\.procyclingstats\.com/race/([^/]+)/\d+\)")
PROGRAM_CLASS_RE = re.compile(r"\|\s*([\d.]+UWT|[\d.]+Pro|[\d.]+WWT|[\d.]+\d)\s*\|?\s*$")

MONTHS = {
    "January": 1, "February": 2, "March": 3, "April": 4, "May": 5, "June": 6,
    "July": 7, "August": 8, "September": 9, "October": 10, "November": 11, "December": 12,
}

# PCS race slug -> our race id slug, where the names differ
RACE_SLUG_MAPPING = {
    "dauphine": "tour-auvergne-rhone-alpes",
    "e3-harelbeke": "e3-saxo-classic",
    "omloop-het-nieuwsblad": "omloop-van-het-hageland",
    "vuelta-a-la-comunidad-valenciana": "volta-comunitat-valenciana",
    "tour-cycliste-international-la-provence": "tour-de-la-provence",
    "trofeo-ses-salines-felanitx": "trofeo-ses-salines",
}

RANKINGS_PATHS = {
    "men": "rankings.php",
    "women": "rankings/we/individual",
}

UNRANKED = 999


@dataclass
class RankingEntry:
    rank: int
    name: str
    slug: str
    team: str
    points: int
    pcsUrl: str


@dataclass
class RiderProfile:
    nationality: str = "Unknown"
    nationalityCode: str = "XX"
    photoUrl: Optional[str] = None
    weight: Optional[int] = None
    height: Optional[float] = None
    dateOfBirth: Optional[str] = None
    specialties: list = field(default_factory=list)


# ── Parsers ──


def parse_rankings(markdown: str, limit: int = 20) -> list[RankingEntry]:
    """Rows of the PCS rankings table: ``| rank | ... | [NAME](rider) | [Team](team) | points |``."""
    riders = []
    for line in (markdown or "").split("\n"):
        if "/rider/" not in line:
            continue
        rider = RIDER_LINK_RE.search(line)
        if not rider:
            continue
        team = TEAM_LINK_RE.search(line)
        rank = RANK_RE.search(line)
        points = POINTS_RE.search(line)
        slug = rider.group(2)
        riders.append(RankingEntry(
            rank=int(rank.group(1)) if rank else len(riders) + 1,
            name=rider.group(1),
            slug=slug,
            team=team.group(1) if team else "Unknown",
            points=int(points.group(1)) if points else 0,
            pcsUrl=f"{PCS_BASE_URL}/rider/{slug}",
        ))
        if len(riders) >= limit:
            break

    if not riders:
        raise ParseError("rankings", "no rider rows found")
    return riders


def parse_date_of_birth(markdown: str) -> Optional[str]:
    match = DOB_RE.search(markdown)
    if not match:
        return None
    month = MONTHS.get(match.group(2))
    if month is None:
        return None
    return f"{match.group(3)}-{month:02d}-{int(match.group(1)):02d}"


def parse_specialties(markdown: str) -> list[str]:
    """Top specialties by PCS points, keeping only those above the threshold."""
    scored = []
    for pattern, kind in SPECIALTY_PATTERNS:
        match = pattern.search(markdown)
        if match and int(match.group(1)) > SPECIALTY_MIN_POINTS:
            scored.append((int(match.group(1)), kind))
    scored.sort(key=lambda s: s[0], reverse=True)
    return [kind for _, kind in scored[:MAX_SPECIALTIES]]


def parse_rider_profile(markdown: str) -> RiderProfile:
    if not markdown:
        raise ParseError("rider profile", "empty page")

    profile = RiderProfile()
    nationality = NATIONALITY_RE.search(markdown)
    if nationality:
        profile.nationality = nationality.group(1)
        profile.nationalityCode = nationality.group(2).upper()[:2]

    photo = PHOTO_RE.search(markdown)
    if photo:
        profile.photoUrl = photo.group(1)

    weight = WEIGHT_RE.search(markdown)
    if weight:
        profile.weight = int(weight.group(1))
    height = HEIGHT_RE.search(markdown)
    if height:
        profile.height = float(height.group(1))

    profile.dateOfBirth = parse_date_of_birth(markdown)
    profile.specialties = parse_specialties(markdown)

    if not nationality and profile.dateOfBirth is None and profile.weight is None:
        raise ParseError("rider profile", "no nationality, date of birth or weight found")
    return profile


def parse_rider_program(markdown: str, year: int) -> dict:
    """Upcoming races from a rider's PCS calendar page.

    Returns ``{status, lastFetched, races}`` where status is ``announced``,
    ``not-announced`` (table present but empty) or ``not-found`` (no
    upcoming-program section on the page at all).
    """
    if not markdown:
        raise ParseError("rider program", "empty page")

    date_re = re.compile(rf"\|\s*({year}-\d{{2}}-\d{{2}})\s*\|")
    races = []
    in_table = False
    found_section = False

    for line in markdown.split("\n"):
        if PROGRAM_START in line:
            in_table = found_section = True
            continue
        if in_table and PROGRAM_END in line:
            break
        if not in_table or "/race/" not in line:
            continue

        date_match = date_re.search(line)
        race_match = PROGRAM_RACE_RE.search(line)
        if not date_match or not race_match:
            continue
        class_match = PROGRAM_CLASS_RE.search(line)
        races.append({
            "raceName": race_match.group(1),
            "raceSlug": race_match.group(2),
            "raceDate": date_match.group(1),
            "raceClass": class_match.group(1) if class_match else None,
        })

    if not found_section:
        status = "not-found"
    else:
        status = "announced" if races else "not-announced"
    return {"status": status, "lastFetched": utc_now_iso(), "races": races}


# ── Scraping ──


def format_rider_name(slug: str) -> str:
    """``tadej-pogacar`` -> ``Tadej Pogacar`` (accents are lost)."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def download_rider_photo(photo_url: str, slug: str, photos_dir: Path,
                         http: HttpClient) -> Optional[str]:
    """Save a rider photo as ``<photos_dir>/<slug>.jpg``; returns the site-relative path."""
    if not photo_url:
        return None
    content = http.get_bytes("PCS photo", photo_url)
    photos_dir.mkdir(parents=True, exist_ok=True)
    (photos_dir / f"{slug}.jpg").write_bytes(content)
    return f"riders/photos/{slug}.jpg"


class RiderScraper:
    """Scrapes PCS pages through a FirecrawlClient-like object with ``scrape_markdown``."""

    def __init__(self, firecrawl, year: int, photos_dir: Optional[Path] = None,
                 delay: float = 2.0, sleep=time.sleep, http: Optional[HttpClient] = None):
        self.firecrawl = firecrawl
        self.http = http or RequestsHttpClient(timeout=30.0)
        self.year = year
        self.photos_dir = photos_dir
        self.delay = delay
        self.sleep = sleep

    def _markdown(self, path: str) -> str:
        markdown = self.firecrawl.scrape_markdown(f"{PCS_BASE_URL}/{path}")
        if not markdown:
            raise ParseError(path, "scrape returned no content")
        return markdown

    def scrape_rankings(self, limit: int = 20, path: str = "rankings.php") -> list[RankingEntry]:
        return parse_rankings(self._markdown(path), limit)

    def scrape_profile(self, slug: str) -> RiderProfile:
        return parse_rider_profile(self._markdown(f"rider/{slug}"))

    def scrape_program(self, slug: str) -> dict:
        return parse_rider_program(self._markdown(f"rider/{slug}/calendar"), self.year)

    def scrape_full_rider(self, slug: str, rank: Optional[int] = None, team: Optional[str] = None,
                          points: Optional[int] = None, name: Optional[str] = None) -> dict:
        profile = self.scrape_profile(slug)
        program = self.scrape_program(slug)

        photo = profile.photoUrl
        if photo and self.photos_dir is not None:
            try:
                photo = download_rider_photo(photo, slug, self.photos_dir, self.http) or photo
            except (ApiError, OSError) as e:
                logger.warning("Failed to download photo for %s: %s", slug, e)

        rider = {
            "id": slug,
            "slug": slug,
            "name": name or format_rider_name(slug),
            "team": team or "Unknown",
            "ranking": rank,
            "points": points,
        }
        details = asdict(profile)
        details["photoUrl"] = photo
        rider.update(details)
        rider["pcsUrl"] = f"{PCS_BASE_URL}/rider/{slug}"
        rider["raceProgram"] = program
        return rider

    def scrape_all(self, limit: int = 20, gender: str = "men") -> tuple[list[dict], list[dict]]:
        """Scrape the top ``limit`` riders. Returns (riders, errors)."""
        riders, errors = [], []
        rankings = self.scrape_rankings(limit, RANKINGS_PATHS[gender])
        for i, entry in enumerate(rankings):
            logger.info("[%d/%d] %s", i + 1, len(rankings), entry.name)
            try:
                riders.append(self.scrape_full_rider(entry.slug, entry.rank, entry.team,
                                                     entry.points, entry.name))
            except (ParseError, ApiError) as e:
                logger.error("Failed to scrape %s: %s", entry.slug, e)
                errors.append({"slug": entry.slug, "error": str(e)})
            if i < len(rankings) - 1:
                self.sleep(self.delay)
        return riders, errors


# ── Riders document ──


def sort_by_ranking(riders: list[dict]) -> None:
    riders.sort(key=lambda r: r.get("ranking") or UNRANKED)


def upsert_rider(riders_doc: dict, rider: dict) -> bool:
    """Insert or replace a rider by slug. Returns True if it was new."""
    riders = riders_doc.setdefault("riders", [])
    for i, existing in enumerate(riders):
        if existing.get("slug") == rider["slug"]:
            riders[i] = rider
            sort_by_ranking(riders)
            return False
    riders.append(rider)
    sort_by_ranking(riders)
    return True


def program_changes(old_program: Optional[dict], new_program: dict) -> list[dict]:
    """Races in ``new_program`` that were not in ``old_program`` (by slug + date)."""
    old = {(r["raceSlug"], r["raceDate"]) for r in (old_program or {}).get("races", [])}
    return [r for r in new_program.get("races", []) if (r["raceSlug"], r["raceDate"]) not in old]


def update_programs(riders_doc: dict, scraper: RiderScraper, delay: float = 1.5, sleep=time.sleep) -> tuple[list[dict], list[dict]]:
    """Re-scrape every rider's program. Returns (changes, errors)."""
    changes, errors = [], []
    riders = riders_doc.get("riders", [])
    for i, rider in enumerate(riders):
        try:
            new_program = scraper.scrape_program(rider["slug"])
        except (ParseError, ApiError) as e:
            logger.error("Program update failed for %s: %s", rider.get("name"), e)
            errors.append({"slug": rider.get("slug"), "error": str(e)})
        else:
            added = program_changes(rider.get("raceProgram"), new_program)
            if added:
                changes.append({
                    "rider": rider.get("name"),
                    "ranking": rider.get("ranking"),
                    "added": [r["raceName"] for r in added],
                })
            rider["raceProgram"] = new_program
        if i < len(riders) - 1:
            sleep(delay)
    return changes, errors


def find_race_id(race_slug: str, race_ids, year: int, mapping: Optional[dict] = None) -> Optional[str]:
    """Match a PCS race slug to one of our race ids.

    Tries ``<slug>-<year>``, then the slug mapping, then any id containing
    the slug.
    """
    mapping = RACE_SLUG_MAPPING if mapping is None else mapping
    direct = f"{race_slug}-{year}"
    if direct in race_ids:
        return direct
    mapped = mapping.get(race_slug)
    if mapped and f"{mapped}-{year}" in race_ids:
        return f"{mapped}-{year}"
    for race_id in sorted(race_ids):
        if race_slug in race_id:
            return race_id
    return None


def race_rider_entry(rider: dict) -> dict:
    return {
        "id": rider.get("id") or rider.get("slug"),
        "name": rider.get("name"),
        "team": rider.get("team"),
        "ranking": rider.get("ranking"),
        "nationality": rider.get("nationality"),
        "nationalityCode": rider.get("nationalityCode"),
        "specialties": rider.get("specialties") or [],
    }


def _race_gender(race: dict) -> str:
    return race.get("gender") or "men"


def populate_race_riders(riders_doc: dict, race_data: dict, year: int,
                         gender: str = "men", mapping: Optional[dict] = None) -> dict:
    """Set each race's ``topRiders`` from rider programs, sorted by ranking.

    Only races of ``gender`` are touched; their stale topRiders are removed
    when no rider is linked any more. Also stamps ``raceId`` on matched
    program entries.

    Returns:
        stats dict with racesWithRiders, participations, unmatchedSlugs
    """
    if mapping is None:
        mapping = RACE_SLUG_MAPPING if gender == "men" else {}
    races = [r for r in race_data.get("races", []) if _race_gender(r) == gender]
    race_ids = {r["id"] for r in races}
    by_race: dict[str, list[dict]] = {}
    unmatched = set()

    for rider in riders_doc.get("riders", []):
        for entry in (rider.get("raceProgram") or {}).get("races", []):
            race_id = find_race_id(entry["raceSlug"], race_ids, year, mapping)
            if race_id is None:
                unmatched.add(entry["raceSlug"])
                continue
            entry["raceId"] = race_id
            linked = by_race.setdefault(race_id, [])
            if all(r["id"] != (rider.get("id") or rider.get("slug")) for r in linked):
                linked.append(race_rider_entry(rider))

    participations = 0
    for race in races:
        riders = by_race.get(race["id"])
        if riders:
            riders.sort(key=lambda r: r.get("ranking") or UNRANKED)
            race["topRiders"] = riders
            participations += len(riders)
        else:
            race.pop("topRiders", None)

    return {
        "racesWithRiders": sum(1 for r in races if r.get("topRiders")),
        "participations": participations,
        "unmatchedSlugs": sorted(unmatched),
    }


def get_initials(name: str) -> str:
    """Initials from a PCS-style ``LASTNAME Firstname``: first-name letter + last-name letter.

    ``VAN DER POEL Mathieu`` -> ``MV``; a single word gives its first two letters.
    """
    parts = [p for p in (name or "").split(" ") if p]
    if not parts:
        return "??"
    if len(parts) == 1:
        return parts[0][:2].upper()
    first_name = next((p for p in parts if p != p.upper()), None)
    if first_name is None:
        return parts[0][:2].upper()
    return (first_name[0] + parts[0][0]).upper()
