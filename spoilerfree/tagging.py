"""Race classification heuristics: gender, format, prestige, terrain, distance, rating.

All keyword tables are best-effort knowledge, not a registry. Each public
function takes its table as a keyword argument so callers can extend or
replace it without touching this module.
"""

from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import Optional, Sequence

# ── Knowledge tables ──

GRAND_TOURS = ("tour de france", "giro d'italia", "vuelta a espana")

MONUMENTS = (
    "milano-sanremo",
    "ronde van vlaanderen",
    "paris-roubaix",
    "liege-bastogne-liege",
    "il lombardia",
)

COBBLES_RACES = (
    "paris-roubaix", "ronde van vlaanderen", "e3 saxo classic", "gent-wevelgem",
    "dwars door vlaanderen", "kuurne-brussels-kuurne", "omloop het nieuwsblad",
    "le samyn", "nokere koerse", "gp jean-pierre monsere", "scheldeprijs",
    "ronde van brugge", "antwerp port epic",
)

GRAVEL_RACES = ("strade bianche",)

MOUNTAIN_RACES = (
    "il lombardia", "liege-bastogne-liege", "la fleche wallonne", "amstel gold race",
    "tour of the alps", "tour de suisse", "tour de romandie", "criterium du dauphine",
    "giro dell'appennino", "giro dell'emilia", "tre valle varesine", "gran piemonte",
    "gp de wallonie", "mercan'tour classic", "tour de l'ain", "tour auvergne-rhone-alpes",
)

HILLY_RACES = (
    "brabantse pijl", "famenne ardenne classic", "circuit de wallonie", "gp criquelion",
    "brussels cycling classic", "baloise belgium tour", "binche-chimay-binche",
    "coppa bernocchi", "coppa agostoni", "trofeo laigueglia", "gp du morbihan",
    "tro-bro leon", "tour de wallonie", "heistse pijl", "gooikske pijl",
    "dwars door het hageland", "omloop van het hageland",
)

FLAT_RACES = (
    "milano-sanremo", "eschborn-frankfurt", "paris-tours", "adac cyclassics",
    "bretagne classic", "gp de quebec", "gp de montreal",
    "donostia san sebastian klasikoa", "classica dunkerque", "veenendaal-veenendaal",
    "copenhagen sprint", "cadel evans great ocean road race",
)

CIRCUIT_RACES = ("rund um koln", "sparkassen munsterland giro", "utsunomiya japan cup")

TIME_TRIAL_RACES = (
    "chrono des nations",
    "world championships: men's tt",
    "world championships: mixed relay tt",
)

FULL_PROFILE = ["flat", "hilly", "mountain", "itt"]

STAGE_RACE_TERRAINS = {
    "tour de france": FULL_PROFILE,
    "giro d'italia": FULL_PROFILE,
    "vuelta a espana": FULL_PROFILE,
    "paris-nice": FULL_PROFILE,
    "tirreno-adriatico": FULL_PROFILE,
    "tour de romandie": ["hilly", "mountain", "itt"],
    "tour de suisse": ["hilly", "mountain", "itt"],
    "criterium du dauphine": ["hilly", "mountain", "itt"],
    "itzulia basque country": ["hilly", "mountain"],
    "volta a catalunya": ["hilly", "mountain"],
    "tour of the alps": ["mountain", "itt"],
    "tour down under": ["flat", "hilly"],
    "uae tour": FULL_PROFILE,
    "volta ao algarve": ["flat", "hilly", "itt"],
    "tour de pologne": ["flat", "hilly", "mountain"],
    "renewi tour": ["flat", "hilly", "itt"],
    "deutschland tour": ["flat", "hilly", "mountain"],
    "tour of britain": ["flat", "hilly"],
    "vuelta a burgos": ["hilly", "mountain"],
    "arctic race of norway": ["hilly", "mountain"],
    "tour de hongrie": ["flat", "hilly"],
    "baloise belgium tour": ["flat", "hilly", "itt"],
    "tour of slovenia": ["hilly", "mountain"],
    "tour of turkey": ["flat", "hilly", "mountain"],
    "tour of turkiye": ["flat", "hilly", "mountain"],
}

RACE_DISTANCES = {
    "tour de france": 3400,
    "giro d'italia": 3400,
    "vuelta a espana": 3300,
    "milano-sanremo": 293,
    "ronde van vlaanderen": 270,
    "paris-roubaix": 257,
    "liege-bastogne-liege": 258,
    "il lombardia": 252,
    "strade bianche": 184,
    "e3 saxo classic": 204,
    "gent-wevelgem": 260,
    "dwars door vlaanderen": 183,
    "amstel gold race": 254,
    "la fleche wallonne": 202,
    "eschborn-frankfurt": 183,
    "bretagne classic": 254,
    "gp de quebec": 201,
    "gp de montreal": 221,
    "paris-tours": 213,
}

CATEGORY_DISTANCES = {
    "1.1": 180,
    "1.Pro": 200,
    "1.UWT": 220,
    "2.1": 800,
    "2.Pro": 1000,
    "2.UWT": 1200,
}
WC_ROAD_RACE_KM = 270
WC_TT_KM = 45
DEFAULT_DISTANCE_KM = 200

WOMEN_NAME_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"women", r"femmes", r"ladies", r"dames", r"femenina", r"feminin",
              r"feminina", r"donne")
]
WOMEN_CATEGORY_PATTERNS = [re.compile(r"\.WWT$"), re.compile(r"\bWWT\b")]
MIXED_PATTERNS = [re.compile(r"mixed relay", re.IGNORECASE), re.compile(r"mixed team", re.IGNORECASE)]

# Names that contain "tour" but are one-day races
STAGE_RACE_KEYWORDS = ("tour",)
ONE_DAY_TOUR_NAMES = ("tour of flanders", "paris-tours", "tour de vendee", "tour du doubs")

VALID_GENDERS = ("men", "women", "mixed")


# ── Helpers ──


def normalize_race_name(name: str) -> str:
    """Lower-case, strip accents and unify apostrophes for substring matching."""
    decomposed = unicodedata.normalize("NFD", name or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower().replace("’", "'").replace("‘", "'")


def _matches_any(name: str, keywords: Sequence[str]) -> bool:
    return any(normalize_race_name(k) in name for k in keywords)


# ── Gender ──


def detect_gender(race: dict, women_patterns=None, category_patterns=None,
                  mixed_patterns=None) -> str:
    name = race.get("name") or ""
    category = race.get("category") or ""
    women_patterns = WOMEN_NAME_PATTERNS if women_patterns is None else women_patterns
    category_patterns = WOMEN_CATEGORY_PATTERNS if category_patterns is None else category_patterns
    mixed_patterns = MIXED_PATTERNS if mixed_patterns is None else mixed_patterns

    if any(p.search(name) for p in mixed_patterns):
        return "mixed"
    if any(p.search(name) for p in women_patterns):
        return "women"
    if any(p.search(category) for p in category_patterns):
        return "women"
    return "men"


def tag_gender(race: dict) -> tuple[dict, bool]:
    """Return (race with gender, whether it already had a valid one)."""
    if race.get("gender") in VALID_GENDERS:
        return race, True
    tagged = dict(race)
    tagged["gender"] = detect_gender(race)
    return tagged, False


# ── Format / prestige / terrain / distance ──


def race_format(race: dict) -> str:
    name = normalize_race_name(race.get("name", ""))
    category = race.get("category") or ""

    if _matches_any(name, TIME_TRIAL_RACES):
        return "ttt" if "mixed relay" in name else "itt"
    if category.startswith("2."):
        return "stage-race"
    return "one-day"


def prestige(race: dict) -> Optional[list[str]]:
    name = normalize_race_name(race.get("name", ""))
    tags = []
    if _matches_any(name, GRAND_TOURS):
        tags.append("grand-tour")
    if _matches_any(name, MONUMENTS):
        tags.append("monument")
    if race.get("category") == "WC":
        tags.append("world-championship")
    return tags or None


def terrain(race: dict) -> list[str]:
    name = normalize_race_name(race.get("name", ""))
    category = race.get("category") or ""

    for stage_race, profile in STAGE_RACE_TERRAINS.items():
        if normalize_race_name(stage_race) in name:
            return list(profile)

    tags = []
    for tag, races in (
        ("cobbles", COBBLES_RACES),
        ("gravel", GRAVEL_RACES),
        ("mountain", MOUNTAIN_RACES),
        ("hilly", HILLY_RACES),
        ("flat", FLAT_RACES),
        ("circuit", CIRCUIT_RACES),
    ):
        if _matches_any(name, races):
            tags.append(tag)

    if category.startswith("2."):
        return ["flat", "hilly"]
    if not tags:
        if race.get("location") in ("Belgium", "Netherlands", "Italy"):
            return ["hilly"]
        return ["flat"]
    return tags


def distance(race: dict) -> int:
    name = normalize_race_name(race.get("name", ""))
    category = race.get("category") or ""

    for known, km in RACE_DISTANCES.items():
        if normalize_race_name(known) in name:
            return km
    if category == "WC":
        return WC_TT_KM if re.search(r"\btt\b|time trial", name) else WC_ROAD_RACE_KM
    return CATEGORY_DISTANCES.get(category, DEFAULT_DISTANCE_KM)


def assign_rating(name: str, category: str) -> int:
    """Star rating 1-5 from race prestige and UCI category."""
    normalized = normalize_race_name(name)
    if _matches_any(normalized, GRAND_TOURS) or _matches_any(normalized, MONUMENTS):
        return 5
    if category == "WC" and "men's road race" in normalized:
        return 5
    if category in ("2.UWT", "1.UWT", "WC"):
        return 4
    if category in ("2.Pro", "1.Pro"):
        return 3
    if category == "2.1":
        return 2
    return 1


def looks_like_stage_race(race: dict, keywords: Sequence[str] = STAGE_RACE_KEYWORDS,
                          exceptions: Sequence[str] = ONE_DAY_TOUR_NAMES) -> bool:
    """Whether a race is expected to carry a stages list.

    Category wins when present (2.x is a stage race, 1.x is not); otherwise
    fall back to name keywords, minus known one-day "Tour" races.
    """
    if race.get("stages"):
        return True
    category = race.get("category") or ""
    if category.startswith("2."):
        return True
    if category.startswith("1.") or race.get("raceFormat") == "one-day":
        return False
    name = normalize_race_name(race.get("name", ""))
    if _matches_any(name, exceptions):
        return False
    return any(re.search(rf"\b{re.escape(k)}\b", name) for k in keywords)


def tag_race(race: dict) -> dict:
    tagged = dict(race)
    tagged["raceFormat"] = race_format(race)
    tagged["terrain"] = terrain(race)
    tagged["distance"] = distance(race)
    tags = prestige(race)
    if tags:
        tagged["prestige"] = tags
    return tagged


def tag_races(races: list[dict]) -> tuple[list[dict], dict]:
    """Tag every race; returns (tagged races, counters for the summary)."""
    formats, prestige_counts, terrain_counts = Counter(), Counter(), Counter()
    tagged = []
    for race in races:
        result = tag_race(race)
        formats[result["raceFormat"]] += 1
        prestige_counts.update(result.get("prestige") or [])
        terrain_counts.update(result["terrain"])
        tagged.append(result)
    stats = {
        "formats": dict(formats),
        "prestige": dict(prestige_counts),
        "terrain": dict(terrain_counts),
    }
    return tagged, stats
