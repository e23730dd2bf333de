"""Race quality checks: data completeness, race details, broadcast links, live links.

Each checker returns a section dict ``{name, status, checks[, warnings, errors]}``.
A section's status is the worst status among its checks.
"""

from __future__ import annotations

import logging
from typing import Optional

from spoilerfree.link_tester import LinkTester, is_youtube
from spoilerfree.report import section_status, summarize
from spoilerfree.tagging import looks_like_stage_race
from spoilerfree.url_validator import is_valid_url, validate_broadcast_url, validate_race_broadcast

logger = logging.getLogger(__name__)

SECTIONS = ("data", "details", "broadcast", "links")
QUALITY_REQUIRED_FIELDS = ("id", "name", "raceDate", "gender")


def _check(label: str, status: str, value=None) -> dict:
    return {"label": label, "status": status, "value": value}


def _section(name: str, checks: list[dict], **extra) -> dict:
    section = {"name": name, "status": section_status(checks), "checks": checks}
    section.update(extra)
    return section


# ── Data completeness ──


def check_data_completeness(race: dict, stage_race_keywords=None) -> dict:
    checks = []

    missing = [f for f in QUALITY_REQUIRED_FIELDS if not race.get(f)]
    checks.append(_check(
        "Required fields",
        "fail" if missing else "pass",
        f"missing: {', '.join(missing)}" if missing else "all present",
    ))

    has_platform = bool(race.get("platform")) and race.get("platform") != "TBD"
    has_url = bool(race.get("url")) and race.get("url") != "TBD"
    if has_platform and has_url:
        checks.append(_check("Platform/URL", "pass", "populated"))
    elif has_platform or has_url:
        checks.append(_check("Platform/URL", "warn", "platform only" if has_platform else "url only"))
    else:
        checks.append(_check("Platform/URL", "info", "TBD"))

    terrain = race.get("terrain") or []
    checks.append(_check("Terrain tags", "pass" if terrain else "warn",
                         ", ".join(terrain) if terrain else "missing"))

    rating = race.get("rating")
    has_rating = isinstance(rating, (int, float)) and not isinstance(rating, bool)
    checks.append(_check("Rating", "pass" if has_rating else "warn",
                         f"{rating}★" if has_rating else "missing"))

    stages = race.get("stages") or []
    kwargs = {"keywords": stage_race_keywords} if stage_race_keywords else {}
    if stages or looks_like_stage_race(race, **kwargs):
        checks.append(_check("Stages", "pass" if stages else "warn",
                             f"{len(stages)} stages" if stages else "missing (stage race?)"))

    return _section("DATA COMPLETENESS", checks)


# ── Race details ──


def check_race_details(race: dict) -> dict:
    details = race.get("raceDetails")
    checks = [_check("raceDetails present", "pass" if details else "warn", "yes" if details else "no")]
    if not details:
        return _section("RACE DETAILS", checks)

    summary = details.get("courseSummary")
    checks.append(_check("courseSummary", "pass" if summary else "warn",
                         f"{len(summary)} chars" if summary else "missing"))

    climbs = details.get("keyClimbs") or []
    sectors = details.get("keySectors") or []
    if climbs:
        value = f"{len(climbs)} climbs"
    elif sectors:
        value = f"{len(sectors)} sectors"
    else:
        value = "none"
    checks.append(_check("keyClimbs/keySectors", "pass" if climbs or sectors else "warn", value))

    favorites = details.get("favorites") or {}
    filled = [k for k, v in favorites.items() if v] if isinstance(favorites, dict) else []
    checks.append(_check("favorites", "pass" if filled else "warn",
                         ", ".join(filled) if filled else "missing"))

    narratives = details.get("narratives") or []
    if narratives:
        checks.append(_check("narratives/watchNotes", "pass", f"{len(narratives)} narratives"))
    elif details.get("watchNotes"):
        checks.append(_check("narratives/watchNotes", "pass", "watchNotes only"))
    else:
        checks.append(_check("narratives/watchNotes", "warn", "missing"))

    stages = race.get("stages") or []
    if stages:
        with_details = sum(1 for s in stages if s.get("stageDetails"))
        if with_details == len(stages):
            status = "pass"
        elif with_details:
            status = "warn"
        else:
            status = "info"
        checks.append(_check("stageDetails", status, f"{with_details}/{len(stages)} stages"))

    return _section("RACE DETAILS", checks)


# ── Broadcast ──


def check_broadcast(race: dict) -> dict:
    broadcast = race.get("broadcast") or {}
    geos = broadcast.get("geos")
    if not geos:
        return _section("BROADCAST LINKS", [_check("broadcast.geos", "info", "not set")],
                        warnings=[], errors=[])

    checks = [_check("broadcast.geos", "pass", f"{len(geos)} regions")]
    warnings, errors = [], []
    validation = validate_race_broadcast(broadcast)

    has_primary = any(((g or {}).get("primary") or {}).get("url") for g in geos.values())
    checks.append(_check("Primary broadcasters", "pass" if has_primary else "warn",
                         "present" if has_primary else "missing"))

    if validation["rootUrls"]:
        checks.append(_check("Root URL check", "fail", f"{validation['rootUrls']} root URLs found!"))
        errors.extend(p for p in validation["problems"] if "root URL" in p)
    elif validation["totalUrls"]:
        checks.append(_check("Root URL check", "pass", "all deep links"))

    if validation["totalUrls"]:
        invalid = validation["invalidUrls"]
        if invalid == 0:
            status = "pass"
        elif invalid < validation["totalUrls"]:
            status = "warn"
        else:
            status = "fail"
        checks.append(_check("URL validity", status,
                             f"{validation['validUrls']}/{validation['totalUrls']} valid"))
        if invalid:
            warnings.extend(p for p in validation["problems"] if "root URL" not in p)

    channels = broadcast.get("youtubeChannels") or []
    if channels:
        names = [c.get("handle") or c.get("channel") or "?" for c in channels]
        checks.append(_check("YouTube channels", "pass", ", ".join(names)))

    geo_checks = []
    for geo, geo_data in geos.items():
        primary = (geo_data or {}).get("primary") or {}
        if not primary.get("url"):
            continue
        verdict = validate_broadcast_url(primary["url"])
        if verdict["isRootUrl"]:
            status = "fail"
        elif verdict["valid"]:
            status = "pass"
        else:
            status = "warn"
        name = primary.get("broadcaster") or verdict["broadcaster"] or "unknown"
        geo_checks.append(_check(f"{geo} primary", status,
                                 f"{name}{' (ROOT!)' if verdict['isRootUrl'] else ''}"))
    if geo_checks:
        checks[-1]["subChecks"] = geo_checks

    return _section("BROADCAST LINKS", checks, warnings=warnings, errors=errors)


# ── Live link accessibility ──


def collect_race_urls(race: dict) -> list[tuple[str, str]]:
    """(url, label) pairs worth checking live: the main URL plus each primary."""
    urls = []
    if race.get("url") and is_valid_url(race["url"]):
        urls.append((race["url"], "Main URL"))
    geos = (race.get("broadcast") or {}).get("geos") or {}
    for geo, geo_data in geos.items():
        primary = (geo_data or {}).get("primary") or {}
        if primary.get("url") and is_valid_url(primary["url"]):
            urls.append((primary["url"], f"{geo} {primary.get('broadcaster') or 'primary'}"))
    return urls


def check_link_accessibility(race: dict, tester, verbose: bool = False) -> dict:
    urls = collect_race_urls(race)
    if not urls:
        return _section("LINK ACCESSIBILITY", [_check("No URLs to test", "skip", "skipped")])

    checks = []
    for url, label in urls:
        try:
            if is_youtube(url):
                result = tester.test_youtube_link(url)
                if result["available"]:
                    value = "available" if result["spoilerSafe"] else "SPOILER in title!"
                    checks.append(_check(label, "pass" if result["spoilerSafe"] else "warn", value))
                else:
                    checks.append(_check(label, "fail", ", ".join(result["errors"]) or "unavailable"))
                continue

            if verbose:
                result = tester.test_broadcast_link(url, check_spoilers=False)
                error = ", ".join(result.get("errors") or []) or None
            else:
                result = tester.quick_access_check(url)
                error = result.get("error")

            if result["accessible"]:
                value = "region-locked" if result.get("regionLocked") else "accessible"
                checks.append(_check(label, "pass", value))
            else:
                checks.append(_check(label, "warn", f"error: {error or 'inaccessible'}"))
        except Exception as e:
            logger.warning("Link test crashed for %s: %s", url, e)
            checks.append(_check(label, "fail", f"test error: {e}"))

    return _section("LINK ACCESSIBILITY", checks)


# ── Runner ──


def run_race_tests(race: dict, only: Optional[str] = None, check_links: bool = False,
                   tester=None, verbose: bool = False, stage_race_keywords=None) -> dict:
    """Run the selected sections for one race and summarize them."""
    if only is not None and only not in SECTIONS:
        raise ValueError(f"Unknown section {only!r}; expected one of {', '.join(SECTIONS)}")

    def wanted(name: str) -> bool:
        return only is None or only == name

    sections, warnings, errors = [], [], []

    if wanted("data"):
        sections.append(check_data_completeness(race, stage_race_keywords))
    if wanted("details"):
        sections.append(check_race_details(race))
    if wanted("broadcast"):
        broadcast = check_broadcast(race)
        warnings.extend(broadcast.pop("warnings", []))
        errors.extend(broadcast.pop("errors", []))
        sections.append(broadcast)
    if check_links and wanted("links"):
        tester = tester or LinkTester()
        sections.append(check_link_accessibility(race, tester, verbose=verbose))

    return {
        "race": {"id": race.get("id"), "name": race.get("name"), "raceDate": race.get("raceDate")},
        "sections": sections,
        "summary": summarize(sections, warnings, errors),
    }
