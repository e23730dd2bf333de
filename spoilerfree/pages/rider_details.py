"""Build riders/<slug>.html: one rider's profile and announced race program.

Only announced future races are listed, never results.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from spoilerfree.pages.common import (
    SITE_NAME,
    esc,
    format_last_updated,
    format_short_date,
    nationality_flag,
    page_footer,
    page_head,
    specialty,
)
from spoilerfree.pages.riders_index import has_program, photo_src

GRAND_TOURS = ("Tour de France", "Giro d'Italia", "La Vuelta Ciclista a España")
MONUMENTS = ("Milano-Sanremo", "Ronde van Vlaanderen", "Paris-Roubaix", "Liège-Bastogne-Liège", "Il Lombardia")

RIDER_CSS = """
.rider-header { display: flex; gap: 24px; align-items: center; flex-wrap: wrap; }
.rider-photo { width: 160px; height: 160px; object-fit: cover; border-radius: 50%; background: #f3f4f6; }
.rider-rank { display: inline-block; background: #5b21b6; color: white; font-weight: 800; padding: 4px 12px; border-radius: 12px; }
.rider-name { font-size: 2rem; font-weight: 800; margin: 6px 0 2px; }
.rider-team { color: #6b7280; }
.rider-meta { display: flex; gap: 16px; flex-wrap: wrap; margin: 10px 0; }
.specialty-badge { display: inline-block; border: 2px solid var(--badge-color); color: var(--badge-color); border-radius: 12px; padding: 2px 10px; margin-right: 6px; font-size: 0.8rem; font-weight: 600; }
.race-program { display: flex; flex-direction: column; gap: 8px; }
.race-item { display: flex; gap: 16px; align-items: center; padding: 10px 14px; border-radius: 12px; background: #f9fafb; text-decoration: none; color: inherit; }
a.race-item:hover { background: #ede9fe; }
.race-item.grand-tour { border-left: 4px solid #f59e0b; }
.race-item.monument { border-left: 4px solid #5b21b6; }
.race-item.world-tour { border-left: 4px solid #0891b2; }
.race-date { font-weight: 700; min-width: 60px; }
.race-class { font-size: 0.75rem; color: #6b7280; margin-left: 8px; }
.race-badge { margin-left: auto; font-size: 0.7rem; font-weight: 700; padding: 2px 8px; border-radius: 10px; background: #fef3c7; }
.program-meta { margin-top: 12px; color: #6b7280; font-size: 0.85rem; }
.empty-state { text-align: center; padding: 24px; color: #6b7280; }
.stats-grid { display: flex; gap: 24px; }
.stat-value { font-size: 1.5rem; font-weight: 800; }
.stat-label { font-size: 0.75rem; color: #6b7280; }
.external-link { display: inline-block; margin-top: 16px; color: #5b21b6; font-weight: 600; }
"""


def calculate_age(date_of_birth: Optional[str], today: date) -> Optional[int]:
    if not date_of_birth:
        return None
    try:
        year, month, day = (int(p) for p in date_of_birth.split("-"))
    except ValueError:
        return None
    age = today.year - year
    if (today.month, today.day) < (month, day):
        age -= 1
    return age


def race_key(text: str) -> str:
    """Slug-ish key used to match PCS program entries to our races."""
    text = re.sub(r"\s*\d{4}\s*", " ", text.lower())
    return re.sub(r"[^a-z0-9]+", "-", text).strip("-")


def build_race_map(race_data: Optional[dict]) -> dict[str, dict]:
    race_map = {}
    for race in (race_data or {}).get("races", []):
        race_map[re.sub(r"-\d{4}$", "", race["id"]).lower()] = race
        race_map[race_key(race.get("name", ""))] = race
    return race_map


def program_race_class(entry: dict) -> str:
    name = entry.get("raceName") or ""
    if any(gt in name for gt in GRAND_TOURS):
        return "grand-tour"
    if any(m in name for m in MONUMENTS):
        return "monument"
    if "1.UWT" in (entry.get("raceClass") or ""):
        return "world-tour"
    return ""


def build_program_item(entry: dict, race_map: dict) -> str:
    matched = None
    if entry.get("raceId"):
        matched = next((r for r in race_map.values() if r["id"] == entry["raceId"]), None)
    matched = matched or race_map.get(entry.get("raceSlug"))
    detail_link = None
    if matched and (matched.get("raceDetails") or matched.get("stages")
                    or (matched.get("broadcast") or {}).get("geos")):
        detail_link = f"../race-details/{matched['id']}.html"

    kind = program_race_class(entry)
    badge = {"grand-tour": '<span class="race-badge gt">Grand Tour</span>',
             "monument": '<span class="race-badge monument">Monument</span>'}.get(kind, "")
    race_class = entry.get("raceClass")
    content = (f'<div class="race-date">{format_short_date(entry.get("raceDate"))}</div>'
               f'<div class="race-info"><span class="race-name">{esc(entry.get("raceName"))}</span>'
               f'{f"<span class=race-class>{esc(race_class)}</span>" if race_class else ""}</div>'
               f'{badge}')
    if detail_link:
        return f'<a href="{esc(detail_link)}" class="race-item {kind}">{content}</a>'
    return f'<div class="race-item {kind}">{content}</div>'


def build_program_section(rider: dict, race_map: dict, year: int) -> str:
    if not has_program(rider):
        return f"""    <section class="card empty-program">
      <h2 class="section-title">📅 {year} Race Program</h2>
      <div class="empty-state">
        <p>🤷 Race program not yet announced</p>
        <p>Check back later for updates</p>
      </div>
    </section>
"""
    races = rider["raceProgram"]["races"]
    items = "\n        ".join(build_program_item(e, race_map) for e in races)
    return f"""    <section class="card">
      <h2 class="section-title">📅 {year} Race Program</h2>
      <div class="race-program">
        {items}
      </div>
      <p class="program-meta">{len(races)} races announced</p>
    </section>
"""


def build_stats_section(rider: dict) -> str:
    weight, height = rider.get("weight"), rider.get("height")
    if not (weight or height):
        return ""
    stats = []
    if weight:
        stats.append(f'<div class="stat-item"><div class="stat-value">{weight}</div><div class="stat-label">kg</div></div>')
    if height:
        stats.append(f'<div class="stat-item"><div class="stat-value">{height}</div><div class="stat-label">m</div></div>')
    if weight and height:
        bmi = weight / (height * height)
        stats.append(f'<div class="stat-item"><div class="stat-value">{bmi:.1f}</div><div class="stat-label">BMI</div></div>')
    link = ""
    if rider.get("pcsUrl"):
        link = (f'<a href="{esc(rider["pcsUrl"])}" target="_blank" rel="noopener" class="external-link">'
                f'View full profile on ProCyclingStats →</a>')
    return f"""    <div class="card">
      <h2 class="section-title">📊 Physical Stats</h2>
      <div class="stats-grid">{"".join(stats)}</div>
      {link}
    </div>
"""


def build_rider_page(rider: dict, race_data: Optional[dict] = None, year: int = None,
                     today: Optional[date] = None, gender: str = "men") -> str:
    """Generate one rider page. ``today`` fixes the age calculation."""
    today = today or date.today()
    year = year or today.year
    race_map = build_race_map(race_data)
    index_page = "riders-women.html" if gender == "women" else "riders.html"

    meta = [f'<span class="rider-meta-item">{nationality_flag(rider.get("nationalityCode"))} '
            f'{esc(rider.get("nationality"))}</span>']
    age = calculate_age(rider.get("dateOfBirth"), today)
    if age:
        meta.append(f'<span class="rider-meta-item">🎂 {age} years</span>')
    if rider.get("points"):
        meta.append(f'<span class="rider-meta-item">📊 {rider["points"]:,} pts</span>')

    badges = "".join(
        f'<span class="specialty-badge" style="--badge-color: {specialty(s)[3]}">'
        f'{specialty(s)[0]} {esc(specialty(s)[2])}</span>'
        for s in rider.get("specialties") or []
    )
    photo = photo_src(rider, prefix="../")
    photo_html = f'<img src="{esc(photo)}" alt="{esc(rider.get("name"))}" class="rider-photo">' if photo else ""
    rank = f'<div class="rider-rank">#{rider["ranking"]}</div>' if rider.get("ranking") else ""

    fetched = format_last_updated((rider.get("raceProgram") or {}).get("lastFetched"), with_time=False)
    footer_lines = [f"{SITE_NAME} | Rider profiles are spoiler-safe"]
    if fetched:
        footer_lines.append(f"Program last updated: {esc(fetched)}")

    head = page_head(f"{rider.get('name')} | {SITE_NAME}",
                     f"{rider.get('name')} - {year} race program and profile", RIDER_CSS)
    return (head
            + f"""    <a href="../{index_page}" class="back-button">← Back to Riders</a>
    <div class="card rider-header">
      {photo_html}
      <div class="rider-info">
        {rank}
        <h1 class="rider-name">{esc(rider.get("name"))}</h1>
        <p class="rider-team">{esc(rider.get("team"))}</p>
        <div class="rider-meta">{"".join(meta)}</div>
        <div class="specialties">{badges}</div>
      </div>
    </div>
"""
            + build_program_section(rider, race_map, year)
            + build_stats_section(rider)
            + page_footer(footer_lines, [("../index.html", "Calendar"), (f"../{index_page}", "Riders")]))
