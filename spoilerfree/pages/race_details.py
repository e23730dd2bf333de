"""Build race-details/<id>.html: course, favorites, storylines and where to watch.

Everything shown is pre-race material. Past races keep their preview
content and get a "pre-race predictions" notice instead of results.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from spoilerfree.pages.common import (
    SITE_NAME,
    esc,
    format_last_updated,
    format_long_date,
    nationality_flag,
    page_footer,
    page_head,
)

SURFACE_ICONS = {"cobbles": "🪨", "gravel": "🟤", "asphalt": "🛣️", "dirt": "🟫"}
CATEGORY_ICONS = {"HC": "🔴", "1": "🟠", "2": "🟡", "3": "🟢", "4": "🔵"}

FAVORITE_GROUPS = [
    ("gcContenders", "GC Contenders", "🎯"),
    ("climbers", "Climbers", "⛰️"),
    ("sprinters", "Sprinters", "⚡"),
    ("puncheurs", "Puncheurs", "💪"),
    ("allRounders", "All-Rounders", "🔄"),
    ("cobbleSpecialists", "Cobble Specialists", "🪨"),
]

RACE_CSS = """
.race-badges { display: flex; gap: 8px; margin-bottom: 8px; }
.badge { font-size: 0.75rem; font-weight: 700; padding: 3px 10px; border-radius: 12px; background: #ede9fe; color: #5b21b6; }
.badge-spoiler-safe { background: #dcfce7; color: #166534; }
.badge-past { background: #f3f4f6; color: #4b5563; }
.race-title { font-size: 2rem; font-weight: 800; }
.race-meta { display: flex; gap: 16px; flex-wrap: wrap; color: #4b5563; margin-top: 8px; }
.sectors-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(260px, 1fr)); gap: 12px; }
.sector-card, .climb-card { background: #f9fafb; border-radius: 12px; padding: 12px 14px; }
.sector-header, .climb-header { display: flex; gap: 8px; align-items: center; font-weight: 700; }
.sector-difficulty { margin-left: auto; color: #f59e0b; }
.sector-stats, .climb-stats { display: flex; gap: 12px; font-size: 0.85rem; color: #6b7280; margin-top: 6px; }
.climbs-list { display: flex; flex-direction: column; gap: 10px; }
.favorites-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(240px, 1fr)); gap: 16px; }
.rider-chip { display: inline-block; background: #ede9fe; border-radius: 12px; padding: 2px 10px; margin: 3px; font-size: 0.85rem; }
.spoiler-notice { margin-top: 12px; color: #166534; font-weight: 600; }
.narratives-list { padding-left: 20px; }
.narrative-item { margin-bottom: 6px; }
.broadcast-table { width: 100%; border-collapse: collapse; }
.broadcast-table td, .broadcast-table th { text-align: left; padding: 8px; border-bottom: 1px solid #e5e7eb; }
.top-riders { display: flex; flex-wrap: wrap; gap: 8px; }
.empty-state { text-align: center; color: #6b7280; }
"""


def difficulty_stars(rating: int, maximum: int = 5) -> str:
    filled = min(rating, maximum)
    return "★" * filled + "☆" * (maximum - filled)


def is_finished(race: dict, today: date) -> bool:
    return bool(race.get("raceDate")) and race["raceDate"] < today.isoformat()


def _section(title: str, body: str, css_class: str = "") -> str:
    return f"""    <section class="card details-section {css_class}">
      <h2 class="section-title">{title}</h2>
      {body}
    </section>
"""


def build_sectors(details: dict) -> str:
    sectors = details.get("keySectors") or []
    if not sectors:
        return ""
    cards = []
    for sector in sectors:
        stats = []
        if sector.get("length"):
            stats.append(f'<span class="stat">{esc(sector["length"])} km</span>')
        if sector.get("kmFromFinish"):
            stats.append(f'<span class="stat">{esc(sector["kmFromFinish"])} km from finish</span>')
        description = f'<p class="sector-description">{esc(sector["description"])}</p>' if sector.get("description") else ""
        cards.append(
            f'<div class="sector-card"><div class="sector-header">'
            f'<span class="sector-icon">{SURFACE_ICONS.get(sector.get("surface"), "📍")}</span>'
            f'<span class="sector-name">{esc(sector.get("name"))}</span>'
            f'<span class="sector-difficulty" title="Difficulty">{difficulty_stars(sector.get("difficulty") or 3)}</span>'
            f'</div><div class="sector-stats">{"".join(stats)}</div>{description}</div>'
        )
    return _section("🪨 Key Sectors", f'<div class="sectors-grid">{"".join(cards)}</div>')


def build_climbs(details: dict) -> str:
    climbs = details.get("keyClimbs") or []
    if not climbs:
        return ""
    cards = []
    for climb in climbs:
        category = str(climb.get("category") or "")
        stats = []
        for key, suffix in (("length", " km"), ("avgGradient", " avg"), ("maxGradient", " max"), ("summit", "m summit")):
            if climb.get(key):
                stats.append(f'<span class="stat"><strong>{esc(climb[key])}</strong>{suffix}</span>')
        position = (f'<div class="climb-position">{esc(climb["kmFromFinish"])} km from finish</div>'
                    if climb.get("kmFromFinish") else "")
        cards.append(
            f'<div class="climb-card"><div class="climb-header">'
            f'<span class="climb-category {esc(category.lower())}">{CATEGORY_ICONS.get(category, "⛰️")} {esc(category)}</span>'
            f'<span class="climb-name">{esc(climb.get("name"))}</span>'
            f'</div><div class="climb-stats">{"".join(stats)}</div>{position}</div>'
        )
    return _section("⛰️ Key Climbs", f'<div class="climbs-list">{"".join(cards)}</div>')


def build_favorites(details: dict, finished: bool) -> str:
    favorites = details.get("favorites") or {}
    groups = []
    for key, label, icon in FAVORITE_GROUPS:
        names = favorites.get(key) or []
        if not names:
            continue
        chips = "".join(f'<span class="rider-chip">{esc(n)}</span>' for n in names)
        groups.append(f'<div class="favorites-category"><h3 class="category-label">{icon} {label}</h3>'
                      f'<div class="riders-list">{chips}</div></div>')
    if not groups:
        return ""
    notice = '<p class="spoiler-notice">📺 These are pre-race predictions - no spoilers here!</p>' if finished else ""
    return _section("🌟 Pre-Race Favorites", f'<div class="favorites-grid">{"".join(groups)}</div>{notice}')


def build_narratives(details: dict) -> str:
    narratives = details.get("narratives") or []
    if not narratives:
        return ""
    items = "".join(f'<li class="narrative-item">{esc(n)}</li>' for n in narratives)
    return _section("📖 Storylines to Watch", f'<ul class="narratives-list">{items}</ul>')


def build_text_section(details: dict, key: str, title: str, css_class: str = "") -> str:
    if not details.get(key):
        return ""
    return _section(title, f"<p>{esc(details[key])}</p>", css_class)


def _broadcast_link(entry: dict) -> str:
    url = entry.get("url")
    name = esc(entry.get("broadcaster") or url or "TBD")
    if not url or url == "TBD":
        return f"{name} <em>(link coming soon)</em>"
    return f'<a href="{esc(url)}" target="_blank" rel="noopener">{name}</a>'


def build_broadcast(race: dict) -> str:
    geos = (race.get("broadcast") or {}).get("geos") or {}
    if not geos:
        return ""
    rows = []
    for geo in sorted(geos):
        geo_data = geos[geo] or {}
        primary = geo_data.get("primary") or {}
        alternatives = ", ".join(_broadcast_link(a) for a in geo_data.get("alternatives") or [])
        rows.append(f"<tr><td>{esc(geo)}</td><td>{_broadcast_link(primary) if primary else '-'}</td>"
                    f"<td>{alternatives or '-'}</td></tr>")
    table = ('<table class="broadcast-table"><thead><tr><th>Region</th><th>Primary</th>'
             f'<th>Alternatives</th></tr></thead><tbody>{"".join(rows)}</tbody></table>')
    return _section("📺 Where to Watch", table)


def build_top_riders(race: dict) -> str:
    riders = race.get("topRiders") or []
    if not riders:
        return ""
    chips = []
    for rider in riders:
        rank = f" #{rider['ranking']}" if rider.get("ranking") else ""
        chips.append(f'<a class="rider-chip" href="../riders/{esc(rider.get("id"))}.html">'
                     f'{nationality_flag(rider.get("nationalityCode"))} {esc(rider.get("name"))}{rank}</a>')
    return _section("🚴 Top Riders Entered", f'<div class="top-riders">{"".join(chips)}</div>')


def build_race_page(race: dict, today: Optional[date] = None,
                    back_link: str = "../index.html", back_text: str = "Back to Calendar") -> str:
    """Generate one race page. ``today`` decides whether the race is already over."""
    today = today or date.today()
    details = race.get("raceDetails") or {}
    finished = is_finished(race, today)

    badges = []
    if race.get("category"):
        badges.append(f'<span class="badge badge-category">{esc(race["category"])}</span>')
    if details.get("spoilerSafe"):
        badges.append('<span class="badge badge-spoiler-safe">Spoiler Safe</span>')
    if finished:
        badges.append('<span class="badge badge-past">Race Finished</span>')

    meta = []
    if race.get("raceDate"):
        meta.append(f'<span class="race-meta-item">📅 {format_long_date(race["raceDate"])}</span>')
    if race.get("location"):
        meta.append(f'<span class="race-meta-item">📍 {esc(race["location"])}</span>')
    if race.get("distance"):
        meta.append(f'<span class="race-meta-item">📏 {esc(race["distance"])} km</span>')

    if details:
        body = (build_text_section(details, "courseSummary", "🗺️ Course Overview", "course-summary")
                + build_sectors(details)
                + build_climbs(details)
                + build_favorites(details, finished)
                + build_narratives(details)
                + build_text_section(details, "historicalContext", "📜 Historical Context")
                + build_text_section(details, "watchNotes", "👀 What to Watch For", "watch-notes"))
    else:
        body = _section("📝 Details Coming Soon",
                        "<p>Race details have not been fetched yet.</p>", "empty-state")

    footer_lines = [f"{SITE_NAME} | Race details are spoiler-safe"]
    fetched = format_last_updated(details.get("lastFetched"), with_time=False)
    if fetched:
        footer_lines.append(f"Last updated: {esc(fetched)}")

    head = page_head(f"{race.get('name')} | {SITE_NAME}",
                     f"{race.get('name')} - Spoiler-free race preview and details", RACE_CSS)
    return (head
            + f"""    <a href="{esc(back_link)}" class="back-button">← {esc(back_text)}</a>
    <div class="card race-header-card">
      <div class="race-badges">{"".join(badges)}</div>
      <h1 class="race-title">{esc(race.get("name"))}</h1>
      <div class="race-meta">{"".join(meta)}</div>
    </div>
"""
            + body
            + build_broadcast(race)
            + build_top_riders(race)
            + page_footer(footer_lines, [(back_link, "Calendar")]))
