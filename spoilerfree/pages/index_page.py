"""Build index.html: the race calendar grouped by content type."""

from __future__ import annotations

from spoilerfree.pages.common import (
    SITE_NAME,
    esc,
    format_last_updated,
    format_race_date,
    page_footer,
    page_head,
    platform_color,
)

# Section order on the page
SECTIONS = [
    ("live", "Live Events", "🔴"),
    ("full-race", "Full Race Recordings", "🎬"),
    ("extended-highlights", "Extended Highlights", "📺"),
    ("highlights", "Race Highlights", "⚡"),
]

TYPE_LABELS = {
    "full-race": "FULL RACE",
    "extended-highlights": "EXTENDED",
    "highlights": "HIGHLIGHTS",
    "live": "LIVE NOW",
}

INDEX_CSS = """
.site-header { display: flex; justify-content: space-between; align-items: start; flex-wrap: wrap; gap: 20px; margin-bottom: 16px; }
.site-title { font-size: 2.5rem; font-weight: 800; color: #4c1d95; }
.event-name { font-size: 1.5rem; font-weight: 700; }
.event-details { color: #6b7280; margin-top: 4px; }
.spoiler-warning { margin-top: 16px; padding: 12px 16px; background: #ecfdf5; color: #065f46; border-radius: 12px; font-weight: 600; }
.site-nav a { color: #4c1d95; font-weight: 600; margin-right: 16px; }
.race-section { margin-bottom: 32px; }
.race-section .section-title { color: white; font-size: 1.5rem; }
.count { background: rgba(255,255,255,0.2); border-radius: 12px; padding: 2px 10px; font-size: 1rem; }
.race-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 20px; }
.race-card { display: flex; flex-direction: column; background: white; border-radius: 16px; padding: 20px; text-decoration: none; color: inherit; transition: transform 0.2s; }
.race-card:hover { transform: translateY(-4px); }
.race-card.tbd { opacity: 0.75; cursor: default; }
.race-card.tbd:hover { transform: none; }
.race-header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 12px; }
.race-type { font-size: 0.75rem; font-weight: 700; letter-spacing: 1px; padding: 4px 10px; border-radius: 12px; background: #ede9fe; color: #5b21b6; }
.type-live { background: #fee2e2; color: #dc2626; }
.race-date, .race-duration { font-size: 0.8rem; color: #6b7280; margin-left: 8px; }
.race-title { font-size: 1.15rem; font-weight: 700; margin-bottom: 8px; }
.race-description { color: #4b5563; font-size: 0.9rem; flex: 1; margin-bottom: 16px; }
.race-footer { display: flex; justify-content: space-between; align-items: center; }
.platform-badge { color: white; font-size: 0.75rem; font-weight: 600; padding: 4px 10px; border-radius: 12px; }
.watch-cta { font-weight: 700; color: #5b21b6; font-size: 0.9rem; }
.race-card.tbd .watch-cta { color: #9ca3af; }
.details-link { font-size: 0.8rem; color: #5b21b6; margin-top: 8px; }
"""


def is_tbd(race: dict) -> bool:
    return race.get("url") == "TBD" or race.get("platform") == "TBD"


def group_by_type(races: list[dict]) -> dict[str, list[dict]]:
    """Bucket races by content type; unknown or missing types count as highlights."""
    groups = {key: [] for key, _, _ in SECTIONS}
    for race in races:
        kind = race.get("type") or "highlights"
        groups.get(kind, groups["highlights"]).append(race)
    return groups


def platform_display(race: dict) -> str:
    platform = race.get("platform") or "TBD"
    if platform == "YouTube" and race.get("channel"):
        text = f"YouTube • {race['channel']}"
        if race.get("verified"):
            text += " ✓"
        return text
    return platform


def race_description(race: dict) -> str:
    if race.get("description"):
        return race["description"]
    coverage = "complete coverage" if race.get("type") == "full-race" else "race highlights"
    return (f"Watch the {coverage} from this exciting cycling event. "
            f"Click to watch directly on {race.get('platform') or 'the broadcaster'}.")


def build_race_card(race: dict) -> str:
    kind = race.get("type")
    type_label = TYPE_LABELS.get(kind, "VIDEO")
    type_class = "type-live" if kind == "live" else "type-standard"
    date_text = format_race_date(race.get("raceDate"), race.get("raceDay"))
    date_html = f'<span class="race-date">📅 {esc(date_text)}</span>' if date_text else ""
    badge = (f'<span class="platform-badge" style="background-color: {platform_color(race.get("platform"))}">'
             f'{esc(platform_display(race))}</span>')
    body = (f'<h3 class="race-title">{esc(race.get("name"))}</h3>'
            f'<p class="race-description">{esc(race_description(race))}</p>')

    if is_tbd(race):
        # Nothing to watch yet: not a link
        return (f'<div class="race-card tbd">'
                f'<div class="race-header"><span class="race-type {type_class}">{type_label}</span>{date_html}</div>'
                f'{body}'
                f'<div class="race-footer">{badge}<span class="watch-cta">Coming Soon</span></div>'
                f'</div>')

    duration = race.get("duration")
    duration_html = f'<span class="race-duration">⏱ {esc(duration)}</span>' if duration else ""
    return (f'<a href="{esc(race.get("url"))}" target="_blank" rel="noopener" class="race-card">'
            f'<div class="race-header"><span class="race-type {type_class}">{type_label}</span>'
            f'<div class="race-meta">{date_html}{duration_html}</div></div>'
            f'{body}'
            f'<div class="race-footer">{badge}<span class="watch-cta">Watch Now →</span></div>'
            f'</a>')


def build_section(title: str, icon: str, races: list[dict]) -> str:
    if not races:
        return ""
    cards = "\n        ".join(build_race_card(r) for r in races)
    return (f'<section class="race-section">'
            f'<h2 class="section-title">{icon} {esc(title)} <span class="count">{len(races)}</span></h2>'
            f'<div class="race-grid">\n        {cards}\n      </div></section>')


def build_index_page(race_data: dict) -> str:
    """Generate the full calendar page."""
    event = race_data.get("event") or {}
    event_name = event.get("name") or "Cycling Season"
    races = race_data.get("races") or []
    updated = format_last_updated(race_data.get("lastUpdated"))

    groups = group_by_type(races)
    sections = "\n    ".join(
        build_section(title, icon, groups[key]) for key, title, icon in SECTIONS if groups[key]
    )

    location = " • ".join(esc(part) for part in (event.get("location"), event.get("year")) if part)
    head = page_head(
        f"🚴 {SITE_NAME} | {event_name}",
        f"Spoiler-free cycling coverage of {event_name} - watch races without results",
        INDEX_CSS,
    )
    return head + f"""    <header class="card">
      <div class="site-header">
        <h1 class="site-title">🚴 {SITE_NAME}</h1>
        {f'<div class="last-updated">Updated: {esc(updated)}</div>' if updated else ""}
      </div>
      <div class="event-name">{esc(event_name)}</div>
      {f'<div class="event-details">📍 {location}</div>' if location else ""}
      <nav class="site-nav"><a href="riders.html">Men's Riders</a><a href="riders-women.html">Women's Riders</a></nav>
      <div class="spoiler-warning">✓ 100% Spoiler-Free: only race footage, no results, no outcomes, no speculation</div>
    </header>

    <main>
    {sections}
    </main>
""" + page_footer([f"{SITE_NAME} • Watch the races. Skip the spoilers."], [])
