"""Build riders.html / riders-women.html: a grid of ranked riders."""

from __future__ import annotations

from spoilerfree.pages.common import (
    SITE_NAME,
    esc,
    format_last_updated,
    nationality_flag,
    page_footer,
    page_head,
    specialty,
)

RIDERS_CSS = """
.rider-nav { display: flex; gap: 12px; margin-bottom: 16px; }
.rider-nav-link { color: white; text-decoration: none; font-weight: 600; padding: 6px 14px; border-radius: 20px; background: rgba(255,255,255,0.15); }
.rider-nav-link.active { background: white; color: #5b21b6; }
.page-title { font-size: 2rem; font-weight: 800; }
.page-subtitle { color: #6b7280; margin: 6px 0 12px; }
.stats-bar { display: grid; grid-template-columns: repeat(4, 1fr); gap: 12px; }
.stat { text-align: center; }
.stat-value { font-size: 1.75rem; font-weight: 800; color: #5b21b6; }
.stat-label { font-size: 0.75rem; color: #6b7280; text-transform: uppercase; letter-spacing: 1px; }
.riders-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(220px, 1fr)); gap: 16px; }
.rider-card { position: relative; background: white; border-radius: 16px; overflow: hidden; text-decoration: none; color: inherit; }
.rider-rank { position: absolute; top: 10px; left: 10px; background: #5b21b6; color: white; font-weight: 800; padding: 4px 10px; border-radius: 12px; }
.rider-photo { width: 100%; height: 200px; object-fit: cover; background: #f3f4f6; }
.rider-content { padding: 12px 16px 16px; }
.rider-flag { font-size: 1.25rem; }
.rider-name { font-size: 1rem; font-weight: 700; }
.rider-team { font-size: 0.8rem; color: #6b7280; margin-bottom: 8px; }
.rider-footer { display: flex; justify-content: space-between; align-items: center; }
.program-status { font-size: 0.8rem; color: #9ca3af; }
.program-status.has-program { color: #16a34a; font-weight: 700; }
@media (max-width: 640px) { .stats-bar { grid-template-columns: repeat(2, 1fr); } }
"""

TITLES = {
    "men": ("Top Riders", "🚴", "Top 50 ranked professional cyclists"),
    "women": ("Top Women Riders", "🚴‍♀️", "Top 50 women cyclists"),
}


def has_program(rider: dict) -> bool:
    program = rider.get("raceProgram") or {}
    return program.get("status") == "announced" and bool(program.get("races"))


def photo_src(rider: dict, prefix: str = "") -> str:
    """Downloaded photos live under riders/photos and are linked relative to the page."""
    photo = rider.get("photoUrl") or ""
    if photo.startswith("riders/"):
        return prefix + photo
    return photo


def build_rider_card(rider: dict, rider_pages_dir: str = "riders") -> str:
    race_count = len((rider.get("raceProgram") or {}).get("races") or [])
    announced = has_program(rider)
    specialties = "".join(
        f'<span class="specialty-tag" title="{esc(specialty(s)[2])}">{specialty(s)[0]}</span>'
        for s in (rider.get("specialties") or [])[:2]
    )
    rank = f'<div class="rider-rank">#{rider["ranking"]}</div>' if rider.get("ranking") else ""
    photo = photo_src(rider)
    photo_html = (f'<img src="{esc(photo)}" alt="{esc(rider.get("name"))}" class="rider-photo" loading="lazy">'
                  if photo else '<div class="rider-photo"></div>')
    return (f'<a href="{rider_pages_dir}/{esc(rider.get("slug"))}.html" class="rider-card">'
            f'{rank}{photo_html}'
            f'<div class="rider-content">'
            f'<div class="rider-flag">{nationality_flag(rider.get("nationalityCode"))}</div>'
            f'<h3 class="rider-name">{esc(rider.get("name"))}</h3>'
            f'<p class="rider-team">{esc(rider.get("team"))}</p>'
            f'<div class="rider-footer"><div class="specialties">{specialties}</div>'
            f'<div class="program-status{" has-program" if announced else ""}">'
            f'{f"📅 {race_count}" if announced else "—"}</div></div>'
            f'</div></a>')


def build_riders_index_page(riders: list[dict], last_updated: str = None, gender: str = "men") -> str:
    title, icon, description = TITLES.get(gender, TITLES["men"])
    updated = format_last_updated(last_updated, with_time=False)

    announced = sum(1 for r in riders if (r.get("raceProgram") or {}).get("status") == "announced")
    teams = len({r.get("team") for r in riders})
    nations = len({r.get("nationality") for r in riders})
    cards = "\n      ".join(build_rider_card(r) for r in riders)

    head = page_head(f"{title} | {SITE_NAME}", f"{description} - race programs and profiles", RIDERS_CSS)
    return head + f"""    <a href="index.html" class="back-button">← Back to Calendar</a>
    <nav class="rider-nav">
      <a href="riders.html" class="rider-nav-link{" active" if gender == "men" else ""}">Men's Riders</a>
      <a href="riders-women.html" class="rider-nav-link{" active" if gender == "women" else ""}">Women's Riders</a>
    </nav>

    <div class="card">
      <h1 class="page-title">{icon} {title}</h1>
      <p class="page-subtitle">UCI ranking leaders and their announced race programs</p>
      {f'<p class="last-updated">Updated: {esc(updated)}</p>' if updated else ""}
    </div>

    <div class="card stats-bar">
      <div class="stat"><div class="stat-value">{len(riders)}</div><div class="stat-label">Riders</div></div>
      <div class="stat"><div class="stat-value">{announced}</div><div class="stat-label">Programs Announced</div></div>
      <div class="stat"><div class="stat-value">{teams}</div><div class="stat-label">Teams</div></div>
      <div class="stat"><div class="stat-value">{nations}</div><div class="stat-label">Nationalities</div></div>
    </div>

    <div class="riders-grid">
      {cards}
    </div>
""" + page_footer([f"{SITE_NAME} | Data from ProCyclingStats"], [("index.html", "Calendar")])
