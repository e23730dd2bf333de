"""Shared pieces for every generated page: escaping, dates, CSS, header and footer."""

from __future__ import annotations

import html as html_mod
import logging
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

SITE_NAME = "No Spoiler Cycling"

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

COLORS = {
    "primary": "#667eea",
    "secondary": "#764ba2",
    "text": "#1f2937",
    "muted": "#6b7280",
    "surface": "#ffffff",
    "soft": "#f3f4f6",
    "live": "#dc2626",
}

PLATFORM_COLORS = {
    "YouTube": "#FF0000",
    "FloBikes": "#00A651",
    "TBD": "#6B7280",
    "Peacock": "#000000",
    "HBO Max": "#8B5CF6",
    "UCI.org": "#0066CC",
    "GCN+": "#FF6B00",
}
DEFAULT_PLATFORM_COLOR = "#6B7280"

NATIONALITY_FLAGS = {
    "SL": "🇸🇮", "SI": "🇸🇮",
    "DE": "🇩🇪",
    "DK": "🇩🇰",
    "BE": "🇧🇪",
    "NL": "🇳🇱", "NE": "🇳🇱",
    "FR": "🇫🇷",
    "IT": "🇮🇹",
    "ES": "🇪🇸",
    "GB": "🇬🇧", "UK": "🇬🇧",
    "US": "🇺🇸",
    "AU": "🇦🇺",
    "CO": "🇨🇴",
    "PO": "🇵🇹", "PT": "🇵🇹",
    "ME": "🇲🇽", "MX": "🇲🇽",
    "AT": "🇦🇹",
    "NO": "🇳🇴",
    "PL": "🇵🇱",
    "CH": "🇨🇭", "SW": "🇨🇭",
    "IE": "🇮🇪",
    "CA": "🇨🇦",
    "NZ": "🇳🇿",
    "CZ": "🇨🇿",
}
UNKNOWN_FLAG = "🏳️"

# slug -> (icon, short label, long label, color)
SPECIALTIES = {
    "climber": ("⛰️", "Climber", "Climber", "#dc2626"),
    "sprinter": ("⚡", "Sprinter", "Sprinter", "#16a34a"),
    "puncheur": ("💪", "Puncheur", "Puncheur", "#ea580c"),
    "gc-contender": ("🎯", "GC", "GC Contender", "#7c3aed"),
    "time-trialist": ("⏱️", "TT", "Time Trialist", "#0891b2"),
    "one-day": ("🏆", "Classics", "Classics", "#ca8a04"),
    "rouleur": ("🚴", "Rouleur", "Rouleur", "#64748b"),
}


def esc(text) -> str:
    return html_mod.escape(str(text)) if text else ""


def nationality_flag(code) -> str:
    return NATIONALITY_FLAGS.get(code or "", UNKNOWN_FLAG)


def specialty(slug: str) -> tuple:
    return SPECIALTIES.get(slug, ("🚴", slug, slug, COLORS["muted"]))


def platform_color(platform) -> str:
    return PLATFORM_COLORS.get(platform, DEFAULT_PLATFORM_COLOR)


def parse_iso(value: str):
    """Parse ``2026-01-07T10:00:00.000Z`` style timestamps; None when unparseable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_last_updated(value: str, with_time: bool = True) -> str:
    """``January 7, 2026 at 10:00 AM`` (UTC); empty string when missing."""
    stamp = parse_iso(value)
    if stamp is None:
        return ""
    text = f"{MONTHS[stamp.month - 1]} {stamp.day}, {stamp.year}"
    if with_time:
        text += f" at {stamp.strftime('%I:%M %p')}"
    return text


def format_race_date(race_date: str, race_day: str = None) -> str:
    """``2026-04-12`` + ``Sunday`` -> ``Sunday, Apr 12``.

    Parsed from the string itself so the shown day never shifts with the
    local timezone.
    """
    if not race_date:
        return ""
    try:
        _, month, day = (int(part) for part in race_date.split("-"))
    except ValueError:
        return esc(race_date)
    text = f"{MONTHS[month - 1][:3]} {day}"
    return f"{race_day}, {text}" if race_day else text


def format_long_date(race_date: str) -> str:
    """``2026-04-12`` -> ``Sunday, April 12, 2026``."""
    try:
        stamp = datetime.strptime(race_date, "%Y-%m-%d")
    except (TypeError, ValueError):
        return ""
    return f"{WEEKDAYS[stamp.weekday()]}, {MONTHS[stamp.month - 1]} {stamp.day}, {stamp.year}"


def format_short_date(race_date: str) -> str:
    """``2026-04-12`` -> ``Apr 12``."""
    try:
        stamp = datetime.strptime(race_date, "%Y-%m-%d")
    except (TypeError, ValueError):
        return ""
    return f"{MONTHS[stamp.month - 1][:3]} {stamp.day}"


def get_base_css() -> str:
    return f"""
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
  background: linear-gradient(135deg, {COLORS["primary"]} 0%, {COLORS["secondary"]} 100%);
  min-height: 100vh;
  padding: 20px;
  color: {COLORS["text"]};
}}
.container {{ max-width: 1200px; margin: 0 auto; }}
.card {{
  background: {COLORS["surface"]};
  border-radius: 16px;
  padding: 24px;
  margin-bottom: 24px;
  box-shadow: 0 10px 40px rgba(0,0,0,0.1);
}}
.back-button {{
  display: inline-block;
  color: white;
  text-decoration: none;
  font-weight: 600;
  margin-bottom: 16px;
}}
.back-button:hover {{ text-decoration: underline; }}
.section-title {{ font-size: 1.25rem; font-weight: 700; margin-bottom: 16px; }}
.last-updated {{
  background: {COLORS["soft"]};
  padding: 8px 16px;
  border-radius: 20px;
  font-size: 0.875rem;
  color: #4b5563;
  display: inline-block;
}}
.footer {{ text-align: center; color: white; opacity: 0.9; padding: 24px 0; font-size: 0.875rem; }}
.footer a {{ color: white; }}
@media (max-width: 768px) {{
  body {{ padding: 12px; }}
  .card {{ padding: 16px; }}
}}
"""


def page_head(title: str, description: str, extra_css: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <meta name="description" content="{esc(description)}">
  <title>{esc(title)}</title>
  <style>
{get_base_css()}
{extra_css}
  </style>
</head>
<body>
  <div class="container">
"""


def page_footer(lines: list[str], links: list[tuple[str, str]]) -> str:
    """Footer with plain text ``lines`` (already escaped) and ``(href, label)`` links."""
    paragraphs = "".join(f"<p>{line}</p>" for line in lines)
    nav = " · ".join(f'<a href="{esc(href)}">{esc(label)}</a>' for href, label in links)
    return f"""    <footer class="footer">
      {paragraphs}
      {f"<p>{nav}</p>" if nav else ""}
    </footer>
  </div>
</body>
</html>
"""


def write_page(path: Path, html: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    logger.info("Generated %s", path)
    return path
