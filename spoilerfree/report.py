"""Render quality-check results as a boxed report, a compact line, or JSON.

Results shape::

    {
        "race": {"id", "name", "raceDate"},
        "sections": [{"name", "status", "checks": [{"label", "status", "value", "subChecks"}]}],
        "summary": {"status", "passCount", "warnCount", "failCount", "details",
                    "warnings", "errors"},
    }
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from spoilerfree.store import utc_now_iso

WIDTH = 65

COLORS = {
    "reset": "\x1b[0m",
    "bold": "\x1b[1m",
    "dim": "\x1b[2m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
    "cyan": "\x1b[36m",
    "white": "\x1b[37m",
}
NO_COLORS = {name: "" for name in COLORS}

SYMBOLS = {
    "pass": "✓",
    "fail": "✗",
    "warn": "⚠",
    "info": "○",
    "skip": "–",
}

STATUS_COLOR = {"pass": "green", "fail": "red", "warn": "yellow", "skip": "dim"}

# Higher is worse. pass and skip share a rank.
SEVERITY = {"info": 0, "pass": 1, "skip": 1, "warn": 2, "fail": 3}

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    return ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    return len(strip_ansi(text))


def worst_status(statuses: Iterable[str]) -> str:
    """Worst status by severity; pass beats skip on a tie unless all are skip."""
    statuses = [s for s in statuses if s]
    if not statuses:
        return "pass"
    top = max(SEVERITY.get(s, 0) for s in statuses)
    if top == SEVERITY["pass"]:
        return "pass" if "pass" in statuses else "skip"
    for status, rank in SEVERITY.items():
        if rank == top and status in statuses:
            return status
    return "info"


def section_status(checks: list[dict]) -> str:
    return worst_status(c.get("status") for c in checks)


def summarize(sections: list[dict], warnings=None, errors=None) -> dict:
    """Count section and check statuses; overall is fail > warn > pass."""
    counts = {"pass": 0, "warn": 0, "fail": 0}
    for section in sections:
        if section.get("status") in counts:
            counts[section["status"]] += 1
        for check in section.get("checks", []):
            if check.get("status") in counts:
                counts[check["status"]] += 1

    if counts["fail"]:
        status = "fail"
    elif counts["warn"]:
        status = "warn"
    else:
        status = "pass"

    return {
        "status": status,
        "passCount": counts["pass"],
        "warnCount": counts["warn"],
        "failCount": counts["fail"],
        "details": f"{counts['fail']} errors, {counts['warn']} warnings",
        "warnings": list(warnings or []),
        "errors": list(errors or []),
    }


class ReportFormatter:
    """Box-drawing report renderer. Pass ``color=False`` for plain text."""

    def __init__(self, color: bool = True, width: int = WIDTH):
        self.c = COLORS if color else NO_COLORS
        self.width = width

    # ── Pieces ──

    def format_status(self, status: str) -> str:
        c = self.c
        if status in STATUS_COLOR:
            return f"{c[STATUS_COLOR[status]]}{SYMBOLS[status]}{c['reset']}"
        return f"{c['cyan']}{SYMBOLS['info']}{c['reset']}"

    def format_section_status(self, status: str) -> str:
        c = self.c
        if status == "skip":
            return f"{c['dim']}– SKIP{c['reset']}"
        if status in ("pass", "fail", "warn"):
            color = c[STATUS_COLOR[status]]
            return f"{color}{c['bold']}{SYMBOLS[status]} {status.upper()}{c['reset']}"
        return ""

    def rule(self, left: str, right: str) -> str:
        return f"{left}{'─' * (self.width - 2)}{right}"

    def boxed(self, content: str) -> str:
        """``│ content<pad>│`` padded to exactly ``width`` visible columns."""
        inner = self.width - 3
        if visible_width(content) > inner:
            content = strip_ansi(content)[: inner - 1] + "…"
        padding = inner - visible_width(content)
        return f"│ {content}{' ' * padding}│"

    def section_header(self, title: str, status: str) -> str:
        status_text = self.format_section_status(status)
        inner = self.width - 4
        gap = inner - len(title) - visible_width(status_text)
        if gap < 1:
            title = title[: max(0, inner - visible_width(status_text) - 2)] + "…"
            gap = 1
        return f"│ {title}{' ' * gap}{status_text} │"

    def tree_line(self, label: str, value: str, last: bool, indent: int = 1) -> str:
        branch = "└──" if last else "├──"
        content = f"{'   ' * indent}{branch} {label}: {value}"
        # Tree lines start flush against the left border
        inner = self.width - 2
        if visible_width(content) > inner:
            content = strip_ansi(content)[: inner - 1] + "…"
        padding = inner - visible_width(content)
        return f"│{content}{' ' * padding}│"

    def _check_value(self, item: dict) -> str:
        c = self.c
        status = self.format_status(item.get("status"))
        value = item.get("value")
        if value:
            return f"{status} {c['dim']}({value}){c['reset']}"
        return status

    # ── Whole reports ──

    def generate_report(self, results: dict) -> str:
        c = self.c
        race = results.get("race", {})
        summary = results.get("summary", {})
        lines = [self.rule("┌", "┐")]
        lines.append(self.boxed(f"{c['bold']}Race Quality Report: {race.get('name')}{c['reset']}"))
        if race.get("id"):
            lines.append(self.boxed(f"{c['dim']}ID: {race['id']}{c['reset']}"))

        for section in results.get("sections", []):
            lines.append(self.rule("├", "┤"))
            lines.append(self.section_header(section["name"], section.get("status")))
            checks = section.get("checks", [])
            for i, check in enumerate(checks):
                lines.append(self.tree_line(check["label"], self._check_value(check), i == len(checks) - 1))
                subs = check.get("subChecks") or []
                for j, sub in enumerate(subs):
                    lines.append(self.tree_line(sub["label"], self._check_value(sub), j == len(subs) - 1, indent=2))

        lines.append(self.rule("└", "┘"))
        lines.append("")

        status = summary.get("status", "pass")
        color = c[STATUS_COLOR.get(status, "red")]
        symbol = SYMBOLS.get(status, SYMBOLS["fail"])
        overall = f"{color}{c['bold']}OVERALL: {symbol} {status.upper()}{c['reset']}"
        if summary.get("details"):
            overall += f" {c['dim']}({summary['details']}){c['reset']}"
        lines.append(overall)

        if summary.get("warnings"):
            lines.append("")
            lines.append(f"{c['yellow']}Warnings:{c['reset']}")
            for warning in summary["warnings"]:
                lines.append(f"  {c['yellow']}{SYMBOLS['warn']}{c['reset']} {warning}")

        if summary.get("errors"):
            lines.append("")
            lines.append(f"{c['red']}Errors:{c['reset']}")
            for error in summary["errors"]:
                lines.append(f"  {c['red']}{SYMBOLS['fail']}{c['reset']} {error}")

        return "\n".join(lines)

    def generate_compact_summary(self, results: dict) -> str:
        c = self.c
        race = results.get("race", {})
        summary = results.get("summary", {})
        counts = []
        for key, label, color in (("passCount", "pass", "green"),
                                  ("warnCount", "warn", "yellow"),
                                  ("failCount", "fail", "red")):
            if summary.get(key):
                counts.append(f"{c[color]}{summary[key]} {label}{c['reset']}")
        name = race.get("id") or race.get("name") or ""
        line = f"{self.format_status(summary.get('status'))} {name} {c['dim']}[{', '.join(counts)}]{c['reset']}"
        return " ".join(line.splitlines())

    def generate_batch_summary(self, all_results: list[dict]) -> str:
        c = self.c
        totals = {"pass": 0, "warn": 0, "fail": 0}
        for results in all_results:
            status = results.get("summary", {}).get("status", "fail")
            totals[status if status in totals else "fail"] += 1
        return f"{c['bold']}Summary:{c['reset']} {totals['pass']} pass, {totals['warn']} warn, {totals['fail']} fail"


def generate_json_report(results: dict, timestamp: Optional[str] = None) -> dict:
    """Structured echo of ``results`` without colour codes."""
    race = results.get("race", {})
    summary = results.get("summary", {})

    def clean(item: dict) -> dict:
        out = {
            "label": strip_ansi(str(item.get("label", ""))),
            "status": item.get("status"),
            "value": strip_ansi(str(item["value"])) if item.get("value") is not None else None,
        }
        if item.get("subChecks"):
            out["subChecks"] = [clean(sub) for sub in item["subChecks"]]
        return out

    return {
        "race": {
            "id": race.get("id"),
            "name": race.get("name"),
            "raceDate": race.get("raceDate"),
        },
        "timestamp": timestamp or utc_now_iso(),
        "summary": {
            "status": summary.get("status"),
            "passCount": summary.get("passCount", 0),
            "warnCount": summary.get("warnCount", 0),
            "failCount": summary.get("failCount", 0),
            "details": summary.get("details"),
            "warnings": [strip_ansi(w) for w in summary.get("warnings", [])],
            "errors": [strip_ansi(e) for e in summary.get("errors", [])],
        },
        "sections": [
            {
                "name": section.get("name"),
                "status": section.get("status"),
                "checks": [clean(check) for check in section.get("checks", [])],
            }
            for section in results.get("sections", [])
        ],
    }


_default = ReportFormatter()

format_status = _default.format_status
generate_report = _default.generate_report
generate_compact_summary = _default.generate_compact_summary
