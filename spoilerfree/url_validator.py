"""Broadcast URL classification: valid vs sentinel, root homepage vs deep link.

A root URL is a broadcaster's bare homepage and is useless to a viewer who
wants to jump straight to a race. A deep link points at an event, video or
programme page. Both pattern tables are heuristics and can be replaced by
constructing a UrlClassifier with different tables.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

SENTINELS = ("TBD", "undefined", "null")

_ROOT_TAIL = r"/?(\?.*)?$"

ROOT_URL_PATTERNS = {
    "flobikes": re.compile(r"^https?://(www\.)?flobikes\.com" + _ROOT_TAIL),
    "discoveryplus": re.compile(r"^https?://(www\.)?discoveryplus\.(com|co\.uk)" + _ROOT_TAIL),
    "peacock": re.compile(r"^https?://(www\.)?peacocktv\.com" + _ROOT_TAIL),
    "max": re.compile(r"^https?://(www\.)?max\.com" + _ROOT_TAIL),
    "eurosport": re.compile(r"^https?://(www\.)?eurosport\.(com|co\.uk|de|fr|es|it)" + _ROOT_TAIL),
    "gcn": re.compile(r"^https?://(www\.)?gcn\.(com|tv)" + _ROOT_TAIL),
    "sbs": re.compile(r"^https?://(www\.)?sbs\.com\.au" + _ROOT_TAIL),
    "sporza": re.compile(r"^https?://(www\.)?sporza\.be" + _ROOT_TAIL),
    "youtube": re.compile(r"^https?://(www\.)?youtube\.com" + _ROOT_TAIL),
    "stan": re.compile(r"^https?://(www\.)?stan\.com\.au" + _ROOT_TAIL),
}

DEEP_LINK_PATTERNS = {
    "flobikes": [
        re.compile(r"flobikes\.com/events/\d+"),
        re.compile(r"flobikes\.com/video/\d+"),
        re.compile(r"flobikes\.com/collections/"),
        re.compile(r"flobikes\.com/live/"),
    ],
    "discoveryplus": [
        re.compile(r"discoveryplus\.(com|co\.uk)/video/"),
        re.compile(r"discoveryplus\.(com|co\.uk)/show/"),
        re.compile(r"discoveryplus\.(com|co\.uk)/sport/"),
    ],
    "peacock": [
        re.compile(r"peacocktv\.com/watch/"),
        re.compile(r"peacocktv\.com/sports/"),
        re.compile(r"peacocktv\.com/browse/sports/"),
    ],
    "max": [
        re.compile(r"max\.com/video/"),
        re.compile(r"max\.com/movies/"),
        re.compile(r"max\.com/shows/"),
    ],
    "eurosport": [
        re.compile(r"eurosport\.(com|co\.uk|de|fr|es|it)/cycling/"),
        re.compile(r"eurosport\.(com|co\.uk|de|fr|es|it)/.*/video/"),
    ],
    "youtube": [
        re.compile(r"youtube\.com/watch\?v="),
        re.compile(r"youtube\.com/live/"),
        re.compile(r"youtu\.be/"),
    ],
    "gcn": [
        re.compile(r"gcn\.(com|tv)/show/"),
        re.compile(r"gcn\.(com|tv)/video/"),
    ],
    "sbs": [
        re.compile(r"sbs\.com\.au/ondemand/"),
        re.compile(r"sbs\.com\.au/sport/"),
    ],
    "sporza": [
        re.compile(r"sporza\.be/nl/matches/"),
        re.compile(r"sporza\.be/.*/video/"),
    ],
    "stan": [
        re.compile(r"stan\.com\.au/watch/"),
        re.compile(r"stan\.com\.au/programs/"),
    ],
}

# Checked in order; first substring hit wins. "max.com" must come after
# anything that could contain it.
BROADCASTER_DOMAINS = [
    ("flobikes", ("flobikes.com",)),
    ("discoveryplus", ("discoveryplus",)),
    ("peacock", ("peacocktv.com",)),
    ("max", ("max.com",)),
    ("eurosport", ("eurosport",)),
    ("youtube", ("youtube.com", "youtu.be")),
    ("gcn", ("gcn.com", "gcn.tv")),
    ("sbs", ("sbs.com.au",)),
    ("sporza", ("sporza.be",)),
    ("stan", ("stan.com.au",)),
]

YOUTUBE_ID_PATTERNS = [
    re.compile(r"youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/live/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})"),
]

STATUS_OK = "ok"
STATUS_TBD = "tbd"
STATUS_ROOT = "root-url"
STATUS_INVALID = "invalid"


class UrlClassifier:
    """Classifies broadcast URLs against root-URL and deep-link tables."""

    def __init__(self, root_patterns: Optional[dict] = None,
                 deep_patterns: Optional[dict] = None,
                 broadcaster_domains: Optional[list] = None):
        self.root_patterns = ROOT_URL_PATTERNS if root_patterns is None else root_patterns
        self.deep_patterns = DEEP_LINK_PATTERNS if deep_patterns is None else deep_patterns
        self.broadcaster_domains = BROADCASTER_DOMAINS if broadcaster_domains is None else broadcaster_domains

    def is_valid_url(self, url) -> bool:
        if not url or not isinstance(url, str):
            return False
        if url in SENTINELS:
            return False
        if any(ch.isspace() for ch in url):
            return False
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return bool(parsed.scheme and parsed.netloc)

    def is_root_url(self, url) -> bool:
        if not self.is_valid_url(url):
            return False
        return any(pattern.search(url) for pattern in self.root_patterns.values())

    def detect_broadcaster(self, url) -> Optional[str]:
        if not self.is_valid_url(url):
            return None
        lowered = url.lower()
        for broadcaster, needles in self.broadcaster_domains:
            if any(needle in lowered for needle in needles):
                return broadcaster
        return None

    def is_deep_link(self, url) -> bool:
        if not self.is_valid_url(url) or self.is_root_url(url):
            return False

        broadcaster = self.detect_broadcaster(url)
        if broadcaster is None:
            # Unknown broadcaster: anything beyond "/" counts as specific content
            return len(urlparse(url).path) > 1

        patterns = self.deep_patterns.get(broadcaster)
        if not patterns:
            return True
        return any(pattern.search(url) for pattern in patterns)

    def get_url_problems(self, url) -> list[str]:
        if not url:
            return ["URL is missing"]
        if url == "TBD":
            return ["URL is TBD (not yet populated)"]
        if url in ("undefined", "null"):
            return ["URL is undefined/null string"]
        if not self.is_valid_url(url):
            return ["URL format is invalid"]

        broadcaster = self.detect_broadcaster(url)
        if self.is_root_url(url):
            return [f"Root URL detected ({broadcaster or 'unknown'}) - should be deep link to specific content"]
        if broadcaster and not self.is_deep_link(url):
            return [f"URL is not a deep link ({broadcaster}) - no known content path matched"]
        return []

    def validate_broadcast_url(self, url) -> dict:
        """Full verdict for one URL.

        Returns:
            dict with url, valid, isDeepLink, isRootUrl, broadcaster,
            problems and status (ok | tbd | root-url | invalid)
        """
        problems = self.get_url_problems(url)
        is_root = self.is_root_url(url)

        if not problems:
            status = STATUS_OK
        elif url == "TBD":
            status = STATUS_TBD
        elif is_root:
            status = STATUS_ROOT
        else:
            status = STATUS_INVALID

        return {
            "url": url,
            "valid": not problems,
            "isDeepLink": self.is_deep_link(url),
            "isRootUrl": is_root,
            "broadcaster": self.detect_broadcaster(url),
            "problems": problems,
            "status": status,
        }

    def validate_race_broadcast(self, broadcast) -> dict:
        """Classify every primary and alternative URL across a race's geos."""
        geos = (broadcast or {}).get("geos") if isinstance(broadcast, dict) else None
        if not geos:
            return {
                "hasGeos": False,
                "geoCount": 0,
                "totalUrls": 0,
                "validUrls": 0,
                "rootUrls": 0,
                "tbdUrls": 0,
                "invalidUrls": 0,
                "byGeo": {},
                "problems": ["No broadcast.geos defined"],
            }

        results = {
            "hasGeos": True,
            "geoCount": len(geos),
            "totalUrls": 0,
            "validUrls": 0,
            "rootUrls": 0,
            "tbdUrls": 0,
            "invalidUrls": 0,
            "byGeo": {},
            "problems": [],
        }

        for geo, geo_data in geos.items():
            geo_data = geo_data or {}
            geo_result = {"primary": None, "alternatives": []}

            primary_url = (geo_data.get("primary") or {}).get("url")
            if primary_url:
                verdict = self.validate_broadcast_url(primary_url)
                geo_result["primary"] = verdict
                self._tally(results, verdict, f"{geo} primary")

            for alt in geo_data.get("alternatives") or []:
                if not alt.get("url"):
                    continue
                verdict = self.validate_broadcast_url(alt["url"])
                geo_result["alternatives"].append(verdict)
                label = f"{geo} alt ({alt.get('broadcaster') or verdict['broadcaster'] or 'unknown'})"
                self._tally(results, verdict, label)

            results["byGeo"][geo] = geo_result

        return results

    @staticmethod
    def _tally(results: dict, verdict: dict, label: str) -> None:
        results["totalUrls"] += 1
        if verdict["valid"] and verdict["isDeepLink"]:
            results["validUrls"] += 1
        elif verdict["status"] == STATUS_TBD:
            results["tbdUrls"] += 1
        elif verdict["isRootUrl"]:
            results["rootUrls"] += 1
            results["problems"].append(f"{label}: root URL ({verdict['broadcaster']})")
        else:
            results["invalidUrls"] += 1
            detail = ", ".join(verdict["problems"]) or "not a deep link"
            results["problems"].append(f"{label}: {detail}")


def extract_youtube_video_id(url) -> Optional[str]:
    if not url or not isinstance(url, str):
        return None
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


# ── Module-level API on the default tables ──

_default = UrlClassifier()

is_valid_url = _default.is_valid_url
is_root_url = _default.is_root_url
detect_broadcaster = _default.detect_broadcaster
is_deep_link = _default.is_deep_link
get_url_problems = _default.get_url_problems
validate_broadcast_url = _default.validate_broadcast_url
validate_race_broadcast = _default.validate_race_broadcast
