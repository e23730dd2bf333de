"""YouTube content discovery and channel trust registry.

Discovery is tiered so quota goes to the channels least likely to spoil a
result:

1. official channels (UCI, GCN, race organizers)
2. trusted third-party channels, only if official results are thin
3. broad YouTube search, only if the first two tiers are still thin

If a year turns up nothing at all, the previous year is tried once.
Transcripts and video metadata come from yt-dlp.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Optional

from spoilerfree.store import utc_now_iso

logger = logging.getLogger(__name__)

CHANNEL_NAMES = {
    "ucicycling": "UCI",
    "gcn": "GCN",
    "gcnracing": "GCN Racing",
    "eurosportcycling": "Eurosport cycling",
    "flobikes": "FloBikes",
    "nbcsports": "NBC Sports",
    "tourdefrance": "Tour de France official",
    "gaboracing": "Giro",
    "lanternerouge": "Lanterne Rouge",
    "cyclingnewsvideos": "Cyclingnews",
    "velonews": "VeloNews",
}

CHANNEL_URL_PATTERNS = [
    (re.compile(r"youtube\.com/@([^/?]+)"), "handle"),
    (re.compile(r"youtube\.com/channel/([^/?]+)"), "id"),
    (re.compile(r"youtube\.com/c/([^/?]+)"), "custom"),
    (re.compile(r"youtube\.com/user/([^/?]+)"), "user"),
]

CONTENT_TYPE_QUERIES = {
    "full-race": ["{race} {year} full race", "{race} {year} complete coverage"],
    "extended-highlights": ["{race} {year} extended highlights", "{race} {year} highlights 30 minutes"],
    "highlights": ["{race} {year} highlights"],
    "stage": ["{race} {year} stage {stage}", "{race} {year} stage {stage} full"],
}

MIN_OFFICIAL_RESULTS = 3
MIN_TOTAL_RESULTS = 5

YTDLP_SEARCH_TIMEOUT = 60
YTDLP_SUBTITLE_TIMEOUT = 30


def normalize_handle(handle: str) -> str:
    return (handle or "").replace("@", "").strip().lower()


def extract_channel_from_url(url: str) -> Optional[dict]:
    """``{"type": handle|id|custom|user, "value": ...}`` or None."""
    for pattern, kind in CHANNEL_URL_PATTERNS:
        match = pattern.search(url or "")
        if match:
            return {"type": kind, "value": match.group(1)}
    return None


class ChannelRegistry:
    """Trust tiers for YouTube channels, backed by the broadcasters document.

    Mutating methods change ``self.doc`` in place; the caller saves it.
    """

    def __init__(self, doc: dict):
        self.doc = doc
        doc.setdefault("officialChannels", {})
        doc.setdefault("trustedChannels", {})
        doc.setdefault("emergingChannels", [])
        doc.setdefault("blockedChannels", [])

    @staticmethod
    def _handles(channels: dict) -> list[str]:
        return [normalize_handle(c["youtubeHandle"]) for c in channels.values() if c.get("youtubeHandle")]

    def official_handles(self) -> list[str]:
        return self._handles(self.doc["officialChannels"])

    def trusted_handles(self) -> list[str]:
        return self._handles(self.doc["trustedChannels"])

    def _find_in_list(self, key: str, handle: str) -> Optional[dict]:
        normalized = normalize_handle(handle)
        for channel in self.doc[key]:
            if normalize_handle(channel.get("youtubeHandle", "")) == normalized:
                return channel
        return None

    def trust_level(self, identifier: str) -> dict:
        normalized = normalize_handle(identifier)
        for level, key in (("official", "officialChannels"), ("trusted", "trustedChannels")):
            for name, channel in self.doc[key].items():
                if (normalize_handle(channel.get("youtubeHandle", "")) == normalized
                        or channel.get("youtubeChannelId") == identifier):
                    return {"level": level, "channel": name, "data": channel}

        emerging = self._find_in_list("emergingChannels", identifier)
        if emerging:
            return {"level": "emerging", "data": emerging}
        blocked = self._find_in_list("blockedChannels", identifier)
        if blocked:
            return {"level": "blocked", "reason": blocked.get("reason")}
        return {"level": "unknown"}

    def is_blocked(self, identifier: str) -> bool:
        return self._find_in_list("blockedChannels", identifier) is not None

    def add_emerging(self, handle: str, name: str, notes: str = "") -> bool:
        if self._find_in_list("emergingChannels", handle):
            logger.info("Channel @%s already in emerging channels", normalize_handle(handle))
            return False
        self.doc["emergingChannels"].append({
            "name": name,
            "youtubeHandle": f"@{normalize_handle(handle)}",
            "trustLevel": "emerging",
            "addedAt": utc_now_iso(),
            "usageCount": 0,
            "notes": notes,
        })
        return True

    def promote_to_trusted(self, handle: str, **extra) -> bool:
        channel = self._find_in_list("emergingChannels", handle)
        if channel is None:
            logger.info("Channel @%s not found in emerging channels", normalize_handle(handle))
            return False
        self.doc["emergingChannels"].remove(channel)
        key = re.sub(r"\s+", "", channel.get("name") or normalize_handle(handle))
        promoted = dict(channel)
        promoted.update({"trustLevel": "trusted", "promotedAt": utc_now_iso()})
        promoted.update(extra)
        self.doc["trustedChannels"][key] = promoted
        return True

    def block_channel(self, handle: str, reason: str) -> bool:
        if self.is_blocked(handle):
            return False
        normalized = normalize_handle(handle)
        self.doc["blockedChannels"].append({
            "youtubeHandle": f"@{normalized}",
            "reason": reason,
            "blockedAt": utc_now_iso(),
        })
        self.doc["emergingChannels"] = [
            c for c in self.doc["emergingChannels"]
            if normalize_handle(c.get("youtubeHandle", "")) != normalized
        ]
        return True


class YouTubeDiscovery:
    """Tiered discovery on top of a ``search(query, limit=...)`` callable.

    ``search`` is normally ``FirecrawlClient.search``.
    """

    def __init__(self, search: Callable, registry: ChannelRegistry):
        self.search = search
        self.registry = registry
        self.api_calls = 0

    def _search(self, query: str, limit: int) -> list[dict]:
        self.api_calls += 1
        hits = self.search(query, limit=limit)
        return [h for h in hits if not self._from_blocked_channel(h)]

    def _from_blocked_channel(self, hit: dict) -> bool:
        channel = extract_channel_from_url(hit.get("url", ""))
        return bool(channel and self.registry.is_blocked(channel["value"]))

    def search_channel(self, handle: str, query: str, limit: int = 5) -> list[dict]:
        normalized = normalize_handle(handle)
        channel_name = CHANNEL_NAMES.get(normalized, normalized)
        logger.info('Searching %s: "%s"', channel_name, query)
        return self._search(f"site:youtube.com {channel_name} {query}", limit)

    def broad_search(self, race_name: str, year: int) -> list[dict]:
        for suffix in ("extended highlights", "full race", "highlights"):
            hits = self._search(f"site:youtube.com {race_name} {year} {suffix}", 5)
            if len(hits) >= 3:
                return hits
        return self._search(f"site:youtube.com {race_name} {year}", 5)

    def discover(self, race_name: str, year: int, min_official: int = MIN_OFFICIAL_RESULTS,
                 min_total: int = MIN_TOTAL_RESULTS, year_fallback: bool = True) -> dict:
        results = {
            "official": [],
            "trusted": [],
            "broad": [],
            "metadata": {
                "searchedAt": utc_now_iso(),
                "raceName": race_name,
                "year": year,
                "strategy": "tiered",
                "apiCallsUsed": 0,
            },
        }
        calls_before = self.api_calls
        seen = set()

        def add(tier: str, hits: list[dict], channel: Optional[str] = None):
            for hit in hits:
                url = hit.get("url")
                if not url or url in seen:
                    continue
                seen.add(url)
                item = dict(hit)
                item["sourceTier"] = tier
                if channel:
                    item["sourceChannel"] = channel
                results[tier].append(item)

        for handle in self.registry.official_handles():
            add("official", self.search_channel(handle, f"{race_name} {year}", 3), handle)

        if len(results["official"]) < min_official:
            for handle in self.registry.trusted_handles():
                add("trusted", self.search_channel(handle, f"{race_name} {year} highlights", 2), handle)

        if len(results["official"]) + len(results["trusted"]) < min_total:
            add("broad", self.broad_search(race_name, year))

        results["metadata"]["apiCallsUsed"] = self.api_calls - calls_before
        total = len(results["official"]) + len(results["trusted"]) + len(results["broad"])
        logger.info("Discovery for %s %s: %d results", race_name, year, total)

        if total == 0 and year_fallback:
            logger.info("No %s results, trying %s", year, year - 1)
            fallback = self.discover(race_name, year - 1, min_official, min_total, year_fallback=False)
            for tier in ("official", "trusted", "broad"):
                for item in fallback[tier]:
                    item["yearFallback"] = True
            results["fallback"] = fallback
            results["metadata"]["usedYearFallback"] = True

        return results

    def find_content_type(self, race_name: str, year: int, content_type: str,
                          stage_number: Optional[int] = None) -> list[dict]:
        templates = CONTENT_TYPE_QUERIES.get(content_type, ["{race} {year} " + content_type])
        queries = [
            t.format(race=race_name, year=year, stage=stage_number or "").strip()
            for t in templates
        ]
        for query in queries:
            for handle in self.registry.official_handles():
                hits = self.search_channel(handle, query, 3)
                if hits:
                    return [dict(h, sourceChannel=handle, contentType=content_type) for h in hits]
        for query in queries:
            hits = self._search(f"site:youtube.com {query}", 5)
            if hits:
                return [dict(h, contentType=content_type) for h in hits]
        return []


def flatten_discovery(results: dict) -> list[dict]:
    """All hits from a discovery result, including the year fallback."""
    items = results["official"] + results["trusted"] + results["broad"]
    if results.get("fallback"):
        items += flatten_discovery(results["fallback"])
    return items


# ── yt-dlp ──


def clean_vtt(text: str) -> Optional[str]:
    """WebVTT subtitles to plain text with repeated caption lines removed."""
    lines, seen = [], set()
    for line in text.split("\n"):
        line = line.strip()
        if not line or line == "WEBVTT" or "-->" in line or re.match(r"^\d+$", line):
            continue
        if line.startswith("Kind:") or line.startswith("Language:"):
            continue
        clean = re.sub(r"<[^>]+>", "", line)
        if clean and clean not in seen:
            seen.add(clean)
            lines.append(clean)
    return "\n".join(lines) if lines else None


def get_transcript(video_url: str) -> Optional[str]:
    """Download auto-generated English subtitles and return cleaned text."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cmd = [
            "yt-dlp",
            "--write-auto-sub",
            "--sub-lang", "en",
            "--skip-download",
            "--sub-format", "vtt",
            "-o", f"{tmpdir}/%(id)s",
            video_url,
        ]
        try:
            subprocess.run(cmd, capture_output=True, text=True, timeout=YTDLP_SUBTITLE_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("Transcript download timed out for %s", video_url)
            return None

        vtt_files = list(Path(tmpdir).glob("*.vtt"))
        if not vtt_files:
            return None
        text = vtt_files[0].read_text()

    return clean_vtt(text)


def get_video_metadata(video_url: str) -> Optional[dict]:
    """yt-dlp ``--dump-json`` for one video, or None if it fails."""
    cmd = ["yt-dlp", video_url, "--dump-json", "--no-download"]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=YTDLP_SEARCH_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning("Metadata fetch timed out for %s", video_url)
        return None
    if result.returncode != 0 or not result.stdout.strip():
        return None
    try:
        return json.loads(result.stdout.strip().split("\n")[0])
    except json.JSONDecodeError:
        return None


def summarize_video(video: dict) -> dict:
    return {
        "title": video.get("title"),
        "channel": video.get("channel"),
        "uploadDate": video.get("upload_date"),
        "duration": video.get("duration_string"),
        "viewCount": video.get("view_count"),
        "description": video.get("description", ""),
        "url": video.get("webpage_url") or video.get("url"),
    }
