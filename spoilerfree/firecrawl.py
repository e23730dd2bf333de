"""Firecrawl search/scrape API client and content discovery helpers."""

from __future__ import annotations

import logging
import time
from typing import Optional

from spoilerfree.config import Settings
from spoilerfree.errors import ApiError, RateLimitedError
from spoilerfree.http_client import HttpClient, RequestsHttpClient, bearer
from spoilerfree.store import utc_now_iso

logger = logging.getLogger(__name__)

SERVICE = "Firecrawl"

RACE_CONTENT_INDICATORS = (
    "highlights", "full race", "complete", "coverage", "recording",
    "time trial", "road race", "replay", "broadcast",
)
PREVIEW_INDICATORS = (
    "preview", "prediction", "who will win", "analysis", "speculation",
    "pre-race", "tactics", "breakdown",
)

PLATFORM_DOMAINS = [
    (("youtube.com", "youtu.be"), "YouTube"),
    (("flobikes.com",), "FloBikes"),
    (("peacocktv.com",), "Peacock"),
    (("hbomax.com",), "HBO Max"),
    (("uci.org",), "UCI"),
    (("cyclingnews.com",), "CyclingNews"),
    (("letour.fr",), "Tour de France"),
]

DEFAULT_GEOS = ("US", "CA", "UK")


def extract_platform(url: str) -> str:
    for needles, platform in PLATFORM_DOMAINS:
        if any(n in url for n in needles):
            return platform
    return "Web"


def content_type_from_title(title: str) -> str:
    lowered = (title or "").lower()
    if any(k in lowered for k in ("full race", "complete", "full coverage")):
        return "full-race"
    if "extended highlights" in lowered or "long highlights" in lowered:
        return "extended-highlights"
    if "highlights" in lowered:
        return "highlights"
    if "time trial" in lowered:
        return "time-trial"
    return "recording"


def is_race_footage(title: str, description: str = "") -> bool:
    """Race footage mentions coverage terms and is not a preview or analysis."""
    text = f"{title or ''} {description or ''}".lower()
    has_race_content = any(k in text for k in RACE_CONTENT_INDICATORS)
    is_preview = any(k in text for k in PREVIEW_INDICATORS)
    return has_race_content and not is_preview


def create_race_entry(result: dict, **custom) -> dict:
    """Build a race-data card from a search (and optional scrape) result."""
    metadata = (result.get("content") or {}).get("metadata") or {}
    search_meta = result.get("searchMetadata") or {}
    entry = {
        "id": custom.get("id") or f"race-{int(time.time() * 1000)}",
        "name": custom.get("name") or search_meta.get("title") or metadata.get("title") or "Unknown Race",
        "description": (custom.get("description") or search_meta.get("description")
                        or metadata.get("description") or ""),
        "platform": extract_platform(result["url"]),
        "url": result["url"],
        "type": custom.get("type") or "unknown",
        "discoveredAt": utc_now_iso(),
    }
    entry.update({k: v for k, v in custom.items() if v is not None})
    return entry


class FirecrawlClient:
    def __init__(self, settings: Settings, http: Optional[HttpClient] = None, sleep=time.sleep):
        self.api_key = settings.require("firecrawl_api_key")
        self.base_url = settings.firecrawl_base_url.rstrip("/")
        self.rate_limit_sleep = settings.rate_limit_sleep
        self.request_delay = settings.request_delay
        self.http = http or RequestsHttpClient(timeout=settings.request_timeout)
        self.sleep = sleep

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.base_url}{endpoint}"
        try:
            return self.http.post_json(SERVICE, url, payload, bearer(self.api_key))
        except RateLimitedError:
            logger.warning("Firecrawl rate limited, sleeping %ss before one retry", self.rate_limit_sleep)
            self.sleep(self.rate_limit_sleep)
            return self.http.post_json(SERVICE, url, payload, bearer(self.api_key))

    # ── Search ──

    def search(self, query: str, limit: int = 5, sources: Optional[list] = None, **options) -> list[dict]:
        """Web search; returns the list of hits (url, title, description).

        API failures are logged and produce an empty list.
        """
        payload = {"query": query, "limit": limit, "sources": sources or [{"type": "web"}]}
        payload.update(options)
        logger.info('Searching: "%s"', query)
        try:
            result = self._post("/search", payload)
        except ApiError as e:
            logger.error("Search failed: %s", e)
            return []

        hits = (result.get("data") or {}).get("web") or []
        logger.info("Found %d candidates", len(hits))
        return hits

    def site_search(self, domain: str, query: str, limit: int = 8) -> list[dict]:
        return self.search(f"site:{domain} {query}", limit=limit)

    def youtube_search(self, query: str, limit: int = 8) -> list[dict]:
        return self.site_search("youtube.com", query, limit)

    def flobikes_search(self, query: str, limit: int = 8) -> list[dict]:
        return self.site_search("flobikes.com", query, limit)

    # ── Scrape ──

    def scrape(self, url: str, formats: Optional[list] = None, only_main_content: bool = True,
               max_age: int = 0) -> Optional[dict]:
        """Scrape one page; returns the ``data`` object or None on failure."""
        payload = {
            "url": url,
            "formats": formats or ["markdown"],
            "onlyMainContent": only_main_content,
            "maxAge": max_age,
        }
        logger.info("Scraping: %s", url)
        try:
            result = self._post("/scrape", payload)
        except ApiError as e:
            logger.error("Scrape failed for %s: %s", url, e)
            return None
        return result.get("data") or None

    def scrape_markdown(self, url: str) -> Optional[str]:
        data = self.scrape(url)
        return data.get("markdown") if data else None

    def batch_scrape(self, urls: list[str], delay: Optional[float] = None, **scrape_options) -> list[dict]:
        delay = self.request_delay if delay is None else delay
        results = []
        for i, url in enumerate(urls):
            content = self.scrape(url, **scrape_options)
            if content:
                results.append({"url": url, "content": content, "index": i})
            if i < len(urls) - 1:
                self.sleep(delay)
        logger.info("Batch complete: %d/%d successful", len(results), len(urls))
        return results

    def search_and_scrape(self, query: str, search_limit: int = 5, delay: Optional[float] = None) -> list[dict]:
        """Two-stage discovery: search for candidates, then scrape each one."""
        candidates = self.search(query, limit=search_limit)
        if not candidates:
            return []
        by_url = {c.get("url"): c for c in candidates}
        scraped = self.batch_scrape([c["url"] for c in candidates if c.get("url")], delay=delay)
        for item in scraped:
            item["searchMetadata"] = by_url.get(item["url"])
        return scraped

    # ── Broadcaster discovery ──

    def search_broadcaster_site(self, domain: str, race_name: str, year: int, limit: int = 8) -> list[dict]:
        return self.site_search(domain, f"{race_name} {year}", limit=limit)

    def search_multiple_broadcasters(self, domains: list[str], race_name: str, year: int,
                                     limit_per_domain: int = 5) -> dict:
        return {
            domain: self.search_broadcaster_site(domain, race_name, year, limit=limit_per_domain)
            for domain in domains
        }

    def discover_broadcast_urls(self, broadcasters: dict, race_name: str, year: int,
                                geos=DEFAULT_GEOS) -> dict:
        """Search each licensed broadcaster's site, per geo, for race pages.

        ``broadcasters`` is the broadcasters.json document; its
        ``licensedBroadcasters[geo].primary/secondary`` entries carry a
        ``searchDomain``. YouTube secondaries are skipped since YouTube has
        its own tiered discovery.
        """
        results = {
            "metadata": {
                "raceName": race_name,
                "year": year,
                "geos": list(geos),
                "searchedAt": utc_now_iso(),
                "totalUrls": 0,
            },
            "byGeo": {},
        }
        licensed = broadcasters.get("licensedBroadcasters") or {}

        for geo in geos:
            geo_result = {"primary": [], "secondary": []}
            results["byGeo"][geo] = geo_result
            geo_data = licensed.get(geo)
            if not geo_data:
                logger.warning("No broadcaster data for %s", geo)
                continue

            for tier, limit in (("primary", 3), ("secondary", 2)):
                for broadcaster in geo_data.get(tier) or []:
                    domain = broadcaster.get("searchDomain")
                    if not domain or (tier == "secondary" and domain == "youtube.com"):
                        continue
                    hits = self.search_broadcaster_site(domain, race_name, year, limit=limit)
                    if not hits:
                        continue
                    geo_result[tier].append({
                        "broadcaster": broadcaster.get("name"),
                        "broadcasterId": broadcaster.get("id"),
                        "type": broadcaster.get("type"),
                        "subscription": broadcaster.get("subscription", False),
                        "urls": [
                            {
                                "url": h.get("url"),
                                "title": h.get("title"),
                                "description": (h.get("description") or "")[:200],
                            }
                            for h in hits
                        ],
                    })
                    results["metadata"]["totalUrls"] += len(hits)

            logger.info("%s: %d primary, %d secondary", geo,
                        len(geo_result["primary"]), len(geo_result["secondary"]))

        return results

    def discover_race_footage(self, race_name: str, year: int, limit: int = 5) -> list[dict]:
        """YouTube and FloBikes search filtered down to actual race footage."""
        entries = []
        for platform, search in (("YouTube", self.youtube_search), ("FloBikes", self.flobikes_search)):
            for hit in search(f"{race_name} {year}", limit=limit):
                if not hit.get("url") or not is_race_footage(hit.get("title"), hit.get("description")):
                    continue
                entries.append(create_race_entry(
                    {"url": hit["url"], "searchMetadata": hit},
                    name=hit.get("title"),
                    description=hit.get("description") or f"Race content from {platform}",
                    type=content_type_from_title(hit.get("title") or ""),
                    platform=platform,
                ))
        return entries
