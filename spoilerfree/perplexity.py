"""Perplexity Search API client for race research (routes, climbs, favorites)."""

from __future__ import annotations

import logging
import re
import time
from typing import Optional, Union

from spoilerfree.config import Settings
from spoilerfree.errors import ApiError, RateLimitedError
from spoilerfree.http_client import HttpClient, RequestsHttpClient, bearer

logger = logging.getLogger(__name__)

SERVICE = "Perplexity"

GRAND_TOURS = {
    "tdf": "Tour de France",
    "giro": "Giro d'Italia",
    "vuelta": "Vuelta a España",
}

RACE_NEWS_DOMAINS = ["cyclingnews.com", "procyclingstats.com", "velonews.com", "firstcycling.com"]
TDF_DOMAINS = ["letour.fr", "cyclingnews.com", "procyclingstats.com", "velonews.com"]

MAX_QUERIES = 5

DISTANCE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:km|kilometers?)\b", re.IGNORECASE)
ELEVATION_RE = re.compile(r"(\d+[,.]?\d*)\s*m\s*(?:of\s+)?(?:elevation|climbing|ascent)", re.IGNORECASE)


def empty_result(error: Optional[str] = None) -> dict:
    result = {"answer": None, "results": [], "citations": []}
    if error:
        result["error"] = error
    return result


def build_search_payload(query: Union[str, list], max_results: Optional[int] = None,
                         max_tokens: Optional[int] = None, max_tokens_per_page: Optional[int] = None,
                         allow_domains: Optional[list] = None, block_domains: Optional[list] = None,
                         country: Optional[str] = None, languages: Optional[list] = None,
                         recency: Optional[str] = None, start_date: Optional[str] = None,
                         end_date: Optional[str] = None) -> dict:
    """Map keyword options onto the API's snake_case request body."""
    if isinstance(query, list) and len(query) > MAX_QUERIES:
        raise ValueError(f"At most {MAX_QUERIES} queries per request, got {len(query)}")

    payload = {"query": query}
    if max_results:
        payload["max_results"] = max_results
    if max_tokens:
        payload["max_tokens"] = max_tokens
    if max_tokens_per_page:
        payload["max_tokens_per_page"] = max_tokens_per_page

    domains = list(allow_domains or []) + [f"-{d}" for d in block_domains or []]
    if domains:
        payload["search_domain_filter"] = domains

    if country:
        payload["country"] = country
    if languages:
        payload["search_language_filter"] = languages
    if recency:
        payload["search_recency_filter"] = recency
    if start_date:
        payload["search_start_published_date"] = start_date
    if end_date:
        payload["search_end_published_date"] = end_date
    return payload


def extract_race_details(result: dict) -> dict:
    """Pull the summary, sources, distance and elevation out of a search result."""
    answer = result.get("answer") or ""
    details = {
        "summary": answer,
        "sources": [
            {"title": c.get("title") or "Unknown", "url": c.get("url")}
            for c in result.get("citations") or []
            if isinstance(c, dict)
        ],
        "distance": None,
        "elevation": None,
    }

    match = DISTANCE_RE.search(answer)
    if match:
        details["distance"] = f"{match.group(1)}km"
    match = ELEVATION_RE.search(answer)
    if match:
        details["elevation"] = f"{match.group(1).replace(',', '')}m"
    return details


class PerplexityClient:
    def __init__(self, settings: Settings, http: Optional[HttpClient] = None, sleep=time.sleep):
        self.api_key = settings.require("perplexity_api_key")
        self.base_url = settings.perplexity_base_url.rstrip("/")
        self.rate_limit_sleep = settings.rate_limit_sleep
        self.year = settings.season_year
        self.http = http or RequestsHttpClient(timeout=settings.request_timeout)
        self.sleep = sleep

    def search(self, query: Union[str, list], **options) -> dict:
        """Run one search (or up to five queries at once).

        Returns {answer, results, citations}; on API failure the same shape
        with empty values plus an ``error`` message.
        """
        payload = build_search_payload(query, **options)
        display = ", ".join(query) if isinstance(query, list) else query
        logger.info('Perplexity search: "%s"', display)
        url = f"{self.base_url}/search"

        try:
            try:
                result = self.http.post_json(SERVICE, url, payload, bearer(self.api_key))
            except RateLimitedError:
                logger.warning("Perplexity rate limited, sleeping %ss", self.rate_limit_sleep)
                self.sleep(self.rate_limit_sleep)
                result = self.http.post_json(SERVICE, url, payload, bearer(self.api_key))
        except ApiError as e:
            logger.error("Search failed: %s", e)
            return empty_result(str(e))

        if not result.get("results") and not result.get("answer"):
            logger.info("No results found")
            return empty_result()

        return {
            "answer": result.get("answer"),
            "results": result.get("results") or [],
            "citations": result.get("citations") or [],
            "raw": result,
        }

    # ── Presets ──

    def search_race_info(self, query: str, max_results: int = 10, recency: str = "month", **options) -> dict:
        return self.search(f"cycling {query}", max_results=max_results, recency=recency, **options)

    def search_grand_tour_stage(self, tour: str, stage_number: int, year: Optional[int] = None,
                                max_results: int = 8, **options) -> dict:
        tour_name = GRAND_TOURS.get(tour.lower(), tour)
        year = year or self.year
        allow = options.pop("allow_domains", TDF_DOMAINS if tour_name == "Tour de France" else None)
        query = f"{tour_name} {year} stage {stage_number} route profile climb details"
        return self.search(query, max_results=max_results, allow_domains=allow, **options)

    def search_classic_race(self, race_name: str, year: Optional[int] = None,
                            max_results: int = 8, **options) -> dict:
        year = year or self.year
        query = f"{race_name} {year} cycling race route course details"
        options.setdefault("allow_domains", RACE_NEWS_DOMAINS)
        return self.search(query, max_results=max_results, **options)

    def search_race_comprehensive(self, race_name: str, year: Optional[int] = None,
                                  max_results: int = 5, **options) -> dict:
        """Route, favorites, climbs, distance and broadcast queries in one request."""
        year = year or self.year
        queries = [
            f"{race_name} {year} route profile",
            f"{race_name} {year} start list favorites",
            f"{race_name} {year} key climbs difficulty",
            f"{race_name} {year} race distance elevation",
            f"{race_name} {year} broadcast schedule coverage",
        ]
        return self.search(queries, max_results=max_results, **options)
