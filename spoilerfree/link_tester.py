"""Live checks of broadcast links with a headless browser.

Playwright is only needed when links are actually checked, so it is
imported lazily. Every check opens its own browser, which keeps the sync
API usable from worker threads.
"""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, Optional

from spoilerfree.url_validator import extract_youtube_video_id, is_valid_url

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

SPOILER_KEYWORDS = [
    "wins", "winner", "victory", "champion", "podium", "finish first",
    "takes the stage", "claims victory", "crosses the line first",
    "final classification", "general classification results",
    "ganador", "vainqueur", "vincitore", "winnaar",
]

REGION_LOCK_INDICATORS = [
    "not available in your region",
    "not available in your country",
    "geo-restricted",
    "content is not available",
    "unavailable in your location",
    "this video is not available",
    "blocked in your country",
]

LOGIN_INDICATORS = ["sign in", "log in", "subscribe", "start your free trial"]

UNAVAILABLE_INDICATORS = [
    "Video unavailable",
    "This video is private",
    "This video has been removed",
    "This video is no longer available",
]

WINNER_TITLE_PATTERNS = [
    re.compile(r"(\w+)\s+wins", re.IGNORECASE),
    re.compile(r"(\w+)\s+takes\s+(the\s+)?victory", re.IGNORECASE),
    re.compile(r"(\w+)\s+triumphs", re.IGNORECASE),
]

YOUTUBE_TITLE_SELECTOR = (
    "h1.ytd-video-primary-info-renderer yt-formatted-string, "
    "h1.ytd-watch-metadata yt-formatted-string"
)


# ── Text analysis ──


def find_spoiler_keywords(text: str) -> list[str]:
    lowered = (text or "").lower()
    return [k for k in SPOILER_KEYWORDS if k in lowered]


def find_region_lock(text: str) -> Optional[str]:
    lowered = (text or "").lower()
    for indicator in REGION_LOCK_INDICATORS:
        if indicator in lowered:
            return indicator
    return None


def find_login_wall(text: str) -> Optional[str]:
    lowered = (text or "").lower()
    for indicator in LOGIN_INDICATORS:
        if indicator in lowered:
            return indicator
    return None


def title_names_winner(title: str) -> bool:
    return any(p.search(title or "") for p in WINNER_TITLE_PATTERNS)


def is_youtube(url: str) -> bool:
    return "youtube.com" in url or "youtu.be" in url


# ── Browser ──


@contextmanager
def chromium_page():
    """Yield a fresh Playwright page in a headless Chromium."""
    try:
        from playwright.sync_api import sync_playwright
    except ImportError:
        raise RuntimeError(
            "Playwright not installed. Run: pip install playwright && playwright install chromium"
        )

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=True)
        try:
            context = browser.new_context(user_agent=USER_AGENT)
            yield context.new_page()
        finally:
            browser.close()


class LinkTester:
    """Browser-backed link checks. ``page_factory`` is swappable for tests."""

    def __init__(self, page_factory: Callable = chromium_page, timeout_ms: int = 30000,
                 concurrency: int = 3, delay: float = 1.0):
        self.page_factory = page_factory
        self.timeout_ms = timeout_ms
        self.concurrency = concurrency
        self.delay = delay

    def test_broadcast_link(self, url: str, check_spoilers: bool = True) -> dict:
        result = {
            "url": url,
            "accessible": False,
            "statusCode": None,
            "regionLocked": False,
            "spoilerSafe": True,
            "loadTime": None,
            "errors": [],
            "warnings": [],
        }
        if not is_valid_url(url):
            result["errors"].append("Invalid URL format")
            return result

        started = time.monotonic()
        try:
            with self.page_factory() as page:
                response = page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                result["loadTime"] = int((time.monotonic() - started) * 1000)
                result["statusCode"] = response.status if response else None

                if response and response.ok:
                    result["accessible"] = True
                elif result["statusCode"] in (403, 451):
                    result["regionLocked"] = True
                    result["warnings"].append(f"HTTP {result['statusCode']} - possibly region locked")
                elif result["statusCode"] and result["statusCode"] >= 400:
                    result["errors"].append(f"HTTP {result['statusCode']}")

                text = page.evaluate("() => document.body ? document.body.innerText : ''") or ""
        except Exception as e:
            # Playwright raises its own error hierarchy; record and move on
            logger.debug("Broadcast link check failed for %s: %s", url, e)
            result["errors"].append(str(e))
            return result

        indicator = find_region_lock(text)
        if indicator:
            result["regionLocked"] = True
            result["warnings"].append(f'Region lock indicator found: "{indicator}"')

        if check_spoilers:
            spoilers = find_spoiler_keywords(text)
            if spoilers:
                result["spoilerSafe"] = False
                result["warnings"].append(f'Potential spoiler keyword found: "{spoilers[0]}"')

        login = find_login_wall(text)
        if login:
            result["warnings"].append(f'Login/subscription required: "{login}" found')

        return result

    def test_youtube_link(self, url: str) -> dict:
        result = {
            "url": url,
            "available": False,
            "videoId": None,
            "title": None,
            "spoilerSafe": True,
            "duration": None,
            "errors": [],
            "warnings": [],
        }
        video_id = extract_youtube_video_id(url)
        if not video_id:
            result["errors"].append("Could not extract video ID from URL")
            return result
        result["videoId"] = video_id

        try:
            with self.page_factory() as page:
                page.goto(f"https://www.youtube.com/watch?v={video_id}",
                          wait_until="domcontentloaded", timeout=self.timeout_ms)
                title_el = page.query_selector(YOUTUBE_TITLE_SELECTOR)
                if title_el:
                    result["title"] = title_el.inner_text()
                content = page.content()
                duration_el = page.query_selector(".ytp-time-duration")
                if duration_el:
                    result["duration"] = duration_el.inner_text()
        except Exception as e:
            logger.debug("YouTube check failed for %s: %s", url, e)
            result["errors"].append(str(e))
            return result

        for indicator in UNAVAILABLE_INDICATORS:
            if indicator in content:
                result["errors"].append(indicator)
                return result

        result["available"] = True
        if result["title"]:
            for keyword in find_spoiler_keywords(result["title"]):
                result["spoilerSafe"] = False
                result["warnings"].append(f'Spoiler keyword in title: "{keyword}"')
            if title_names_winner(result["title"]):
                result["spoilerSafe"] = False
                result["warnings"].append("Winner name likely in title")
        return result

    def quick_access_check(self, url: str) -> dict:
        if not is_valid_url(url):
            return {"accessible": False, "statusCode": None, "error": "Invalid URL"}
        try:
            with self.page_factory() as page:
                response = page.goto(url, wait_until="commit", timeout=15000)
                return {
                    "accessible": bool(response and response.ok),
                    "statusCode": response.status if response else None,
                    "error": None,
                }
        except Exception as e:
            return {"accessible": False, "statusCode": None, "error": str(e)}

    def test_link(self, url: str) -> dict:
        if is_youtube(url):
            return self.test_youtube_link(url)
        return self.test_broadcast_link(url)

    def test_multiple_links(self, urls: list[str], concurrency: Optional[int] = None,
                            delay: Optional[float] = None) -> list[dict]:
        """Check URLs in fixed-size parallel batches with a pause between batches.

        Results keep input order. A check that raises is recorded as an
        error result instead of aborting the batch.
        """
        concurrency = concurrency or self.concurrency
        delay = self.delay if delay is None else delay
        results = []
        for start in range(0, len(urls), concurrency):
            batch = urls[start:start + concurrency]
            with ThreadPoolExecutor(max_workers=concurrency) as executor:
                futures = [executor.submit(self.test_link, url) for url in batch]
                for url, future in zip(batch, futures):
                    try:
                        results.append(future.result())
                    except Exception as e:
                        logger.warning("Link check crashed for %s: %s", url, e)
                        results.append({"url": url, "errors": [str(e)], "warnings": []})
            if start + concurrency < len(urls):
                time.sleep(delay)
        return results
