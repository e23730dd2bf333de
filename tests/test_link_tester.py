"""Tests for live link checks, driven by a fake browser page."""

from contextlib import contextmanager

import pytest

from spoilerfree.link_tester import (
    LinkTester,
    find_login_wall,
    find_region_lock,
    find_spoiler_keywords,
    title_names_winner,
)


class FakeResponse:
    def __init__(self, status):
        self.status = status
        self.ok = 200 <= status < 400


class FakeElement:
    def __init__(self, text):
        self.text = text

    def inner_text(self):
        return self.text


class FakePage:
    def __init__(self, status=200, body="", title=None, content="", duration=None, error=None):
        self.status = status
        self.body = body
        self.title = title
        self._content = content
        self.duration = duration
        self.error = error
        self.visited = []

    def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.error:
            raise self.error
        return FakeResponse(self.status) if self.status else None

    def evaluate(self, script):
        return self.body

    def query_selector(self, selector):
        if selector == ".ytp-time-duration":
            return FakeElement(self.duration) if self.duration else None
        return FakeElement(self.title) if self.title else None

    def content(self):
        return self._content


def _make_tester(page):
    @contextmanager
    def factory():
        yield page

    return LinkTester(page_factory=factory)


class TestTextAnalysis:
    def test_spoiler_keywords(self):
        assert find_spoiler_keywords("Pogacar WINS again") == ["wins"]
        assert find_spoiler_keywords("Full race replay") == []

    def test_region_lock(self):
        assert find_region_lock("Sorry, this is Not available in your country.") == "not available in your country"

    def test_login_wall(self):
        assert find_login_wall("Start your free trial today") == "start your free trial"

    def test_winner_in_title(self):
        assert title_names_winner("Van der Poel triumphs in Roubaix") is True
        assert title_names_winner("Paris-Roubaix 2026 | Extended Highlights") is False


class TestBroadcastLink:
    def test_accessible_page(self):
        page = FakePage(status=200, body="Watch the race live")
        result = _make_tester(page).test_broadcast_link("https://www.flobikes.com/events/1")
        assert result["accessible"] is True
        assert result["statusCode"] == 200
        assert result["spoilerSafe"] is True
        assert result["errors"] == []
        assert isinstance(result["loadTime"], int)

    def test_region_locked_status(self):
        result = _make_tester(FakePage(status=403)).test_broadcast_link("https://www.flobikes.com/events/1")
        assert result["accessible"] is False
        assert result["regionLocked"] is True

    def test_region_lock_text(self):
        page = FakePage(status=200, body="This content is not available in your region")
        result = _make_tester(page).test_broadcast_link("https://www.peacocktv.com/watch/x")
        assert result["accessible"] is True
        assert result["regionLocked"] is True

    def test_spoiler_and_login_warnings(self):
        page = FakePage(status=200, body="Sign in to see who claims victory")
        result = _make_tester(page).test_broadcast_link("https://www.peacocktv.com/watch/x")
        assert result["spoilerSafe"] is False
        assert any("Login/subscription required" in w for w in result["warnings"])

    def test_spoilers_ignored_when_disabled(self):
        page = FakePage(status=200, body="The winner is...")
        result = _make_tester(page).test_broadcast_link("https://x.test/a", check_spoilers=False)
        assert result["spoilerSafe"] is True

    def test_http_error(self):
        result = _make_tester(FakePage(status=404)).test_broadcast_link("https://x.test/a")
        assert result["errors"] == ["HTTP 404"]

    def test_browser_error_recorded(self):
        page = FakePage(error=TimeoutError("Timeout 30000ms exceeded"))
        result = _make_tester(page).test_broadcast_link("https://x.test/a")
        assert result["accessible"] is False
        assert result["errors"] == ["Timeout 30000ms exceeded"]

    def test_invalid_url_skips_browser(self):
        page = FakePage()
        result = _make_tester(page).test_broadcast_link("TBD")
        assert result["errors"] == ["Invalid URL format"]
        assert page.visited == []


class TestYoutubeLink:
    def test_available_and_safe(self):
        page = FakePage(title="Paris-Roubaix 2026 | Full Race", content="<html></html>", duration="5:59:01")
        result = _make_tester(page).test_youtube_link("https://youtu.be/abcdefghijk")
        assert result["available"] is True
        assert result["videoId"] == "abcdefghijk"
        assert result["duration"] == "5:59:01"
        assert result["spoilerSafe"] is True
        assert page.visited == ["https://www.youtube.com/watch?v=abcdefghijk"]

    def test_spoiler_title(self):
        page = FakePage(title="Pogacar wins Strade Bianche", content="")
        result = _make_tester(page).test_youtube_link("https://www.youtube.com/watch?v=abcdefghijk")
        assert result["available"] is True
        assert result["spoilerSafe"] is False
        assert "Winner name likely in title" in result["warnings"]

    def test_unavailable_video(self):
        page = FakePage(content="<div>Video unavailable</div>")
        result = _make_tester(page).test_youtube_link("https://www.youtube.com/watch?v=abcdefghijk")
        assert result["available"] is False
        assert result["errors"] == ["Video unavailable"]

    def test_no_video_id(self):
        result = _make_tester(FakePage()).test_youtube_link("https://www.youtube.com/@gcnracing")
        assert result["errors"] == ["Could not extract video ID from URL"]


class TestQuickAccessCheck:
    def test_ok(self):
        assert _make_tester(FakePage(status=200)).quick_access_check("https://x.test/a") == {
            "accessible": True, "statusCode": 200, "error": None,
        }

    def test_error(self):
        result = _make_tester(FakePage(error=RuntimeError("net::ERR_NAME_NOT_RESOLVED"))).quick_access_check(
            "https://x.test/a")
        assert result["accessible"] is False
        assert "ERR_NAME_NOT_RESOLVED" in result["error"]

    def test_invalid(self):
        assert _make_tester(FakePage()).quick_access_check("null")["error"] == "Invalid URL"


class TestMultipleLinks:
    def test_results_keep_input_order(self, monkeypatch):
        monkeypatch.setattr("spoilerfree.link_tester.time.sleep", lambda s: None)
        tester = LinkTester()
        monkeypatch.setattr(tester, "test_link", lambda url: {"url": url, "errors": [], "warnings": []})
        urls = [f"https://x.test/{i}" for i in range(5)]
        results = tester.test_multiple_links(urls, concurrency=2, delay=0)
        assert [r["url"] for r in results] == urls

    def test_crash_becomes_error_result(self, monkeypatch):
        tester = LinkTester()

        def boom(url):
            if url.endswith("1"):
                raise RuntimeError("browser died")
            return {"url": url, "errors": [], "warnings": []}

        monkeypatch.setattr(tester, "test_link", boom)
        results = tester.test_multiple_links(["https://x.test/0", "https://x.test/1"], concurrency=2, delay=0)
        assert results[1] == {"url": "https://x.test/1", "errors": ["browser died"], "warnings": []}
