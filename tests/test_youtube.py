"""Tests for tiered YouTube discovery, the channel registry and yt-dlp helpers."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from spoilerfree.youtube import (
    ChannelRegistry,
    YouTubeDiscovery,
    clean_vtt,
    extract_channel_from_url,
    flatten_discovery,
    get_video_metadata,
    summarize_video,
)


def _make_doc():
    return {
        "officialChannels": {
            "UCI": {"name": "UCI", "youtubeHandle": "@ucicycling", "youtubeChannelId": "UC123"},
        },
        "trustedChannels": {
            "GCNRacing": {"name": "GCN Racing", "youtubeHandle": "@gcnracing"},
        },
        "emergingChannels": [{"name": "Small Channel", "youtubeHandle": "@smallchannel"}],
        "blockedChannels": [{"youtubeHandle": "@spoilertv", "reason": "Results in titles"}],
    }


def _hits(*suffixes):
    return [{"url": f"https://www.youtube.com/watch?v={s:0<11}", "title": f"video {s}"} for s in suffixes]


class FakeSearch:
    """Answers queries from a {substring: hits} table and records them."""

    def __init__(self, table):
        self.table = table
        self.queries = []

    def __call__(self, query, limit=5):
        self.queries.append(query)
        for needle, hits in self.table.items():
            if needle in query:
                return list(hits)
        return []


class TestChannelRegistry:
    def test_trust_levels(self):
        registry = ChannelRegistry(_make_doc())
        assert registry.trust_level("@UCICycling")["level"] == "official"
        assert registry.trust_level("UC123")["channel"] == "UCI"
        assert registry.trust_level("gcnracing")["level"] == "trusted"
        assert registry.trust_level("@smallchannel")["level"] == "emerging"
        assert registry.trust_level("@spoilertv") == {"level": "blocked", "reason": "Results in titles"}
        assert registry.trust_level("@nobody") == {"level": "unknown"}

    def test_add_emerging_once(self):
        registry = ChannelRegistry(_make_doc())
        assert registry.add_emerging("@NewChannel", "New Channel") is True
        assert registry.add_emerging("newchannel", "New Channel") is False
        assert registry.doc["emergingChannels"][-1]["youtubeHandle"] == "@newchannel"

    def test_promote(self):
        registry = ChannelRegistry(_make_doc())
        assert registry.promote_to_trusted("@smallchannel") is True
        assert registry.doc["emergingChannels"] == []
        assert registry.doc["trustedChannels"]["SmallChannel"]["trustLevel"] == "trusted"
        assert registry.promote_to_trusted("@smallchannel") is False

    def test_block_removes_from_emerging(self):
        registry = ChannelRegistry(_make_doc())
        assert registry.block_channel("@smallchannel", "spoilers") is True
        assert registry.is_blocked("smallchannel")
        assert registry.doc["emergingChannels"] == []
        assert registry.block_channel("@smallchannel", "again") is False

    def test_empty_document(self):
        registry = ChannelRegistry({})
        assert registry.official_handles() == []


class TestExtractChannel:
    @pytest.mark.parametrize("url,expected", [
        ("https://www.youtube.com/@gcnracing/videos", {"type": "handle", "value": "gcnracing"}),
        ("https://www.youtube.com/channel/UC123", {"type": "id", "value": "UC123"}),
        ("https://www.youtube.com/c/GlobalCyclingNetwork", {"type": "custom", "value": "GlobalCyclingNetwork"}),
        ("https://www.youtube.com/watch?v=abcdefghijk", None),
    ])
    def test_patterns(self, url, expected):
        assert extract_channel_from_url(url) == expected


class TestTieredDiscovery:
    def test_official_enough_skips_lower_tiers(self):
        search = FakeSearch({"UCI Paris-Roubaix 2026": _hits("a", "b", "c")})
        discovery = YouTubeDiscovery(search, ChannelRegistry(_make_doc()))
        results = discovery.discover("Paris-Roubaix", 2026, min_total=3)
        assert len(results["official"]) == 3
        assert results["trusted"] == []
        assert results["broad"] == []
        assert results["metadata"]["apiCallsUsed"] == 1
        assert results["official"][0]["sourceChannel"] == "ucicycling"

    def test_falls_through_to_trusted_and_broad(self):
        search = FakeSearch({
            "UCI Paris-Roubaix": _hits("a"),
            "GCN Racing Paris-Roubaix": _hits("a", "b"),
            "Paris-Roubaix 2026 extended highlights": _hits("c", "d", "e"),
        })
        discovery = YouTubeDiscovery(search, ChannelRegistry(_make_doc()))
        results = discovery.discover("Paris-Roubaix", 2026)
        assert [h["sourceTier"] for h in flatten_discovery(results)] == [
            "official", "trusted", "broad", "broad", "broad",
        ]
        # Duplicate URL from the trusted tier is dropped
        assert len(results["trusted"]) == 1

    def test_blocked_channel_hits_dropped(self):
        search = FakeSearch({"UCI": [{"url": "https://www.youtube.com/@spoilertv/videos", "title": "x"}]})
        discovery = YouTubeDiscovery(search, ChannelRegistry(_make_doc()))
        results = discovery.discover("Paris-Roubaix", 2026, year_fallback=False)
        assert results["official"] == []

    def test_year_fallback(self):
        search = FakeSearch({"2025": _hits("old")})
        discovery = YouTubeDiscovery(search, ChannelRegistry(_make_doc()))
        results = discovery.discover("Paris-Roubaix", 2026)
        assert results["metadata"]["usedYearFallback"] is True
        items = flatten_discovery(results)
        assert items
        assert all(item["yearFallback"] for item in items)

    def test_find_content_type_prefers_official(self):
        search = FakeSearch({"UCI Paris-Roubaix 2026 extended highlights": _hits("x")})
        discovery = YouTubeDiscovery(search, ChannelRegistry(_make_doc()))
        hits = discovery.find_content_type("Paris-Roubaix", 2026, "extended-highlights")
        assert hits[0]["contentType"] == "extended-highlights"
        assert hits[0]["sourceChannel"] == "ucicycling"


class TestYtDlp:
    def test_clean_vtt(self):
        vtt = (
            "WEBVTT\nKind: captions\nLanguage: en\n\n1\n00:00:01.000 --> 00:00:03.000\n"
            "<c>Welcome to</c> Roubaix\n\n2\n00:00:03.000 --> 00:00:05.000\nWelcome to Roubaix\nthe Arenberg\n"
        )
        assert clean_vtt(vtt) == "Welcome to Roubaix\nthe Arenberg"

    def test_clean_vtt_empty(self):
        assert clean_vtt("WEBVTT\n\n") is None

    def test_metadata_parsed(self):
        completed = MagicMock(returncode=0, stdout=json.dumps({"title": "Roubaix", "duration_string": "6:01:00"}) + "\n")
        with patch("spoilerfree.youtube.subprocess.run", return_value=completed) as run:
            meta = get_video_metadata("https://www.youtube.com/watch?v=abcdefghijk")
        assert meta["title"] == "Roubaix"
        assert run.call_args[0][0][:2] == ["yt-dlp", "https://www.youtube.com/watch?v=abcdefghijk"]

    def test_metadata_failure(self):
        completed = MagicMock(returncode=1, stdout="")
        with patch("spoilerfree.youtube.subprocess.run", return_value=completed):
            assert get_video_metadata("https://www.youtube.com/watch?v=abcdefghijk") is None

    def test_metadata_timeout(self):
        with patch("spoilerfree.youtube.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(cmd="yt-dlp", timeout=60)):
            assert get_video_metadata("https://www.youtube.com/watch?v=abcdefghijk") is None

    def test_summarize_video(self):
        summary = summarize_video({"title": "T", "channel": "GCN Racing", "upload_date": "20260412",
                                   "duration_string": "5:00", "view_count": 10, "webpage_url": "https://y.test"})
        assert summary["uploadDate"] == "20260412"
        assert summary["url"] == "https://y.test"
        assert summary["description"] == ""
