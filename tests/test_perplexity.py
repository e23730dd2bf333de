"""Tests for the Perplexity research client."""

import pytest

from spoilerfree.errors import ApiError, RateLimitedError
from spoilerfree.perplexity import PerplexityClient, build_search_payload, extract_race_details

ANSWER = {
    "answer": "Paris-Roubaix covers 259.2 km with 30 cobbled sectors and 1,200 m of climbing.",
    "results": [{"title": "Paris-Roubaix 2026 route", "url": "https://www.cyclingnews.com/pr"}],
    "citations": [{"title": "CyclingNews", "url": "https://www.cyclingnews.com/pr"}, {"url": "https://pcs.test"}],
}


class TestPayload:
    def test_snake_case_mapping(self):
        payload = build_search_payload(
            "Paris-Roubaix", max_results=5, allow_domains=["cyclingnews.com"],
            block_domains=["reddit.com"], recency="month", languages=["en"],
        )
        assert payload == {
            "query": "Paris-Roubaix",
            "max_results": 5,
            "search_domain_filter": ["cyclingnews.com", "-reddit.com"],
            "search_recency_filter": "month",
            "search_language_filter": ["en"],
        }

    def test_too_many_queries(self):
        with pytest.raises(ValueError):
            build_search_payload(["q"] * 6)


class TestExtractRaceDetails:
    def test_distance_elevation_sources(self):
        details = extract_race_details(ANSWER)
        assert details["distance"] == "259.2km"
        assert details["elevation"] == "1200m"
        assert details["sources"] == [
            {"title": "CyclingNews", "url": "https://www.cyclingnews.com/pr"},
            {"title": "Unknown", "url": "https://pcs.test"},
        ]

    def test_empty_answer(self):
        details = extract_race_details({"answer": None})
        assert details == {"summary": "", "sources": [], "distance": None, "elevation": None}


class TestClient:
    def test_search_shape(self, settings, make_http):
        http = make_http([ANSWER])
        result = PerplexityClient(settings, http=http).search("Paris-Roubaix 2026")
        assert result["answer"].startswith("Paris-Roubaix")
        assert result["citations"] == ANSWER["citations"]
        assert http.calls[0]["url"] == "https://api.perplexity.ai/search"
        assert http.calls[0]["headers"] == {"Authorization": "Bearer pplx-test"}

    def test_no_results(self, settings, make_http):
        http = make_http([{"results": []}])
        result = PerplexityClient(settings, http=http).search("x")
        assert result == {"answer": None, "results": [], "citations": []}

    def test_api_error_returns_error_shape(self, settings, make_http):
        http = make_http([ApiError("Perplexity", 401, "bad key")])
        result = PerplexityClient(settings, http=http).search("x")
        assert result["results"] == []
        assert "401" in result["error"]

    def test_rate_limit_retry(self, settings, make_http, no_sleep):
        http = make_http([RateLimitedError("Perplexity", 429, ""), ANSWER])
        result = PerplexityClient(settings, http=http, sleep=no_sleep).search("x")
        assert result["results"]
        assert len(no_sleep.delays) == 1

    def test_comprehensive_sends_five_queries(self, settings, make_http):
        http = make_http([ANSWER])
        PerplexityClient(settings, http=http).search_race_comprehensive("Paris-Roubaix", 2026)
        queries = http.calls[0]["payload"]["query"]
        assert len(queries) == 5
        assert queries[0] == "Paris-Roubaix 2026 route profile"
        assert http.calls[0]["payload"]["max_results"] == 5

    def test_tdf_stage_uses_tdf_domains(self, settings, make_http):
        http = make_http([ANSWER])
        PerplexityClient(settings, http=http).search_grand_tour_stage("tdf", 5)
        payload = http.calls[0]["payload"]
        assert payload["query"] == "Tour de France 2026 stage 5 route profile climb details"
        assert "letour.fr" in payload["search_domain_filter"]

    def test_classic_race_domains(self, settings, make_http):
        http = make_http([ANSWER])
        PerplexityClient(settings, http=http).search_classic_race("Strade Bianche", 2026)
        assert http.calls[0]["payload"]["search_domain_filter"][0] == "cyclingnews.com"

    def test_race_info_defaults(self, settings, make_http):
        http = make_http([ANSWER])
        PerplexityClient(settings, http=http).search_race_info("Paris-Roubaix 2026 favorites")
        payload = http.calls[0]["payload"]
        assert payload["query"] == "cycling Paris-Roubaix 2026 favorites"
        assert payload["max_results"] == 10
        assert payload["search_recency_filter"] == "month"
