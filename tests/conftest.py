"""Pytest fixtures and configuration."""

import pytest
import sys
from pathlib import Path

# Add scripts directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))

from spoilerfree.config import Settings
from spoilerfree.http_client import HttpClient
from spoilerfree.store import MemoryStore, RACE_DATA


class FakeHttp(HttpClient):
    """Records calls and replays canned responses in order."""

    def __init__(self, responses=None, content=b""):
        self.responses = list(responses or [])
        self.content = content
        self.calls = []

    def post_json(self, service, url, payload, headers=None):
        self.calls.append({"service": service, "url": url, "payload": payload, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get_bytes(self, service, url):
        self.calls.append({"service": service, "url": url})
        if isinstance(self.content, Exception):
            raise self.content
        return self.content


@pytest.fixture
def make_http():
    return FakeHttp


@pytest.fixture
def settings(tmp_path):
    return Settings(
        firecrawl_api_key="fc-test",
        perplexity_api_key="pplx-test",
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "site",
        request_delay=0,
        rate_limit_sleep=0,
        link_check_delay=0,
    )


@pytest.fixture
def memory_store(race_data):
    return MemoryStore({RACE_DATA: race_data})


@pytest.fixture
def no_sleep():
    """Stand-in for time.sleep that records requested delays."""
    delays = []

    def sleep(seconds):
        delays.append(seconds)

    sleep.delays = delays
    return sleep
