"""Tests for environment-driven settings."""

import dataclasses

import pytest

from spoilerfree.config import Settings
from spoilerfree.errors import ConfigError


class TestSettings:
    def test_from_env_reads_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PERPLEXITY_API_KEY", "pplx-abc")
        monkeypatch.setenv("SPOILERFREE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("LINK_CHECK_CONCURRENCY", "5")

        settings = Settings.from_env()

        assert settings.perplexity_api_key == "pplx-abc"
        assert settings.data_dir == tmp_path
        assert settings.link_check_concurrency == 5

    def test_bad_number_rejected(self, monkeypatch):
        monkeypatch.setenv("REQUEST_TIMEOUT", "soon")
        with pytest.raises(ConfigError, match="REQUEST_TIMEOUT"):
            Settings.from_env()

    def test_require_missing_key(self):
        with pytest.raises(ConfigError, match="FIRECRAWL_API_KEY"):
            Settings().require("firecrawl_api_key")

    def test_only_known_fields(self):
        names = {f.name for f in dataclasses.fields(Settings)}
        assert "extra" not in names
        assert "season_year" in names
