"""Pipeline configuration, loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from spoilerfree.errors import ConfigError

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# Root of the repo
REPO_ROOT = Path(__file__).resolve().parent.parent

# Data files
DATA_DIR = REPO_ROOT / "data"

# Generated site
OUTPUT_DIR = REPO_ROOT / "site"

FIRECRAWL_BASE_URL = "https://api.firecrawl.dev/v2"
PERPLEXITY_BASE_URL = "https://api.perplexity.ai"

SEASON_YEAR = 2026


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    """Explicit configuration handed to clients, stores and scripts."""

    firecrawl_api_key: str = ""
    perplexity_api_key: str = ""
    firecrawl_base_url: str = FIRECRAWL_BASE_URL
    perplexity_base_url: str = PERPLEXITY_BASE_URL
    data_dir: Path = DATA_DIR
    output_dir: Path = OUTPUT_DIR
    request_timeout: float = 60.0
    request_delay: float = 1.0
    rate_limit_sleep: float = 60.0
    link_check_concurrency: int = 3
    link_check_delay: float = 2.0
    season_year: int = SEASON_YEAR

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            firecrawl_api_key=os.environ.get("FIRECRAWL_API_KEY", ""),
            perplexity_api_key=os.environ.get("PERPLEXITY_API_KEY", ""),
            firecrawl_base_url=os.environ.get("FIRECRAWL_BASE_URL", FIRECRAWL_BASE_URL),
            perplexity_base_url=os.environ.get("PERPLEXITY_BASE_URL", PERPLEXITY_BASE_URL),
            data_dir=Path(os.environ.get("SPOILERFREE_DATA_DIR", str(DATA_DIR))),
            output_dir=Path(os.environ.get("SPOILERFREE_OUTPUT_DIR", str(OUTPUT_DIR))),
            request_timeout=_env_float("REQUEST_TIMEOUT", 60.0),
            request_delay=_env_float("REQUEST_DELAY", 1.0),
            rate_limit_sleep=_env_float("RATE_LIMIT_SLEEP", 60.0),
            link_check_concurrency=_env_int("LINK_CHECK_CONCURRENCY", 3),
            link_check_delay=_env_float("LINK_CHECK_DELAY", 2.0),
            season_year=_env_int("SEASON_YEAR", SEASON_YEAR),
        )

    def require(self, name: str) -> str:
        """Return a non-empty setting or fail fast with the env var name."""
        value = getattr(self, name, "")
        if not value:
            raise ConfigError(f"{name.upper()} not set")
        return value
