"""Shared pytest fixtures for spoilerfree."""

import json
import pytest
from pathlib import Path


BASE_DIR = Path(__file__).parent


@pytest.fixture
def race_data():
    fixture_path = BASE_DIR / "tests" / "fixtures" / "race-data.json"
    with open(fixture_path) as f:
        return json.load(f)
