"""Exception types shared by the curation pipeline."""

from __future__ import annotations

from typing import Optional


class CurationError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class ConfigError(CurationError):
    """A required setting (usually an API key) is missing or malformed."""


class ValidationError(CurationError):
    """A record is missing a required field or has a malformed value."""


class DuplicateRaceError(CurationError):
    def __init__(self, race_id: str):
        super().__init__(f'Race with id "{race_id}" already exists')
        self.race_id = race_id


class RaceNotFoundError(CurationError):
    def __init__(self, race_id: str):
        super().__init__(f'Race with id "{race_id}" not found')
        self.race_id = race_id


class ImmutableFieldError(CurationError):
    def __init__(self, field_name: str, current, attempted):
        super().__init__(
            f"Cannot change {field_name} (current: {current!r}, update: {attempted!r})"
        )
        self.field_name = field_name


class ApiError(CurationError):
    """Upstream API answered with a non-success status."""

    def __init__(self, service: str, status_code: Optional[int], body: str = ""):
        super().__init__(f"{service} API error: {status_code} - {body[:500]}")
        self.service = service
        self.status_code = status_code
        self.body = body


class RateLimitedError(ApiError):
    """HTTP 429 from an upstream API. Callers sleep and retry once."""


class ParseError(CurationError):
    """A scraped page no longer matches the pattern a parser expects."""

    def __init__(self, parser: str, detail: str):
        super().__init__(f"{parser}: {detail}")
        self.parser = parser
        self.detail = detail
