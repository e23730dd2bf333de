"""Thin HTTP layer over requests so API clients can be tested with fakes."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from spoilerfree.errors import ApiError, RateLimitedError

logger = logging.getLogger(__name__)


def raise_for_status(service: str, status_code: int, body: str) -> None:
    """Turn a non-2xx response into ApiError (RateLimitedError for 429)."""
    if 200 <= status_code < 300:
        return
    if status_code == 429:
        raise RateLimitedError(service, status_code, body)
    raise ApiError(service, status_code, body)


class HttpClient:
    """Interface: POST JSON and get parsed JSON back, or GET raw bytes."""

    def post_json(self, service: str, url: str, payload: dict,
                  headers: Optional[dict] = None) -> dict:
        raise NotImplementedError

    def get_bytes(self, service: str, url: str) -> bytes:
        raise NotImplementedError


class RequestsHttpClient(HttpClient):
    def __init__(self, timeout: float = 60.0, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def post_json(self, service: str, url: str, payload: dict,
                  headers: Optional[dict] = None) -> dict:
        all_headers = {"Content-Type": "application/json"}
        all_headers.update(headers or {})
        logger.debug("POST %s", url)
        try:
            response = self.session.post(url, json=payload, headers=all_headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(service, None, str(e)) from e

        raise_for_status(service, response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(service, response.status_code, f"invalid JSON: {response.text[:200]}") from e

    def get_bytes(self, service: str, url: str) -> bytes:
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(service, None, str(e)) from e
        if not response.ok:
            raise_for_status(service, response.status_code, response.text)
        return response.content


def bearer(api_key: str) -> dict:
    return {"Authorization": f"Bearer {api_key}"}
