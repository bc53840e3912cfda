"""
JSON API helper used by the document-store adapter.

Failures raise ``SourceError`` so the caller's boundary decides how to
degrade. Requests are never retried.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from garden.errors import SourceError
from garden.security import redact_secrets

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        source: str,
        base_url: str,
        timeout: int = 15,
        user_agent: str | None = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.source = source
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": user_agent or "DigitalGarden-Aggregator/1.0",
                "Accept": "application/json",
            }
        )
        if headers:
            self.session.headers.update(headers)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", path, params=params)

    def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("POST", path, json=payload or {})

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            message = redact_secrets(str(exc))
            logger.error("HTTP %s exception for %s: %s", method, self.source, message)
            raise SourceError(self.source, message) from exc

        if resp.status_code != 200:
            body = redact_secrets(resp.text[:200])
            logger.warning("HTTP %s failed for %s: %s %s", method, self.source, resp.status_code, body)
            raise SourceError(self.source, f"HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise SourceError(self.source, "response was not valid JSON") from exc
