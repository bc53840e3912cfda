"""
Reusable HTTP fetching utilities for feeds and images.
"""
from __future__ import annotations

from typing import Dict, Optional

import requests

DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class HttpFetcher:
    """
    Thin wrapper over requests.Session with per-fetcher default headers.
    Failed fetches are not retried.
    """

    def __init__(
        self,
        user_agent: str,
        timeout: int = 20,
        accept: str = DEFAULT_ACCEPT,
        accept_language: str = "en-US,en;q=0.8",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": user_agent,
                "Accept": accept,
                "Accept-Language": accept_language,
            }
        )
        if headers:
            self.session.headers.update(headers)
        self.timeout = timeout

    def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """Issue a GET and hand back the response whatever its status. Network errors propagate."""
        return self.session.get(url, headers=headers or {}, timeout=self.timeout)
