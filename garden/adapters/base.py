"""
Adapter protocol shared by every content source.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from garden.models import ContentSource, FeedItem, FetchPage, HealthStatus


class SourceAdapter(Protocol):
    name: str
    source: ContentSource

    def fetch_page(self, page_size: Optional[int] = None, cursor: Optional[str] = None) -> FetchPage:
        ...

    def fetch_all(self) -> List[FeedItem]:
        ...


def single_page(items: List[FeedItem]) -> FetchPage:
    """Wrap a whole-document feed as one terminal page."""
    return FetchPage(items=tuple(items), has_more=False, next_cursor=None)


def timed_health(name: str, started: float, items: List[FeedItem], error: Optional[str] = None) -> HealthStatus:
    now = datetime.now(timezone.utc)
    healthy = error is None
    return HealthStatus(
        name=name,
        healthy=healthy,
        last_error=error,
        last_success=now if healthy else None,
        items_last_fetch=len(items),
        latency_ms=round((time.time() - started) * 1000, 2),
    )
