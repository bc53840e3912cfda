"""
Media-log adapter: a personal Douban RSS feed turned into media items.

All interpretation of the free-text entries lives in ``garden.heuristics``;
this module only fetches, hands entries to the heuristics and shapes items.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from crawler.infra.http import HttpFetcher

from garden.adapters.base import single_page
from garden.adapters.rss import entry_date, entry_id, load_feed
from garden.context import RequestContext
from garden.heuristics import ACTIVITY_BY_MEDIA_TYPE, MediaLogEntry, parse_media_entry
from garden.models import (
    ContentSource,
    CurrentItem,
    FeedItem,
    FetchPage,
    ItemKind,
    MediaLogMetadata,
    MediaStatus,
)

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
RSS_ACCEPT = "application/rss+xml, application/xml, text/xml, */*"
ZH_ACCEPT_LANGUAGE = "zh-CN,zh;q=0.9,en;q=0.8"
CURRENT_LIMIT = 5


def request_headers(feed_url: str) -> Dict[str, str]:
    parts = urlsplit(feed_url)
    return {
        "Referer": f"{parts.scheme}://{parts.hostname}/",
        "Cache-Control": "no-cache",
    }


def media_item(parsed: MediaLogEntry, item_id: str, published_at: datetime) -> FeedItem:
    return FeedItem(
        id=item_id,
        kind=ItemKind.MEDIA,
        title=parsed.title,
        content=parsed.review or "",
        published_at=published_at,
        source=ContentSource.MEDIA_LOG,
        url=parsed.link,
        cover_image=parsed.cover,
        metadata=MediaLogMetadata(
            media_type=parsed.media_type,
            status=parsed.status,
            rating=parsed.rating,
            max_rating=parsed.max_rating,
            review=parsed.review,
        ),
    )


class DoubanAdapter:
    name = "douban"
    source = ContentSource.MEDIA_LOG

    def __init__(self, ctx: RequestContext, fetcher: Optional[HttpFetcher] = None) -> None:
        self.settings = ctx.settings
        self.fetcher = fetcher or HttpFetcher(
            user_agent=BROWSER_USER_AGENT,
            timeout=self.settings.http_timeout,
            accept=RSS_ACCEPT,
            accept_language=ZH_ACCEPT_LANGUAGE,
        )

    def fetch_page(self, page_size: Optional[int] = None, cursor: Optional[str] = None) -> FetchPage:
        items = self.fetch_all()
        return single_page(items[:page_size] if page_size else items)

    def fetch_all(self) -> List[FeedItem]:
        feed_url = self.settings.douban_user_rss
        if not feed_url:
            logger.warning("DOUBAN_USER_RSS is not set, returning empty feed")
            return []
        feed = load_feed(self.fetcher, feed_url, self.name, headers=request_headers(feed_url))
        fetched_at = datetime.now(timezone.utc)
        items = [
            media_item(
                parse_media_entry(entry, self.settings.image_proxy_path),
                entry_id(self.name, entry),
                entry_date(entry, fetched_at),
            )
            for entry in feed.entries
        ]
        items.sort(key=lambda item: item.published_at, reverse=True)
        return items

    def current_items(self, limit: int = CURRENT_LIMIT) -> List[CurrentItem]:
        """In-progress entries in feed order, capped at ``limit``."""
        return [to_current_item(item) for item in in_progress(self.fetch_all())[:limit]]


def in_progress(items: List[FeedItem]) -> List[FeedItem]:
    return [
        item
        for item in items
        if isinstance(item.metadata, MediaLogMetadata) and item.metadata.status == MediaStatus.IN_PROGRESS
    ]


def to_current_item(item: FeedItem) -> CurrentItem:
    metadata = item.metadata
    return CurrentItem(
        activity=ACTIVITY_BY_MEDIA_TYPE[metadata.media_type],
        media_type=metadata.media_type,
        title=item.title or "",
        published_at=item.published_at,
        cover=item.cover_image,
        url=item.url,
        creator=metadata.creator,
    )
