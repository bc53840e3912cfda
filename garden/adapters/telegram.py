"""
Messaging-channel adapter: public Telegram channel posts through an RSSHub bridge.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from html import escape
from typing import List, Optional

from crawler.extractors.clean import find_first_image
from crawler.infra.http import HttpFetcher
from crawler.schemas.models import FeedEntry

from garden.adapters.base import single_page
from garden.adapters.rss import FEED_ACCEPT, FEED_USER_AGENT, entry_date, entry_id, load_feed
from garden.context import RequestContext
from garden.models import (
    AttachmentKind,
    ContentSource,
    FeedItem,
    FetchPage,
    ItemKind,
    MediaAttachment,
    MicroblogMetadata,
)

logger = logging.getLogger(__name__)

PLATFORM = "telegram"
_CHANNEL_SUFFIX_RE = re.compile(r"\s*-\s*Telegram Channel\s*$", re.IGNORECASE)


def channel_name_from_title(feed_title: str, username: str) -> str:
    return _CHANNEL_SUFFIX_RE.sub("", feed_title or "").strip() or username


def post_content(entry: FeedEntry) -> str:
    if entry.snippet:
        text = escape(entry.snippet, quote=False)
    else:
        text = entry.raw_content
    return text.replace("\r\n", "\n").replace("\n", "<br />")


class TelegramChannelAdapter:
    name = "telegram"
    source = ContentSource.MESSAGING_CHANNEL

    def __init__(self, ctx: RequestContext, fetcher: Optional[HttpFetcher] = None) -> None:
        self.settings = ctx.settings
        self.fetcher = fetcher or HttpFetcher(
            user_agent=FEED_USER_AGENT,
            timeout=self.settings.http_timeout,
            accept=FEED_ACCEPT,
        )

    @property
    def feed_url(self) -> Optional[str]:
        username = self.settings.telegram_channel_username
        if not username:
            return None
        return f"{self.settings.rsshub_instance}/telegram/channel/{username}"

    def fetch_page(self, page_size: Optional[int] = None, cursor: Optional[str] = None) -> FetchPage:
        return single_page(self._fetch(page_size or self.settings.telegram_feed_limit))

    def fetch_all(self) -> List[FeedItem]:
        return self._fetch(self.settings.telegram_feed_limit)

    def _fetch(self, limit: int) -> List[FeedItem]:
        url = self.feed_url
        if not url:
            logger.warning("Telegram is not configured. Set TELEGRAM_CHANNEL_USERNAME for public channels.")
            return []
        feed = load_feed(self.fetcher, url, self.name)
        channel = channel_name_from_title(feed.title, self.settings.telegram_channel_username)
        fetched_at = datetime.now(timezone.utc)
        return [self._to_item(entry, channel, fetched_at) for entry in feed.entries[:limit]]

    def _to_item(self, entry: FeedEntry, channel: str, fetched_at: datetime) -> FeedItem:
        image = find_first_image(entry.raw_content)
        attachments = (MediaAttachment(kind=AttachmentKind.IMAGE, url=image),) if image else ()
        return FeedItem(
            id=entry_id(PLATFORM, entry),
            kind=ItemKind.MICROBLOG,
            content=post_content(entry),
            published_at=entry_date(entry, fetched_at),
            source=self.source,
            url=entry.link,
            cover_image=image,
            metadata=MicroblogMetadata(platform=PLATFORM, channel_name=channel, attachments=attachments),
        )
