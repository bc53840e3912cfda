"""
Shared helpers for RSS ingestion.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Union

import feedparser

from crawler.extractors.clean import html_to_text
from crawler.schemas.models import FeedEntry, ParsedFeed

logger = logging.getLogger(__name__)


def parse_feed(feed_content: Union[bytes, str]) -> ParsedFeed:
    feed = feedparser.parse(feed_content)
    if getattr(feed, "bozo", False) and not getattr(feed, "entries", None):
        logger.warning("Feed could not be parsed: %s", getattr(feed, "bozo_exception", "unknown error"))
    meta = getattr(feed, "feed", {}) or {}
    entries = []
    for entry in getattr(feed, "entries", []):
        raw_content = _raw_content(entry)
        entries.append(
            FeedEntry(
                guid=getattr(entry, "id", None),
                link=getattr(entry, "link", None),
                title=getattr(entry, "title", ""),
                raw_content=raw_content,
                snippet=html_to_text(raw_content),
                author=getattr(entry, "author", None),
                published_at=_parse_datetime(
                    getattr(entry, "published_parsed", None) or getattr(entry, "updated_parsed", None)
                ),
            )
        )
    return ParsedFeed(title=(meta.get("title") or "").strip(), link=meta.get("link"), entries=entries)


def _raw_content(entry) -> str:
    # content:encoded wins over description, matching how feed readers render items
    content = getattr(entry, "content", None)
    if content:
        value = content[0].get("value")
        if value:
            return value
    return getattr(entry, "summary", None) or getattr(entry, "description", None) or ""


def _parse_datetime(struct_time) -> Optional[datetime]:
    if not struct_time:
        return None
    return datetime(*struct_time[:6], tzinfo=timezone.utc)
