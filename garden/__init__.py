"""
Public API for the content aggregator.

Every call takes an explicit ``RequestContext``; when omitted, one is built
from the process environment alone (CLI and scripts).
"""
from __future__ import annotations

from typing import Dict, List, Optional

from garden.context import RequestContext, build_context
from garden.models import ArchiveGroup, CurrentItem, FeedItem, HealthStatus
from garden.pipeline import Aggregator
from garden.status import build_status

_aggregator = Aggregator()


def get_aggregator() -> Aggregator:
    return _aggregator


def _ctx(ctx: Optional[RequestContext]) -> RequestContext:
    return ctx if ctx is not None else build_context()


def get_feed_items(ctx: Optional[RequestContext] = None, use_fallback: bool = False) -> List[FeedItem]:
    return _aggregator.get_feed(_ctx(ctx), use_fallback=use_fallback)


def get_archive_groups(ctx: Optional[RequestContext] = None) -> List[ArchiveGroup]:
    return _aggregator.get_archive_groups(_ctx(ctx))


def get_currently_consuming(ctx: Optional[RequestContext] = None) -> List[CurrentItem]:
    return _aggregator.get_currently_consuming(_ctx(ctx))


def get_photos(ctx: Optional[RequestContext] = None) -> List[FeedItem]:
    return _aggregator.get_photos(_ctx(ctx))


def get_photos_by_year(ctx: Optional[RequestContext] = None) -> Dict[int, List[FeedItem]]:
    return _aggregator.get_photos_by_year(_ctx(ctx))


def get_featured_articles(ctx: Optional[RequestContext] = None) -> List[FeedItem]:
    return _aggregator.get_featured_articles(_ctx(ctx))


def get_recent_items(ctx: Optional[RequestContext] = None, count: int = 10) -> List[FeedItem]:
    return _aggregator.get_recent_items(_ctx(ctx), count=count)


def get_article_by_slug(slug: str, ctx: Optional[RequestContext] = None) -> Optional[FeedItem]:
    return _aggregator.get_article_by_slug(_ctx(ctx), slug)


def get_article_slugs(ctx: Optional[RequestContext] = None) -> List[str]:
    return _aggregator.get_article_slugs(_ctx(ctx))


def clear_caches(ctx: Optional[RequestContext] = None) -> List[str]:
    return _aggregator.clear_caches(_ctx(ctx))


def get_health_snapshot() -> List[HealthStatus]:
    return _aggregator.get_health()


def get_pipeline_status(ctx: Optional[RequestContext] = None):
    """Expose a structured status payload for health dashboards."""
    return build_status(_aggregator, _ctx(ctx))
