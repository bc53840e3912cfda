"""
High-level orchestration: merge every configured source into one ordered stream.

Each dataset (feed, archives, currently consuming) sits behind its own
in-process cache slot; the document-store results underneath additionally
read through the durable cache. A failing source contributes nothing and is
marked unhealthy; the static dataset is served only when nothing is
configured, when explicitly requested, or when every source failed.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple

from crawler.pipelines.dedupe import dedupe_by_key

from garden.adapters.base import SourceAdapter, timed_health
from garden.adapters.douban import DoubanAdapter
from garden.adapters.notion import ARTICLES_CACHE_KEY, PHOTOS_CACHE_KEY, NotionAdapter
from garden.adapters.rss import GenericFeedAdapter
from garden.adapters.telegram import TelegramChannelAdapter
from garden.archives import build_archive_groups, featured_articles, group_by_year, items_of_kind
from garden.cache import DEFAULT_TTL_SECONDS, MemoryCache
from garden.context import RequestContext
from garden.errors import ConfigurationError, SourceError
from garden.fallback import FALLBACK_CURRENT_ITEMS, fallback_archive_groups, fallback_feed, fallback_photos
from garden.models import ArchiveGroup, CurrentItem, FeedItem, HealthStatus, ItemKind
from garden.security import redact_secrets

logger = logging.getLogger(__name__)

Collector = Tuple[str, Callable[[], List[FeedItem]]]

CURRENT_LIMIT = 5
RECENT_COUNT = 10
MAX_WORKERS = 8


def collector_for(adapter: SourceAdapter) -> Collector:
    return adapter.name, adapter.fetch_all


def sort_newest_first(items: List[FeedItem]) -> List[FeedItem]:
    # sorted() is stable: equal timestamps keep source order
    return sorted(items, key=lambda item: item.published_at, reverse=True)


class Aggregator:
    def __init__(self, memory_ttl: int = DEFAULT_TTL_SECONDS) -> None:
        self.feed_cache: MemoryCache[List[FeedItem]] = MemoryCache("feed", memory_ttl)
        self.archives_cache: MemoryCache[List[ArchiveGroup]] = MemoryCache("archives", memory_ttl)
        self.current_cache: MemoryCache[List[CurrentItem]] = MemoryCache("current", memory_ttl)
        self._health: Dict[str, HealthStatus] = {}
        self._health_lock = threading.Lock()

    # -- feed -------------------------------------------------------------

    def get_feed(self, ctx: RequestContext, use_fallback: bool = False) -> List[FeedItem]:
        self._apply_ttl(ctx)
        cached = self.feed_cache.get()
        if cached is not None:
            logger.debug("Serving feed from memory cache (%s items)", len(cached))
            return list(cached)

        settings = ctx.settings
        if use_fallback or settings.use_fallback or not settings.any_source_configured:
            logger.info("Serving static fallback feed (no sources configured or fallback requested)")
            return fallback_feed()

        collectors = self.build_collectors(ctx)
        results = self._collect(collectors)
        succeeded = [items for items in results if items is not None]
        if not succeeded:
            logger.error("All %s configured sources failed; serving static fallback feed", len(collectors))
            return fallback_feed()

        merged = [item for items in succeeded for item in items]
        deduped = dedupe_by_key(merged, key_fn=lambda item: (item.source, item.id))
        ordered = sort_newest_first(deduped)
        logger.info(
            "Aggregated %s items from %s/%s sources", len(ordered), len(succeeded), len(collectors)
        )
        self.feed_cache.set(ordered)
        return list(ordered)

    def build_collectors(self, ctx: RequestContext) -> List[Collector]:
        """One zero-argument producer per configured source, in merge order."""
        settings = ctx.settings
        collectors: List[Collector] = []
        if settings.document_store_configured:
            notion = NotionAdapter(ctx)
            collectors.append(("notion:articles", notion.get_all_articles))
            if settings.photos_configured:
                collectors.append(("notion:photos", notion.get_all_photos))
        if settings.media_log_configured:
            collectors.append(collector_for(DoubanAdapter(ctx)))
        if settings.channel_configured:
            collectors.append(collector_for(TelegramChannelAdapter(ctx)))
        for url in settings.generic_feeds:
            collectors.append(collector_for(GenericFeedAdapter(ctx, url)))
        if not collectors:
            logger.warning("No adapters configured for aggregation")
        return collectors

    def _collect(self, collectors: List[Collector]) -> List[Optional[List[FeedItem]]]:
        if not collectors:
            return []
        workers = min(len(collectors), MAX_WORKERS)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="garden-source") as executor:
            futures = [executor.submit(self._run, name, produce) for name, produce in collectors]
            # joined in submission order so merging is deterministic
            return [future.result() for future in futures]

    def _run(self, name: str, produce: Callable[[], List]) -> Optional[List]:
        """Invoke one source; failures are logged, recorded and turned into None."""
        started = time.time()
        try:
            items = list(produce())
        except Exception as exc:
            message = redact_secrets(str(exc))
            logger.error("Adapter %s failed: %s", name, message)
            self._record(timed_health(name, started, [], error=message))
            return None
        logger.debug("Adapter %s fetched %s items", name, len(items))
        self._record(timed_health(name, started, items))
        return items

    # -- archives / currently consuming ----------------------------------

    def get_archive_groups(self, ctx: RequestContext) -> List[ArchiveGroup]:
        self._apply_ttl(ctx)
        if not ctx.settings.document_store_configured:
            return fallback_archive_groups()
        try:
            return list(self.archives_cache.read_through(lambda: self._archive_groups(ctx)))
        except SourceError as exc:
            logger.warning("Serving static archives: %s", exc)
            return fallback_archive_groups()

    def _archive_groups(self, ctx: RequestContext) -> List[ArchiveGroup]:
        articles = self._run("notion:articles", NotionAdapter(ctx).get_all_articles)
        if articles is None:
            raise SourceError("notion:articles", "article list unavailable")
        return build_archive_groups(articles)

    def get_currently_consuming(self, ctx: RequestContext) -> List[CurrentItem]:
        self._apply_ttl(ctx)
        cached = self.current_cache.get()
        if cached is not None:
            return list(cached)
        if not ctx.settings.media_log_configured:
            return list(FALLBACK_CURRENT_ITEMS)
        adapter = DoubanAdapter(ctx)
        items = self._run(adapter.name, lambda: adapter.current_items(CURRENT_LIMIT))
        if not items:
            return list(FALLBACK_CURRENT_ITEMS)
        self.current_cache.set(items)
        return list(items)

    # -- document-store views --------------------------------------------

    def get_photos(self, ctx: RequestContext) -> List[FeedItem]:
        """All published photos. Upstream failures propagate to the caller."""
        if not ctx.settings.photos_configured:
            if ctx.settings.use_fallback:
                return fallback_photos()
            logger.warning("NOTION_PHOTOS_DATABASE_ID is not set, returning empty photos")
            return []
        return NotionAdapter(ctx).get_all_photos()

    def get_photos_by_year(self, ctx: RequestContext) -> Dict[int, List[FeedItem]]:
        if not ctx.settings.photos_configured:
            return {}
        photos = self._run("notion:photos", NotionAdapter(ctx).get_all_photos)
        return group_by_year(photos or [])

    def get_featured_articles(self, ctx: RequestContext) -> List[FeedItem]:
        return featured_articles(self.get_feed(ctx))

    def get_recent_items(self, ctx: RequestContext, count: int = RECENT_COUNT) -> List[FeedItem]:
        return self.get_feed(ctx)[:count]

    def get_article_by_slug(self, ctx: RequestContext, slug: str) -> Optional[FeedItem]:
        """Full article for a slug (or page id); None when unknown or unavailable."""
        if not ctx.settings.document_store_configured:
            return next(
                (item for item in items_of_kind(fallback_feed(), ItemKind.ARTICLE) if item.slug == slug),
                None,
            )
        notion = NotionAdapter(ctx)
        articles = self._run("notion:articles", notion.get_all_articles)
        found = next((item for item in articles or [] if item.slug == slug or item.id == slug), None)
        if found is None:
            return None
        return notion.get_article(found.id)

    def get_article_slugs(self, ctx: RequestContext) -> List[str]:
        if not ctx.settings.document_store_configured:
            return [item.slug for item in items_of_kind(fallback_feed(), ItemKind.ARTICLE)]
        articles = self._run("notion:articles", NotionAdapter(ctx).get_all_articles)
        return [item.slug for item in articles or []]

    # -- maintenance ------------------------------------------------------

    def clear_caches(self, ctx: RequestContext) -> List[str]:
        """Drop the durable document-store datasets and every in-process slot."""
        if not ctx.kv.is_available():
            raise ConfigurationError(f"KV binding {ctx.settings.kv_binding_name} is not available")
        cleared = []
        for key in (ARTICLES_CACHE_KEY, PHOTOS_CACHE_KEY):
            ctx.kv.delete(key)
            cleared.append(key)
        self.clear_memory_caches()
        logger.info("Cleared caches: %s", ", ".join(cleared))
        return cleared

    def clear_memory_caches(self) -> None:
        for cache in (self.feed_cache, self.archives_cache, self.current_cache):
            cache.clear()

    def cache_snapshots(self) -> List[Dict[str, object]]:
        return [cache.snapshot() for cache in (self.feed_cache, self.archives_cache, self.current_cache)]

    def get_health(self) -> List[HealthStatus]:
        with self._health_lock:
            return list(self._health.values())

    def _record(self, status: HealthStatus) -> None:
        with self._health_lock:
            self._health[status.name] = status

    def _apply_ttl(self, ctx: RequestContext) -> None:
        ttl = ctx.settings.memory_cache_ttl
        for cache in (self.feed_cache, self.archives_cache, self.current_cache):
            cache.ttl_seconds = ttl
