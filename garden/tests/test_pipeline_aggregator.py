import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from garden.adapters.douban import DoubanAdapter
from garden.adapters.notion import NotionAdapter
from garden.context import build_context
from garden.errors import ConfigurationError, SourceError
from garden.fallback import FALLBACK_CURRENT_ITEMS, fallback_feed
from garden.models import ContentSource, FeedItem, ItemKind, MediaLogMetadata, MediaStatus, MediaType
from garden.pipeline import Aggregator, collector_for

CONFIGURED = {"DOUBAN_USER_RSS": "https://www.douban.com/feed/people/someone/interests"}
BASE = datetime(2025, 2, 1, tzinfo=timezone.utc)


def _item(item_id, day, source=ContentSource.GENERIC_FEED, kind=ItemKind.ARTICLE):
    return FeedItem(
        id=item_id,
        kind=kind,
        title=item_id,
        content="",
        published_at=BASE + timedelta(days=day),
        source=source,
    )


def _media(item_id, day, status=MediaStatus.IN_PROGRESS):
    return FeedItem(
        id=item_id,
        kind=ItemKind.MEDIA,
        title=item_id,
        content="",
        published_at=BASE + timedelta(days=day),
        source=ContentSource.MEDIA_LOG,
        metadata=MediaLogMetadata(media_type=MediaType.BOOK, status=status),
    )


def _failing():
    raise SourceError("broken", "HTTP 503", status_code=503)


class _StaticAggregator(Aggregator):
    def __init__(self, collectors):
        super().__init__()
        self.collectors = collectors
        self.build_calls = 0

    def build_collectors(self, ctx):
        self.build_calls += 1
        return list(self.collectors)


class FeedAggregationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = build_context(bindings={}, environ=dict(CONFIGURED))

    @patch("garden.http_client.HttpClient._request")
    @patch("crawler.infra.http.HttpFetcher.get")
    def test_zero_configuration_serves_fallback_without_network(self, mock_get, mock_request):
        aggregator = Aggregator()
        ctx = build_context(bindings={}, environ={})

        items = aggregator.get_feed(ctx)

        self.assertEqual([item.id for item in items], [item.id for item in fallback_feed()])
        self.assertEqual(items[0].id, "micro-1")
        self.assertIsNone(aggregator.feed_cache.get())
        mock_get.assert_not_called()
        mock_request.assert_not_called()

    def test_merge_is_stable_and_newest_first(self):
        aggregator = _StaticAggregator(
            [
                ("first", lambda: [_item("a", 1), _item("tie-first", 5)]),
                ("second", lambda: [_item("b", 3), _item("tie-second", 5)]),
            ]
        )

        items = aggregator.get_feed(self.ctx)

        self.assertEqual([item.id for item in items], ["tie-first", "tie-second", "b", "a"])

    def test_failing_source_is_isolated(self):
        aggregator = _StaticAggregator([("ok", lambda: [_item("a", 1)]), ("broken", _failing)])

        items = aggregator.get_feed(self.ctx)

        self.assertEqual([item.id for item in items], ["a"])
        health = {entry.name: entry for entry in aggregator.get_health()}
        self.assertTrue(health["ok"].healthy)
        self.assertEqual(health["ok"].items_last_fetch, 1)
        self.assertFalse(health["broken"].healthy)
        self.assertIn("503", health["broken"].last_error)

    def test_all_sources_failing_falls_back_uncached(self):
        aggregator = _StaticAggregator([("one", _failing), ("two", _failing)])

        items = aggregator.get_feed(self.ctx)

        self.assertEqual(len(items), len(fallback_feed()))
        self.assertIsNone(aggregator.feed_cache.get())
        aggregator.get_feed(self.ctx)
        self.assertEqual(aggregator.build_calls, 2)

    def test_duplicates_across_sources_collapse(self):
        aggregator = _StaticAggregator(
            [
                ("one", lambda: [_item("same", 2), _item("other", 1)]),
                ("two", lambda: [_item("same", 2)]),
                ("three", lambda: [_item("same", 2, source=ContentSource.MEDIA_LOG, kind=ItemKind.MEDIA)]),
            ]
        )

        items = aggregator.get_feed(self.ctx)

        self.assertEqual([(item.source, item.id) for item in items].count((ContentSource.GENERIC_FEED, "same")), 1)
        self.assertEqual(len(items), 3)

    def test_memory_cache_serves_repeat_calls(self):
        aggregator = _StaticAggregator([("one", lambda: [_item("a", 1)])])

        first = aggregator.get_feed(self.ctx)
        second = aggregator.get_feed(self.ctx)

        self.assertEqual(first, second)
        self.assertEqual(aggregator.build_calls, 1)

        aggregator.clear_memory_caches()
        aggregator.get_feed(self.ctx)
        self.assertEqual(aggregator.build_calls, 2)

    def test_explicit_fallback_request(self):
        aggregator = _StaticAggregator([("one", lambda: [_item("a", 1)])])
        self.assertEqual(len(aggregator.get_feed(self.ctx, use_fallback=True)), len(fallback_feed()))
        self.assertEqual(aggregator.build_calls, 0)

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_collectors_follow_merge_order(self, mock_get):
        environ = dict(
            CONFIGURED,
            TELEGRAM_CHANNEL_USERNAME="gardennotes",
            GENERIC_RSS_FEEDS="https://friend.example.com/feed.xml, https://blog.example.org/rss",
        )
        ctx = build_context(bindings={}, environ=environ)

        collectors = Aggregator().build_collectors(ctx)

        self.assertEqual(
            [name for name, _ in collectors],
            ["douban", "telegram", "rss:friend.example.com", "rss:blog.example.org"],
        )
        self.assertTrue(all(produce.__name__ == "fetch_all" for _, produce in collectors))
        mock_get.assert_not_called()

    def test_collector_for_accepts_any_source_adapter(self):
        class _Adapter:
            name = "custom"
            source = ContentSource.GENERIC_FEED

            def fetch_page(self, page_size=None, cursor=None):
                raise NotImplementedError

            def fetch_all(self):
                return [_item("x", 1)]

        name, produce = collector_for(_Adapter())

        self.assertEqual(name, "custom")
        self.assertEqual([item.id for item in produce()], ["x"])

    def test_recent_and_featured_views(self):
        aggregator = Aggregator()
        ctx = build_context(bindings={}, environ={})

        self.assertEqual(len(aggregator.get_recent_items(ctx, count=3)), 3)
        self.assertEqual([item.id for item in aggregator.get_featured_articles(ctx)], ["article-1"])


class CurrentlyConsumingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = build_context(bindings={}, environ=dict(CONFIGURED))

    @patch.object(DoubanAdapter, "fetch_all")
    def test_capped_at_five_in_progress_items(self, mock_fetch):
        mock_fetch.return_value = [_media(f"m{i}", 10 - i) for i in range(7)] + [
            _media("done", 20, status=MediaStatus.COMPLETED)
        ]

        current = Aggregator().get_currently_consuming(self.ctx)

        self.assertEqual([item.title for item in current], ["m0", "m1", "m2", "m3", "m4"])

    @patch.object(DoubanAdapter, "fetch_all")
    def test_fallback_when_nothing_in_progress(self, mock_fetch):
        mock_fetch.return_value = [_media("done", 1, status=MediaStatus.COMPLETED)]
        aggregator = Aggregator()

        self.assertEqual(aggregator.get_currently_consuming(self.ctx), list(FALLBACK_CURRENT_ITEMS))
        self.assertIsNone(aggregator.current_cache.get())

    @patch.object(DoubanAdapter, "fetch_all")
    def test_fallback_on_upstream_error(self, mock_fetch):
        mock_fetch.side_effect = SourceError("douban", "HTTP 403", status_code=403)
        self.assertEqual(Aggregator().get_currently_consuming(self.ctx), list(FALLBACK_CURRENT_ITEMS))

    def test_unconfigured_serves_fallback(self):
        ctx = build_context(bindings={}, environ={})
        self.assertEqual(len(Aggregator().get_currently_consuming(ctx)), len(FALLBACK_CURRENT_ITEMS))


class DocumentStoreViewTests(unittest.TestCase):
    NOTION_ENV = {"NOTION_API_KEY": "secret_abcdefgh1234", "NOTION_ARTICLES_DATABASE_ID": "articles-db"}

    @patch.object(NotionAdapter, "get_all_articles")
    def test_archives_read_through_memory_cache(self, mock_articles):
        mock_articles.return_value = [item for item in fallback_feed() if item.kind == ItemKind.ARTICLE][:2]
        aggregator = Aggregator()
        ctx = build_context(bindings={}, environ=dict(self.NOTION_ENV))

        first = aggregator.get_archive_groups(ctx)
        second = aggregator.get_archive_groups(ctx)

        self.assertEqual(first, second)
        self.assertEqual(sum(group.count for group in first), 2)
        self.assertEqual(mock_articles.call_count, 1)

    @patch.object(NotionAdapter, "get_all_articles")
    def test_archives_fall_back_on_error(self, mock_articles):
        mock_articles.side_effect = SourceError("notion", "HTTP 500", status_code=500)
        aggregator = Aggregator()
        ctx = build_context(bindings={}, environ=dict(self.NOTION_ENV))

        groups = aggregator.get_archive_groups(ctx)

        self.assertEqual([group.year for group in groups], [2025, 2024])
        self.assertIsNone(aggregator.archives_cache.get())
        self.assertFalse(aggregator.get_health()[0].healthy)

    def test_unconfigured_document_store_views(self):
        aggregator = Aggregator()
        ctx = build_context(bindings={}, environ={})

        self.assertEqual([group.year for group in aggregator.get_archive_groups(ctx)], [2025, 2024])
        self.assertEqual(aggregator.get_photos(ctx), [])
        self.assertEqual(aggregator.get_photos_by_year(ctx), {})
        self.assertEqual(aggregator.get_article_by_slug(ctx, "slow-reading").id, "article-2")
        self.assertIsNone(aggregator.get_article_by_slug(ctx, "missing"))
        self.assertIn("building-second-brain", aggregator.get_article_slugs(ctx))

    def test_fallback_photos_on_request(self):
        ctx = build_context(bindings={}, environ={"GARDEN_USE_FALLBACK": "true"})
        photos = Aggregator().get_photos(ctx)
        self.assertTrue(photos)
        self.assertTrue(all(photo.kind == ItemKind.PHOTO for photo in photos))

    def test_clear_caches_requires_binding(self):
        ctx = build_context(bindings={}, environ={})
        with self.assertRaises(ConfigurationError):
            Aggregator().clear_caches(ctx)


if __name__ == "__main__":
    unittest.main()
