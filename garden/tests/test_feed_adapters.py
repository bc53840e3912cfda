import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from garden.adapters.douban import DoubanAdapter
from garden.adapters.rss import GenericFeedAdapter
from garden.adapters.telegram import TelegramChannelAdapter, channel_name_from_title
from garden.context import build_context
from garden.errors import SourceError
from garden.models import Activity, AttachmentKind, ItemKind, MediaStatus, MediaType

TELEGRAM_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Ring Ruins - Telegram Channel</title>
    <link>https://t.me/s/ring_ruins</link>
    <item>
      <title>First post</title>
      <link>https://t.me/ring_ruins/42</link>
      <guid isPermaLink="false">tg-42</guid>
      <pubDate>Tue, 18 Feb 2025 08:00:00 GMT</pubDate>
      <description><![CDATA[<p>line one<br>line two</p><img src="https://cdn.example.com/a.jpg">]]></description>
    </item>
    <item>
      <title>Untracked</title>
      <pubDate>Mon, 17 Feb 2025 08:00:00 GMT</pubDate>
      <description><![CDATA[<p>no guid, no link</p>]]></description>
    </item>
  </channel>
</rss>
"""

DOUBAN_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>someone 的收藏</title>
    <link>https://www.douban.com/people/someone/</link>
    <item>
      <title>最近在读: 三体</title>
      <link>https://book.douban.com/subject/2567698/</link>
      <guid isPermaLink="false">douban-1</guid>
      <pubDate>Sat, 15 Feb 2025 10:00:00 GMT</pubDate>
      <description><![CDATA[<img src="https://img9.doubanio.com/view/subject/s/public/s2768378.jpg"><p>推荐: ★★★★★</p><p>备注: 重读依然震撼</p>]]></description>
    </item>
    <item>
      <title>看过 奥本海默</title>
      <link>https://movie.douban.com/subject/35593344/</link>
      <guid isPermaLink="false">douban-2</guid>
      <pubDate>Mon, 10 Feb 2025 10:00:00 GMT</pubDate>
      <description><![CDATA[<p>8/10</p>]]></description>
    </item>
    <item>
      <title>想看 漫长的季节 第 1 季</title>
      <link>https://movie.douban.com/subject/35588177/</link>
      <guid isPermaLink="false">douban-3</guid>
      <pubDate>Wed, 12 Feb 2025 10:00:00 GMT</pubDate>
      <description><![CDATA[<p>听说很好</p>]]></description>
    </item>
  </channel>
</rss>
""".encode("utf-8")

GENERIC_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Friend's blog</title>
    <item>
      <link>https://friend.example.com/posts/1</link>
      <description>A short &lt;b&gt;summary&lt;/b&gt;</description>
    </item>
  </channel>
</rss>
"""


def _response(content: bytes, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    return response


class TelegramAdapterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ctx = build_context(
            bindings={},
            environ={"TELEGRAM_CHANNEL_USERNAME": "ring_ruins", "RSSHUB_INSTANCE": "https://bridge.example.com"},
        )

    def test_channel_name_suffix(self):
        self.assertEqual(channel_name_from_title("环形废墟 - Telegram Channel", "x"), "环形废墟")
        self.assertEqual(channel_name_from_title("Garden - telegram channel", "x"), "Garden")
        self.assertEqual(channel_name_from_title("", "ring_ruins"), "ring_ruins")

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_fetch_maps_posts(self, mock_get):
        mock_get.return_value = _response(TELEGRAM_FEED)

        items = TelegramChannelAdapter(self.ctx).fetch_all()

        self.assertEqual(mock_get.call_args[0][0], "https://bridge.example.com/telegram/channel/ring_ruins")
        first = items[0]
        self.assertEqual(first.id, "tg-42")
        self.assertEqual(first.kind, ItemKind.MICROBLOG)
        self.assertEqual(first.content, "line one<br />line two")
        self.assertEqual(first.cover_image, "https://cdn.example.com/a.jpg")
        self.assertEqual(first.metadata.channel_name, "Ring Ruins")
        self.assertEqual(first.metadata.attachments[0].kind, AttachmentKind.IMAGE)
        self.assertEqual(first.published_at, datetime(2025, 2, 18, 8, tzinfo=timezone.utc))

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_missing_identity_gets_stable_digest(self, mock_get):
        mock_get.return_value = _response(TELEGRAM_FEED)

        first_run = TelegramChannelAdapter(self.ctx).fetch_all()[1]
        second_run = TelegramChannelAdapter(self.ctx).fetch_all()[1]

        self.assertTrue(first_run.id.startswith("telegram-"))
        self.assertEqual(len(first_run.id), len("telegram-") + 16)
        self.assertEqual(first_run.id, second_run.id)

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_limit_and_upstream_error(self, mock_get):
        mock_get.return_value = _response(TELEGRAM_FEED)
        self.assertEqual(len(TelegramChannelAdapter(self.ctx).fetch_page(page_size=1).items), 1)

        mock_get.return_value = _response(b"", status_code=502)
        with self.assertRaises(SourceError) as raised:
            TelegramChannelAdapter(self.ctx).fetch_all()
        self.assertEqual(raised.exception.status_code, 502)

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_unconfigured_channel_skips_network(self, mock_get):
        adapter = TelegramChannelAdapter(build_context(bindings={}, environ={}))
        self.assertEqual(adapter.fetch_all(), [])
        mock_get.assert_not_called()


class DoubanAdapterTests(unittest.TestCase):
    FEED_URL = "https://www.douban.com/feed/people/someone/interests"

    def setUp(self) -> None:
        self.ctx = build_context(bindings={}, environ={"DOUBAN_USER_RSS": self.FEED_URL})

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_entries_become_media_items(self, mock_get):
        mock_get.return_value = _response(DOUBAN_FEED)
        adapter = DoubanAdapter(self.ctx)

        items = adapter.fetch_all()

        headers = mock_get.call_args.kwargs["headers"]
        self.assertEqual(headers["Referer"], "https://www.douban.com/")
        self.assertEqual(headers["Cache-Control"], "no-cache")
        self.assertTrue(adapter.fetcher.session.headers["Accept-Language"].startswith("zh-CN"))

        self.assertEqual([item.id for item in items], ["douban-1", "douban-3", "douban-2"])

        book = items[0]
        self.assertEqual(book.title, "三体")
        self.assertEqual(book.content, "重读依然震撼")
        self.assertEqual(book.metadata.media_type, MediaType.BOOK)
        self.assertEqual(book.metadata.status, MediaStatus.IN_PROGRESS)
        self.assertEqual((book.metadata.rating, book.metadata.max_rating), (5.0, 5))
        self.assertTrue(book.cover_image.startswith("/api/proxy-image?url=https%3A%2F%2Fimg9.doubanio.com"))

        show = items[1]
        self.assertEqual(show.title, "漫长的季节 第 1 季")
        self.assertEqual(show.metadata.media_type, MediaType.TV)
        self.assertEqual(show.metadata.status, MediaStatus.WISHLIST)

        movie = items[2]
        self.assertEqual(movie.metadata.status, MediaStatus.COMPLETED)
        self.assertEqual((movie.metadata.rating, movie.metadata.max_rating), (8.0, 10))

    @patch("crawler.infra.http.HttpFetcher.get")
    def test_current_items_only_in_progress(self, mock_get):
        mock_get.return_value = _response(DOUBAN_FEED)

        current = DoubanAdapter(self.ctx).current_items()

        self.assertEqual(len(current), 1)
        self.assertEqual(current[0].activity, Activity.READING)
        self.assertEqual(current[0].title, "三体")


class GenericFeedAdapterTests(unittest.TestCase):
    @patch("crawler.infra.http.HttpFetcher.get")
    def test_untitled_entries(self, mock_get):
        mock_get.return_value = _response(GENERIC_FEED)
        ctx = build_context(bindings={}, environ={})
        adapter = GenericFeedAdapter(ctx, "https://friend.example.com/feed.xml")

        items = adapter.fetch_all()

        self.assertEqual(adapter.name, "rss:friend.example.com")
        self.assertEqual(items[0].title, "Untitled")
        self.assertEqual(items[0].id, "https://friend.example.com/posts/1")
        self.assertEqual(items[0].content, "A short summary")
        self.assertIsNone(items[0].metadata)
        self.assertIsNotNone(items[0].published_at.tzinfo)


if __name__ == "__main__":
    unittest.main()
