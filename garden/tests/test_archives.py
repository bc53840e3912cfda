import unittest
from datetime import datetime, timezone

from garden.archives import build_archive_groups, featured_articles, group_by_year, recent_items
from garden.fallback import FALLBACK_ITEMS, fallback_archive_groups
from garden.models import ContentSource, FeedItem, ItemKind, MicroblogMetadata


def _article(item_id, year, month=1, title="Post", url=None):
    return FeedItem(
        id=item_id,
        kind=ItemKind.ARTICLE,
        title=title,
        content="",
        published_at=datetime(year, month, 1, tzinfo=timezone.utc),
        source=ContentSource.DOCUMENT_STORE,
        url=url,
    )


class ArchiveGroupTests(unittest.TestCase):
    def test_groups_by_year_newest_first(self):
        items = [
            _article("a", 2023, 5),
            _article("b", 2025, 1),
            _article("c", 2025, 3),
            _article("d", 2024, 7),
        ]
        groups = build_archive_groups(items)

        self.assertEqual([group.year for group in groups], [2025, 2024, 2023])
        self.assertEqual([entry.id for entry in groups[0].items], ["c", "b"])
        self.assertEqual(groups[0].count, 2)

    def test_only_titled_articles_with_default_url(self):
        microblog = FeedItem(
            id="m",
            kind=ItemKind.MICROBLOG,
            content="hello",
            published_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
            source=ContentSource.MESSAGING_CHANNEL,
            metadata=MicroblogMetadata(platform="telegram", channel_name="garden"),
        )
        untitled = _article("u", 2025, title=None)
        groups = build_archive_groups([microblog, untitled, _article("x", 2025)])

        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].items[0].url, "/articles/x")

    def test_projection_is_idempotent(self):
        groups = build_archive_groups(FALLBACK_ITEMS)
        flattened = [entry for group in groups for entry in group.items]

        self.assertEqual(build_archive_groups(flattened), groups)
        self.assertEqual(fallback_archive_groups(), groups)


class SelectionTests(unittest.TestCase):
    def test_featured_and_recent(self):
        featured = featured_articles(FALLBACK_ITEMS)
        self.assertEqual([item.id for item in featured], ["article-1"])

        recent = recent_items(list(FALLBACK_ITEMS), count=3)
        self.assertEqual(len(recent), 3)
        self.assertEqual(recent[0].id, "micro-1")

    def test_group_by_year_orders_years(self):
        grouped = group_by_year([_article("a", 2023), _article("b", 2025)])
        self.assertEqual(list(grouped), [2025, 2023])


if __name__ == "__main__":
    unittest.main()
