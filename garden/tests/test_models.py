import unittest
from datetime import datetime, timezone

from garden.models import (
    ArticleMetadata,
    ContentSource,
    FeedItem,
    ItemKind,
    MediaLogMetadata,
    MediaType,
    PhotoExif,
    PhotoMetadata,
)


def _item(**overrides) -> FeedItem:
    fields = dict(
        id="item-1",
        kind=ItemKind.ARTICLE,
        content="",
        published_at=datetime(2025, 2, 15, tzinfo=timezone.utc),
        source=ContentSource.DOCUMENT_STORE,
    )
    fields.update(overrides)
    return FeedItem(**fields)


class FeedItemTests(unittest.TestCase):
    def test_metadata_must_match_kind(self):
        with self.assertRaises(ValueError):
            _item(kind=ItemKind.ARTICLE, metadata=MediaLogMetadata(media_type=MediaType.BOOK))
        with self.assertRaises(ValueError):
            _item(kind=ItemKind.PHOTO, metadata=ArticleMetadata())

    def test_metadata_may_be_absent(self):
        item = _item(source=ContentSource.GENERIC_FEED)
        self.assertIsNone(item.metadata)

    def test_naive_timestamp_rejected(self):
        with self.assertRaises(ValueError):
            _item(published_at=datetime(2025, 2, 15))

    def test_slug_from_url_or_id(self):
        self.assertEqual(_item(url="/articles/slow-reading").slug, "slow-reading")
        self.assertEqual(_item(url="/articles/slow-reading/").slug, "slow-reading")
        self.assertEqual(_item().slug, "item-1")

    def test_empty_exif_detection(self):
        self.assertTrue(PhotoExif().is_empty())
        self.assertFalse(PhotoExif(iso=200).is_empty())
        item = _item(kind=ItemKind.PHOTO, metadata=PhotoMetadata(album="街头摄影"))
        self.assertEqual(item.metadata.album, "街头摄影")


if __name__ == "__main__":
    unittest.main()
