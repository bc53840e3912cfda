"""
Pure projections over normalized items: year archives and simple selections.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Sequence, Union

from garden.models import ArchiveEntry, ArchiveGroup, FeedItem, ItemKind

ArchiveSource = Union[FeedItem, ArchiveEntry]


def _newest_first(items: Iterable[ArchiveSource]) -> List[ArchiveSource]:
    return sorted(items, key=lambda item: item.published_at, reverse=True)


def build_archive_groups(items: Iterable[ArchiveSource]) -> List[ArchiveGroup]:
    """
    Group titled article items by publication year.

    Groups come back newest year first with items newest first. Feeding the
    entries of the result back in yields the same groups.
    """
    articles = [item for item in items if item.kind == ItemKind.ARTICLE and item.title]
    by_year: Dict[int, List[ArchiveEntry]] = OrderedDict()
    for item in _newest_first(articles):
        entry = ArchiveEntry(
            id=item.id,
            title=item.title,
            published_at=item.published_at,
            kind=item.kind,
            url=item.url or f"/articles/{item.id}",
        )
        by_year.setdefault(item.published_at.year, []).append(entry)
    return [
        ArchiveGroup(year=year, items=tuple(entries), count=len(entries))
        for year, entries in sorted(by_year.items(), key=lambda pair: pair[0], reverse=True)
    ]


def featured_articles(items: Iterable[FeedItem]) -> List[FeedItem]:
    return [
        item
        for item in items
        if item.kind == ItemKind.ARTICLE and item.metadata is not None and getattr(item.metadata, "featured", False)
    ]


def items_of_kind(items: Iterable[FeedItem], kind: ItemKind) -> List[FeedItem]:
    return [item for item in items if item.kind == kind]


def recent_items(items: Sequence[FeedItem], count: int = 10) -> List[FeedItem]:
    return _newest_first(items)[:count]


def group_by_year(items: Iterable[FeedItem]) -> Dict[int, List[FeedItem]]:
    """Items keyed by year (newest year first, items newest first)."""
    grouped: Dict[int, List[FeedItem]] = OrderedDict()
    for item in _newest_first(items):
        grouped.setdefault(item.published_at.year, []).append(item)
    return grouped
