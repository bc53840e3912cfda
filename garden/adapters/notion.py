"""
Document-store adapter: published articles and photos from Notion databases.

List queries return summary records (no body, reading time unset); the full
body is fetched lazily per article and rendered to HTML. Whole result sets
and single articles are kept in the durable cache.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from crawler.schemas.models import BlockListing, DocumentPage, DocumentQueryResult

from garden.adapters.base import single_page
from garden.context import RequestContext
from garden.errors import SourceError
from garden.http_client import HttpClient
from garden.models import (
    ArticleMetadata,
    ContentSource,
    FeedItem,
    FetchPage,
    ItemKind,
    PhotoExif,
    PhotoMetadata,
)
from garden.rich_text import file_url, plain_text, reading_time, render_blocks
from garden.serialization import item_from_dict, item_to_dict

logger = logging.getLogger(__name__)

NOTION_API_BASE = "https://api.notion.com/v1"

ARTICLES_CACHE_KEY = "document_store:articles:all"
PHOTOS_CACHE_KEY = "document_store:photos:all"
ARTICLE_CACHE_PREFIX = "document_store:article:"

ARTICLE_PAGE_SIZE = 10
PHOTO_PAGE_SIZE = 20
BULK_PAGE_SIZE = 100
BLOCK_PAGE_SIZE = 100

# Property aliases, first non-empty alias wins
TITLE_ALIASES = ("标题", "标题_EN", "Title")
EXCERPT_ALIASES = ("摘要", "Excerpt")
TAG_ALIASES = ("标签", "Tags")
FEATURED_ALIASES = ("精选", "Featured")
COVER_ALIASES = ("封面", "Cover")
SLUG_ALIASES = ("Slug", "slug")

PHOTO_TITLE_ALIASES = ("标题", "Title")
ALBUM_ALIASES = ("相册", "Album")
LOCATION_ALIASES = ("地点", "Location")
IMAGE_ALIASES = ("图片", "Image")
TAKEN_ALIASES = ("日期", "Date")
CAMERA_ALIASES = ("相机", "Camera")
LENS_ALIASES = ("镜头", "Lens")
ISO_ALIASES = ("ISO", "iso")
SHUTTER_ALIASES = ("快门", "Shutter Speed")
APERTURE_ALIASES = ("光圈", "Aperture")
FOCAL_ALIASES = ("焦距", "Focal Length")

PROPERTY_KINDS = ("title", "rich_text", "select", "multi_select", "checkbox", "files", "date", "number", "url")


def property_value(prop: Any) -> Any:
    """Reduce a typed property object to a plain value (None when empty)."""
    if not isinstance(prop, dict):
        return None
    kind = prop.get("type") or next((key for key in PROPERTY_KINDS if key in prop), None)
    raw = prop.get(kind) if kind else None
    if kind in ("title", "rich_text"):
        return plain_text(raw) or None
    if kind == "select":
        return (raw or {}).get("name")
    if kind == "multi_select":
        return [option["name"] for option in raw or [] if option.get("name")] or None
    if kind == "checkbox":
        return raw if isinstance(raw, bool) else None
    if kind == "files":
        return file_url(raw[0]) if raw else None
    if kind == "date":
        return (raw or {}).get("start")
    if kind in ("number", "url"):
        return raw
    return None


def first_value(properties: Dict[str, Any], aliases: Sequence[str]) -> Any:
    for alias in aliases:
        value = property_value(properties.get(alias))
        if value is not None and value != "" and value != []:
            return value
    return None


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return _aware(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        logger.warning("Ignoring unparseable date property %r", value)
        return None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(float(value)) if value is not None else None
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(str(value).lower().replace("mm", "").strip())
    except ValueError:
        return None


def article_from_page(page: DocumentPage, content: str = "", with_reading_time: bool = False) -> FeedItem:
    props = page.properties
    slug = first_value(props, SLUG_ALIASES) or page.id
    return FeedItem(
        id=page.id,
        kind=ItemKind.ARTICLE,
        title=first_value(props, TITLE_ALIASES),
        content=content,
        published_at=_aware(page.created_time),
        source=ContentSource.DOCUMENT_STORE,
        url=f"/articles/{slug}",
        cover_image=first_value(props, COVER_ALIASES),
        metadata=ArticleMetadata(
            reading_time_minutes=reading_time(content) if with_reading_time else None,
            tags=frozenset(first_value(props, TAG_ALIASES) or []),
            excerpt=first_value(props, EXCERPT_ALIASES) or "",
            featured=bool(first_value(props, FEATURED_ALIASES)),
        ),
    )


def photo_from_page(page: DocumentPage) -> FeedItem:
    props = page.properties
    exif = PhotoExif(
        camera=first_value(props, CAMERA_ALIASES),
        lens=first_value(props, LENS_ALIASES),
        iso=_as_int(first_value(props, ISO_ALIASES)),
        shutter_speed=_stringify(first_value(props, SHUTTER_ALIASES)),
        aperture=_stringify(first_value(props, APERTURE_ALIASES)),
        focal_length_mm=_as_float(first_value(props, FOCAL_ALIASES)),
        taken_at=_parse_date(first_value(props, TAKEN_ALIASES)),
    )
    return FeedItem(
        id=page.id,
        kind=ItemKind.PHOTO,
        title=first_value(props, PHOTO_TITLE_ALIASES),
        content="",
        published_at=_aware(page.created_time),
        source=ContentSource.DOCUMENT_STORE,
        url=f"/photos/{page.id}",
        cover_image=first_value(props, IMAGE_ALIASES),
        metadata=PhotoMetadata(
            album=first_value(props, ALBUM_ALIASES),
            location=first_value(props, LOCATION_ALIASES),
            exif=None if exif.is_empty() else exif,
        ),
    )


def _stringify(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class NotionAdapter:
    name = "notion"
    source = ContentSource.DOCUMENT_STORE

    def __init__(self, ctx: RequestContext, client: Optional[HttpClient] = None) -> None:
        self.ctx = ctx
        self.settings = ctx.settings
        self.client = client
        if self.client is None and self.settings.notion_api_key:
            self.client = HttpClient(
                source=self.name,
                base_url=NOTION_API_BASE,
                timeout=self.settings.http_timeout,
                headers={
                    "Authorization": f"Bearer {self.settings.notion_api_key}",
                    "Notion-Version": self.settings.notion_version,
                    "Content-Type": "application/json",
                },
            )

    # -- articles ---------------------------------------------------------

    def fetch_page(self, page_size: Optional[int] = None, cursor: Optional[str] = None) -> FetchPage:
        database_id = self.settings.notion_articles_database_id
        if not database_id or self.client is None:
            logger.warning("NOTION_ARTICLES_DATABASE_ID or NOTION_API_KEY is not set, returning empty articles")
            return single_page([])
        result = self._query(database_id, page_size or ARTICLE_PAGE_SIZE, cursor)
        items = tuple(article_from_page(page) for page in result.results)
        return FetchPage(items=items, has_more=result.has_more, next_cursor=result.next_cursor)

    def fetch_all(self) -> List[FeedItem]:
        return self._drain(self.fetch_page)

    def fetch_article(self, page_id: str) -> Optional[FeedItem]:
        """Full article with rendered body, or None when the store cannot deliver it."""
        if self.client is None:
            logger.warning("NOTION_API_KEY is not set, cannot fetch article %s", page_id)
            return None
        try:
            page = DocumentPage.model_validate(self.client.get(f"pages/{page_id}"))
            content = render_blocks(self._block_children(page_id))
        except (SourceError, ValidationError) as exc:
            logger.error("Error fetching article %s: %s", page_id, exc)
            return None
        return article_from_page(page, content=content, with_reading_time=True)

    # -- photos -----------------------------------------------------------

    def fetch_photos_page(self, page_size: Optional[int] = None, cursor: Optional[str] = None) -> FetchPage:
        database_id = self.settings.notion_photos_database_id
        if not database_id or self.client is None:
            logger.warning("NOTION_PHOTOS_DATABASE_ID or NOTION_API_KEY is not set, returning empty photos")
            return single_page([])
        result = self._query(database_id, page_size or PHOTO_PAGE_SIZE, cursor)
        items = tuple(photo_from_page(page) for page in result.results)
        return FetchPage(items=items, has_more=result.has_more, next_cursor=result.next_cursor)

    def fetch_all_photos(self) -> List[FeedItem]:
        return self._drain(self.fetch_photos_page)

    # -- durable-cached wrappers -----------------------------------------

    def get_all_articles(self) -> List[FeedItem]:
        return self.ctx.kv.with_cache(
            ARTICLES_CACHE_KEY,
            self.settings.kv_cache_ttl,
            self.fetch_all,
            encode=_encode_items,
            decode=_decode_items,
        )

    def get_all_photos(self) -> List[FeedItem]:
        return self.ctx.kv.with_cache(
            PHOTOS_CACHE_KEY,
            self.settings.kv_cache_ttl,
            self.fetch_all_photos,
            encode=_encode_items,
            decode=_decode_items,
        )

    def get_article(self, page_id: str) -> Optional[FeedItem]:
        return self.ctx.kv.with_cache(
            f"{ARTICLE_CACHE_PREFIX}{page_id}",
            self.settings.kv_cache_ttl,
            lambda: self.fetch_article(page_id),
            encode=item_to_dict,
            decode=item_from_dict,
        )

    # -- transport --------------------------------------------------------

    def _query(self, database_id: str, page_size: int, cursor: Optional[str]) -> DocumentQueryResult:
        payload: Dict[str, Any] = {
            "filter": {"property": self.settings.notion_published_property, "checkbox": {"equals": True}},
            "sorts": [{"timestamp": "created_time", "direction": "descending"}],
            "page_size": page_size,
        }
        if cursor:
            payload["start_cursor"] = cursor
        data = self.client.post(f"databases/{database_id}/query", payload)
        try:
            return DocumentQueryResult.model_validate(data)
        except ValidationError as exc:
            raise SourceError(self.name, f"unexpected query payload: {exc.error_count()} errors") from exc

    def _block_children(self, block_id: str) -> List[Dict[str, Any]]:
        blocks: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"page_size": BLOCK_PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            listing = BlockListing.model_validate(self.client.get(f"blocks/{block_id}/children", params=params))
            blocks.extend(listing.results)
            if not listing.has_more or not listing.next_cursor:
                return blocks
            cursor = listing.next_cursor

    @staticmethod
    def _drain(fetch) -> List[FeedItem]:
        items: List[FeedItem] = []
        cursor: Optional[str] = None
        while True:
            page = fetch(page_size=BULK_PAGE_SIZE, cursor=cursor)
            items.extend(page.items)
            if not page.has_more or not page.next_cursor:
                return items
            cursor = page.next_cursor


def _encode_items(items: List[FeedItem]) -> List[Dict[str, Any]]:
    return [item_to_dict(item) for item in items]


def _decode_items(data: List[Dict[str, Any]]) -> List[FeedItem]:
    return [item_from_dict(entry) for entry in data]
