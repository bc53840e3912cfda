"""
Core data structures shared by every source adapter and the aggregator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


class ItemKind(str, Enum):
    ARTICLE = "article"
    MICROBLOG = "microblog"
    MEDIA = "media"
    PHOTO = "photo"


class ContentSource(str, Enum):
    DOCUMENT_STORE = "document_store"
    MESSAGING_CHANNEL = "messaging_channel"
    MEDIA_LOG = "media_log"
    GENERIC_FEED = "generic_feed"


class MediaType(str, Enum):
    BOOK = "book"
    MOVIE = "movie"
    TV = "tv"
    MUSIC = "music"
    GAME = "game"


class MediaStatus(str, Enum):
    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    WISHLIST = "wishlist"


class AttachmentKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    LINK = "link"


class Activity(str, Enum):
    READING = "reading"
    WATCHING = "watching"
    LISTENING = "listening"
    PLAYING = "playing"


@dataclass(frozen=True)
class ArticleMetadata:
    reading_time_minutes: Optional[int] = None
    tags: FrozenSet[str] = frozenset()
    excerpt: str = ""
    featured: bool = False


@dataclass(frozen=True)
class MediaAttachment:
    kind: AttachmentKind
    url: str
    thumbnail: Optional[str] = None
    alt_text: Optional[str] = None


@dataclass(frozen=True)
class MicroblogMetadata:
    platform: str
    channel_name: str
    like_count: Optional[int] = None
    reply_count: Optional[int] = None
    attachments: Tuple[MediaAttachment, ...] = ()


@dataclass(frozen=True)
class MediaLogMetadata:
    media_type: MediaType
    status: MediaStatus = MediaStatus.COMPLETED
    rating: Optional[float] = None
    max_rating: Optional[int] = None
    review: Optional[str] = None
    creator: Optional[str] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class PhotoExif:
    camera: Optional[str] = None
    lens: Optional[str] = None
    iso: Optional[int] = None
    shutter_speed: Optional[str] = None
    aperture: Optional[str] = None
    focal_length_mm: Optional[float] = None
    taken_at: Optional[datetime] = None
    gps_coordinates: Optional[Tuple[float, float]] = None

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.__dataclass_fields__)


@dataclass(frozen=True)
class PhotoMetadata:
    album: Optional[str] = None
    location: Optional[str] = None
    exif: Optional[PhotoExif] = None


Metadata = Union[ArticleMetadata, MicroblogMetadata, MediaLogMetadata, PhotoMetadata]

METADATA_BY_KIND = {
    ItemKind.ARTICLE: ArticleMetadata,
    ItemKind.MICROBLOG: MicroblogMetadata,
    ItemKind.MEDIA: MediaLogMetadata,
    ItemKind.PHOTO: PhotoMetadata,
}


@dataclass(frozen=True)
class FeedItem:
    """
    Normalized representation of an article/post/log entry/photo across all sources.
    """

    id: str
    kind: ItemKind
    content: str
    published_at: datetime
    source: ContentSource
    title: Optional[str] = None
    url: Optional[str] = None
    cover_image: Optional[str] = None
    metadata: Optional[Metadata] = None

    def __post_init__(self) -> None:
        if self.published_at.tzinfo is None:
            raise ValueError(f"FeedItem {self.id} published_at must be timezone-aware")
        if self.metadata is not None and not isinstance(self.metadata, METADATA_BY_KIND[self.kind]):
            raise ValueError(
                f"FeedItem {self.id} of kind '{self.kind.value}' cannot carry {type(self.metadata).__name__}"
            )

    @property
    def slug(self) -> str:
        if self.url:
            return self.url.rstrip("/").rsplit("/", 1)[-1]
        return self.id


@dataclass(frozen=True)
class FetchPage:
    items: Tuple[FeedItem, ...]
    has_more: bool = False
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class ArchiveEntry:
    id: str
    title: str
    published_at: datetime
    kind: ItemKind
    url: str


@dataclass(frozen=True)
class ArchiveGroup:
    year: int
    items: Tuple[ArchiveEntry, ...]
    count: int


@dataclass(frozen=True)
class CurrentItem:
    activity: Activity
    media_type: MediaType
    title: str
    published_at: datetime
    cover: Optional[str] = None
    url: Optional[str] = None
    creator: Optional[str] = None


@dataclass
class HealthStatus:
    name: str
    healthy: bool
    last_error: Optional[str] = None
    last_success: Optional[datetime] = None
    items_last_fetch: int = 0
    latency_ms: Optional[float] = None
    extra: dict = field(default_factory=dict)
