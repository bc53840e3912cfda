"""
Static dataset served when no source is configured or every source failed.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple

from garden.archives import build_archive_groups
from garden.models import (
    Activity,
    ArchiveGroup,
    ArticleMetadata,
    ContentSource,
    CurrentItem,
    FeedItem,
    ItemKind,
    MediaLogMetadata,
    MediaStatus,
    MediaType,
    MicroblogMetadata,
    PhotoExif,
    PhotoMetadata,
)


def _utc(*parts: int) -> datetime:
    return datetime(*parts, tzinfo=timezone.utc)


FALLBACK_ITEMS: Tuple[FeedItem, ...] = (
    FeedItem(
        id="article-1",
        kind=ItemKind.ARTICLE,
        title="用 Notion 搭建第二大脑",
        content=(
            "<p>在尝试了各种笔记软件多年之后，我终于找到了一个适合自己的系统。</p>\n"
            "<h2>核心原则</h2>\n"
            "<p>把笔记当作积木而非静态档案。每条笔记都应该是可操作的、可关联的、可发现的。</p>"
        ),
        published_at=_utc(2025, 2, 15),
        source=ContentSource.DOCUMENT_STORE,
        url="/articles/building-second-brain",
        cover_image="https://images.unsplash.com/photo-1484480974693-6ca0a78fb36b?w=800&q=80",
        metadata=ArticleMetadata(
            reading_time_minutes=8,
            tags=frozenset({"效率", "Notion", "知识管理"}),
            excerpt="我是如何使用 Notion 来组织数字生活、搭建第二大脑的。",
            featured=True,
        ),
    ),
    FeedItem(
        id="article-2",
        kind=ItemKind.ARTICLE,
        title="慢读的艺术",
        content="<p>在无限滚动的时代，慢读是一种激进的行为。它关乎质量而非数量。</p>",
        published_at=_utc(2025, 2, 10),
        source=ContentSource.DOCUMENT_STORE,
        url="/articles/slow-reading",
        cover_image="https://images.unsplash.com/photo-1512820790803-83ca734da794?w=800&q=80",
        metadata=ArticleMetadata(
            reading_time_minutes=5,
            tags=frozenset({"阅读", "正念"}),
            excerpt="为什么慢读可能是你做的最有生产力的事情。",
        ),
    ),
    FeedItem(
        id="article-3",
        kind=ItemKind.ARTICLE,
        title="为可读性而设计",
        content="<p>好的排版是隐形的。伟大的排版是难忘的。</p>",
        published_at=_utc(2025, 1, 28),
        source=ContentSource.DOCUMENT_STORE,
        url="/articles/designing-readability",
        metadata=ArticleMetadata(reading_time_minutes=6, tags=frozenset({"设计", "排版"}), excerpt="Web 排版设计的原则。"),
    ),
    FeedItem(
        id="article-4",
        kind=ItemKind.ARTICLE,
        title="我的 2024 写作工作流",
        content="<p>从构思到发布，以下是我如何跨平台写作和发布内容。</p>",
        published_at=_utc(2024, 12, 20),
        source=ContentSource.DOCUMENT_STORE,
        url="/articles/writing-workflow-2024",
        metadata=ArticleMetadata(reading_time_minutes=10, tags=frozenset({"写作", "工作流"}), excerpt="一窥我的端到端写作流程。"),
    ),
    FeedItem(
        id="micro-1",
        kind=ItemKind.MICROBLOG,
        content="终于搭好了我的数字花园。目标：写一次，发到处，不维护。",
        published_at=_utc(2025, 2, 18),
        source=ContentSource.MESSAGING_CHANNEL,
        metadata=MicroblogMetadata(platform="telegram", channel_name="garden", like_count=12, reply_count=3),
    ),
    FeedItem(
        id="micro-2",
        kind=ItemKind.MICROBLOG,
        content="第三次读《程序员修炼之道》。有些书是会和你一起成长的。",
        published_at=_utc(2025, 2, 16),
        source=ContentSource.MESSAGING_CHANNEL,
        metadata=MicroblogMetadata(platform="telegram", channel_name="garden", like_count=8),
    ),
    FeedItem(
        id="media-1",
        kind=ItemKind.MEDIA,
        title="设计心理学",
        content="任何为人类设计东西的人都应该读的经典之作。",
        published_at=_utc(2025, 2, 14),
        source=ContentSource.MEDIA_LOG,
        cover_image="https://images.unsplash.com/photo-1544716278-ca5e3f4abd8c?w=400&q=80",
        metadata=MediaLogMetadata(
            media_type=MediaType.BOOK,
            status=MediaStatus.COMPLETED,
            rating=5,
            max_rating=5,
            review="必读。改变了我对用户界面的思考方式。",
            creator="唐纳德·诺曼",
            year=1988,
        ),
    ),
    FeedItem(
        id="media-2",
        kind=ItemKind.MEDIA,
        title="奥本海默",
        content="三个小时的道德复杂性。",
        published_at=_utc(2025, 2, 8),
        source=ContentSource.MEDIA_LOG,
        metadata=MediaLogMetadata(
            media_type=MediaType.MOVIE,
            status=MediaStatus.COMPLETED,
            rating=9,
            max_rating=10,
            creator="克里斯托弗·诺兰",
            year=2023,
        ),
    ),
    FeedItem(
        id="photo-1",
        kind=ItemKind.PHOTO,
        title="金色黄昏",
        content="捕捉到一天中最后的光线。",
        published_at=_utc(2025, 2, 17),
        source=ContentSource.DOCUMENT_STORE,
        url="/photos/photo-1",
        cover_image="https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=800&q=80",
        metadata=PhotoMetadata(
            album="日常散步",
            location="旧金山",
            exif=PhotoExif(
                camera="Fujifilm X-T5",
                lens="XF 23mm f/2",
                iso=400,
                shutter_speed="1/500",
                aperture="f/8",
                focal_length_mm=23,
                taken_at=_utc(2025, 2, 17, 17, 45),
            ),
        ),
    ),
    FeedItem(
        id="photo-2",
        kind=ItemKind.PHOTO,
        title="街头",
        content="",
        published_at=_utc(2025, 2, 15),
        source=ContentSource.DOCUMENT_STORE,
        url="/photos/photo-2",
        cover_image="https://images.unsplash.com/photo-1449824913935-59a10b8d2000?w=800&q=80",
        metadata=PhotoMetadata(
            album="街头摄影",
            location="东京",
            exif=PhotoExif(camera="Leica Q3", lens="Summilux 28mm f/1.7", iso=200, shutter_speed="1/1000", aperture="f/4"),
        ),
    ),
    FeedItem(
        id="article-5",
        kind=ItemKind.ARTICLE,
        title="使用无聊技术的理由",
        content="<p>为有趣的问题选择无聊的技术。</p>",
        published_at=_utc(2024, 9, 5),
        source=ContentSource.DOCUMENT_STORE,
        url="/articles/boring-technology",
        metadata=ArticleMetadata(reading_time_minutes=6, tags=frozenset({"工程", "架构"})),
    ),
)

FALLBACK_CURRENT_ITEMS: Tuple[CurrentItem, ...] = (
    CurrentItem(
        activity=Activity.READING,
        media_type=MediaType.BOOK,
        title="思考，快与慢",
        creator="丹尼尔·卡尼曼",
        cover="https://images.unsplash.com/photo-1544716278-ca5e3f4abd8c?w=100&q=80",
        published_at=_utc(2025, 2, 15),
    ),
    CurrentItem(
        activity=Activity.WATCHING,
        media_type=MediaType.TV,
        title="幕府将军",
        cover="https://images.unsplash.com/photo-1489599849927-2ee91cede3ba?w=100&q=80",
        published_at=_utc(2025, 2, 12),
    ),
    CurrentItem(
        activity=Activity.LISTENING,
        media_type=MediaType.MUSIC,
        title="机核 GADIO 游戏电台",
        published_at=_utc(2025, 2, 10),
    ),
)


def fallback_feed() -> List[FeedItem]:
    return sorted(FALLBACK_ITEMS, key=lambda item: item.published_at, reverse=True)


def fallback_photos() -> List[FeedItem]:
    return [item for item in fallback_feed() if item.kind == ItemKind.PHOTO]


def fallback_archive_groups() -> List[ArchiveGroup]:
    return build_archive_groups(FALLBACK_ITEMS)
