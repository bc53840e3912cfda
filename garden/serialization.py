"""
JSON wire shape for entities (camelCase keys, ISO-8601 timestamps).

The same shape is used for HTTP responses and for durable cache entries.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from garden.models import (
    ArchiveGroup,
    ArticleMetadata,
    AttachmentKind,
    ContentSource,
    CurrentItem,
    FeedItem,
    HealthStatus,
    ItemKind,
    MediaAttachment,
    MediaLogMetadata,
    MediaStatus,
    MediaType,
    Metadata,
    MicroblogMetadata,
    PhotoExif,
    PhotoMetadata,
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def metadata_to_dict(metadata: Optional[Metadata]) -> Optional[Dict[str, Any]]:
    if metadata is None:
        return None
    if isinstance(metadata, ArticleMetadata):
        return {
            "readingTimeMinutes": metadata.reading_time_minutes,
            "tags": sorted(metadata.tags),
            "excerpt": metadata.excerpt,
            "featured": metadata.featured,
        }
    if isinstance(metadata, MicroblogMetadata):
        return {
            "platform": metadata.platform,
            "channelName": metadata.channel_name,
            "likeCount": metadata.like_count,
            "replyCount": metadata.reply_count,
            "attachments": [
                {
                    "kind": attachment.kind.value,
                    "url": attachment.url,
                    "thumbnail": attachment.thumbnail,
                    "altText": attachment.alt_text,
                }
                for attachment in metadata.attachments
            ],
        }
    if isinstance(metadata, MediaLogMetadata):
        return {
            "mediaType": metadata.media_type.value,
            "rating": metadata.rating,
            "maxRating": metadata.max_rating,
            "review": metadata.review,
            "status": metadata.status.value,
            "creator": metadata.creator,
            "year": metadata.year,
        }
    exif = metadata.exif
    return {
        "album": metadata.album,
        "location": metadata.location,
        "exif": None
        if exif is None
        else {
            "camera": exif.camera,
            "lens": exif.lens,
            "iso": exif.iso,
            "shutterSpeed": exif.shutter_speed,
            "aperture": exif.aperture,
            "focalLengthMm": exif.focal_length_mm,
            "takenAt": _iso(exif.taken_at),
            "gpsCoordinates": list(exif.gps_coordinates) if exif.gps_coordinates else None,
        },
    }


def metadata_from_dict(kind: ItemKind, data: Optional[Dict[str, Any]]) -> Optional[Metadata]:
    if not data:
        return None
    if kind == ItemKind.ARTICLE:
        return ArticleMetadata(
            reading_time_minutes=data.get("readingTimeMinutes"),
            tags=frozenset(data.get("tags") or []),
            excerpt=data.get("excerpt") or "",
            featured=bool(data.get("featured")),
        )
    if kind == ItemKind.MICROBLOG:
        return MicroblogMetadata(
            platform=data.get("platform") or "",
            channel_name=data.get("channelName") or "",
            like_count=data.get("likeCount"),
            reply_count=data.get("replyCount"),
            attachments=tuple(
                MediaAttachment(
                    kind=AttachmentKind(entry.get("kind", AttachmentKind.IMAGE.value)),
                    url=entry.get("url") or "",
                    thumbnail=entry.get("thumbnail"),
                    alt_text=entry.get("altText"),
                )
                for entry in data.get("attachments") or []
            ),
        )
    if kind == ItemKind.MEDIA:
        return MediaLogMetadata(
            media_type=MediaType(data.get("mediaType", MediaType.MOVIE.value)),
            status=MediaStatus(data.get("status", MediaStatus.COMPLETED.value)),
            rating=data.get("rating"),
            max_rating=data.get("maxRating"),
            review=data.get("review"),
            creator=data.get("creator"),
            year=data.get("year"),
        )
    exif_data = data.get("exif")
    exif = None
    if exif_data:
        gps = exif_data.get("gpsCoordinates")
        exif = PhotoExif(
            camera=exif_data.get("camera"),
            lens=exif_data.get("lens"),
            iso=exif_data.get("iso"),
            shutter_speed=exif_data.get("shutterSpeed"),
            aperture=exif_data.get("aperture"),
            focal_length_mm=exif_data.get("focalLengthMm"),
            taken_at=_as_datetime(exif_data.get("takenAt")),
            gps_coordinates=(float(gps[0]), float(gps[1])) if gps else None,
        )
    return PhotoMetadata(album=data.get("album"), location=data.get("location"), exif=exif)


def item_to_dict(item: FeedItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "kind": item.kind.value,
        "title": item.title,
        "content": item.content,
        "publishedAt": _iso(item.published_at),
        "source": item.source.value,
        "url": item.url,
        "coverImage": item.cover_image,
        "metadata": metadata_to_dict(item.metadata),
    }


def item_from_dict(data: Dict[str, Any]) -> FeedItem:
    kind = ItemKind(data["kind"])
    return FeedItem(
        id=data["id"],
        kind=kind,
        title=data.get("title"),
        content=data.get("content") or "",
        published_at=_as_datetime(data.get("publishedAt")) or datetime.now(timezone.utc),
        source=ContentSource(data["source"]),
        url=data.get("url"),
        cover_image=data.get("coverImage"),
        metadata=metadata_from_dict(kind, data.get("metadata")),
    )


def archive_group_to_dict(group: ArchiveGroup) -> Dict[str, Any]:
    return {
        "year": group.year,
        "count": group.count,
        "items": [
            {
                "id": entry.id,
                "title": entry.title,
                "publishedAt": _iso(entry.published_at),
                "kind": entry.kind.value,
                "url": entry.url,
            }
            for entry in group.items
        ],
    }


def current_item_to_dict(item: CurrentItem) -> Dict[str, Any]:
    return {
        "activity": item.activity.value,
        "mediaType": item.media_type.value,
        "title": item.title,
        "creator": item.creator,
        "cover": item.cover,
        "url": item.url,
        "publishedAt": _iso(item.published_at),
    }


def health_to_dict(status: HealthStatus) -> Dict[str, Any]:
    return {
        "name": status.name,
        "healthy": status.healthy,
        "last_error": status.last_error,
        "last_success": _iso(status.last_success),
        "items_last_fetch": status.items_last_fetch,
        "latency_ms": status.latency_ms,
        "extra": status.extra,
    }
