"""
Heuristic extraction for media-log feed entries (books, films, music, games).

The log publishes free text such as ``最近在读: 某本书`` with ratings like
``推荐: ★★★★☆`` buried in the description. Each stage below is a pure
function; ``parse_media_entry`` runs them in a fixed order and every stage
only looks at its own inputs, so behaviour is reproducible offline.

Stage order:
  1. media type from the link (season/episode titles inside the movie
     namespace become tv)
  2. status keyword + title cleanup
  3. rating: star glyphs, then ``N/5`` / ``N/10``, then rating words;
     the first stage that yields a rating wins
  4. cover image, rewritten through the image proxy
  5. review text from a labelled line
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple
from urllib.parse import quote

from crawler.extractors.clean import find_first_image, strip_tags
from crawler.schemas.models import FeedEntry

from garden.models import Activity, MediaStatus, MediaType

REVIEW_MAX_LENGTH = 200
DEFAULT_RAW_STATUS = "done"

STATUS_KEYWORDS: Tuple[Tuple[str, str, str], ...] = (
    ("reading", "在读", "reading"),
    ("watched", "看过", "watched"),
    ("watching", "在看", "watching"),
    ("listening", "在听", "listening"),
    ("playing", "在玩", "playing"),
    ("want_read", "想读", "want to read"),
    ("want_watch", "想看", "want to watch"),
    ("want_listen", "想听", "want to listen"),
    ("want_play", "想玩", "want to play"),
)
IN_PROGRESS_STATUSES = frozenset({"reading", "watching", "listening", "playing"})

RECENTLY_PREFIX = "最近"
_LEADING_SEPARATOR_RE = re.compile(r"^\s*[:：]")
_SEASON_RE = re.compile(r"第\s*\d+\s*季|season|s\d+e\d+", re.IGNORECASE)
_STAR_RE = re.compile(r"(?:推荐|recommend)[：:]\s*([★☆]{1,5})|([★☆]{1,5})\s*$", re.IGNORECASE | re.MULTILINE)
_NUMERIC_RE = re.compile(r"(?<![\d.])(\d{1,2}(?:\.\d)?)\s*[/／]\s*(10|5)(?!\d)")
_REVIEW_RE = re.compile(r"(?:(?:备注|评论)[：:]?|(?:notes?|review)\s*[：:])\s*(.+)", re.IGNORECASE | re.DOTALL)

RATING_WORDS: Tuple[Tuple[str, int], ...] = (
    ("力荐", 5),
    ("推荐", 4),
    ("还行", 3),
    ("较差", 2),
    ("很差", 1),
)

ACTIVITY_BY_MEDIA_TYPE = {
    MediaType.BOOK: Activity.READING,
    MediaType.MUSIC: Activity.LISTENING,
    MediaType.MOVIE: Activity.WATCHING,
    MediaType.TV: Activity.WATCHING,
    MediaType.GAME: Activity.PLAYING,
}


@dataclass(frozen=True)
class MediaLogEntry:
    title: str
    raw_status: str
    status: MediaStatus
    media_type: MediaType
    rating: Optional[float] = None
    max_rating: Optional[int] = None
    review: Optional[str] = None
    cover: Optional[str] = None
    link: Optional[str] = None
    published_at: Optional[datetime] = None


def classify_media_type(link: Optional[str], title: str) -> MediaType:
    lowered = (link or "").lower()
    if "book.douban.com" in lowered:
        return MediaType.BOOK
    if "music.douban.com" in lowered:
        return MediaType.MUSIC
    if "/game/" in lowered:
        return MediaType.GAME
    if "movie.douban.com" in lowered and _SEASON_RE.search(title):
        return MediaType.TV
    return MediaType.MOVIE


def extract_status(title: str) -> Tuple[str, str]:
    """
    Return (raw status, cleaned title). Titles without a keyword keep the default status.

    Chinese tokens match anywhere in the title, case-sensitively. English
    keywords only count as a ``keyword:`` prefix so that words inside the
    media title itself (``Reading Lolita in Tehran``) are left alone.
    """
    for status, token, _ in STATUS_KEYWORDS:
        if token in title:
            cleaned = title.replace(RECENTLY_PREFIX, "", 1).replace(token, "", 1)
            cleaned = _LEADING_SEPARATOR_RE.sub("", cleaned, count=1)
            return status, cleaned.strip()
    for status, _, keyword in STATUS_KEYWORDS:
        prefix = re.match(rf"\s*(?:{RECENTLY_PREFIX}\s*)?{re.escape(keyword)}\s*[:：]", title)
        if prefix:
            return status, title[prefix.end():].strip()
    return DEFAULT_RAW_STATUS, title.strip()


def bucket_status(raw_status: str) -> MediaStatus:
    if raw_status in IN_PROGRESS_STATUSES:
        return MediaStatus.IN_PROGRESS
    if raw_status.startswith("want"):
        return MediaStatus.WISHLIST
    return MediaStatus.COMPLETED


def _rating_from_stars(text: str) -> Optional[Tuple[float, int]]:
    match = _STAR_RE.search(text)
    if not match:
        return None
    filled = (match.group(1) or match.group(2) or "").count("★")
    return (float(filled), 5) if filled else None


def _rating_from_fraction(text: str) -> Optional[Tuple[float, int]]:
    for match in _NUMERIC_RE.finditer(text):
        value, scale = float(match.group(1)), int(match.group(2))
        if 0 < value <= scale:
            return value, scale
    return None


def _rating_from_words(text: str) -> Optional[Tuple[float, int]]:
    for word, score in RATING_WORDS:
        if word in text:
            return float(score), 5
    return None


RATING_STAGES = (_rating_from_stars, _rating_from_fraction, _rating_from_words)


def extract_rating(text: str) -> Tuple[Optional[float], Optional[int]]:
    for stage in RATING_STAGES:
        found = stage(text)
        if found:
            return found
    return None, None


def proxy_image_url(url: str, proxy_path: str) -> str:
    return f"{proxy_path}?url={quote(url, safe='')}"


def extract_cover(raw_content: str, proxy_path: str) -> Optional[str]:
    src = find_first_image(raw_content)
    return proxy_image_url(src, proxy_path) if src else None


def extract_review(text: str) -> Optional[str]:
    match = _REVIEW_RE.search(strip_tags(text))
    if not match:
        return None
    review = match.group(1).strip()[:REVIEW_MAX_LENGTH]
    return review or None


def parse_media_entry(entry: FeedEntry, proxy_path: str) -> MediaLogEntry:
    text = entry.snippet or strip_tags(entry.raw_content)
    media_type = classify_media_type(entry.link, entry.title)
    raw_status, title = extract_status(entry.title)
    rating, max_rating = extract_rating(text)
    return MediaLogEntry(
        title=title,
        raw_status=raw_status,
        status=bucket_status(raw_status),
        media_type=media_type,
        rating=rating,
        max_rating=max_rating,
        review=extract_review(text),
        cover=extract_cover(entry.raw_content, proxy_path),
        link=entry.link,
        published_at=entry.published_at,
    )
