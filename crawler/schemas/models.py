"""
Pydantic models for upstream records before they are normalized.
Feed entries keep both the raw markup and a text snippet so adapters can
scan markup (images) and text (ratings, reviews) independently.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class FeedEntry(BaseModel):
    guid: Optional[str] = None
    link: Optional[str] = None
    title: str = ""
    raw_content: str = ""
    snippet: str = ""
    author: Optional[str] = None
    published_at: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def _trim_title(cls, value: Optional[str]) -> str:
        return (value or "").strip()

    @field_validator("guid", "link", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None


class ParsedFeed(BaseModel):
    title: str = ""
    link: Optional[str] = None
    entries: List[FeedEntry] = []


class DocumentPage(BaseModel):
    """A page returned by the document store's query or retrieve endpoints."""

    id: str
    created_time: datetime
    last_edited_time: Optional[datetime] = None
    url: Optional[str] = None
    properties: Dict[str, Any] = {}


class DocumentQueryResult(BaseModel):
    results: List[DocumentPage] = []
    has_more: bool = False
    next_cursor: Optional[str] = None


class BlockListing(BaseModel):
    results: List[Dict[str, Any]] = []
    has_more: bool = False
    next_cursor: Optional[str] = None
