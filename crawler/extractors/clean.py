"""
Text helpers for turning feed markup into plain text.
"""
from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

_BLOCK_TAGS = [
    "p", "div", "li", "blockquote", "section", "tr", "ul", "ol", "table",
    "h1", "h2", "h3", "h4", "h5", "h6",
]


def html_to_text(markup: Optional[str]) -> str:
    """Strip tags while keeping line breaks for <br> and block elements."""
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "lxml")
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after("\n")
    lines = [line.strip() for line in soup.get_text().splitlines()]
    text = "\n".join(lines)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def strip_tags(markup: Optional[str]) -> str:
    return _TAG_RE.sub("", markup or "")


def find_first_image(markup: Optional[str]) -> Optional[str]:
    if not markup:
        return None
    match = _IMG_SRC_RE.search(markup)
    return match.group(1) if match else None
