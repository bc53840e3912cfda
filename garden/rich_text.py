"""
Convert document-store block trees into semantic HTML and estimate reading time.

Every function here is pure: blocks in, markup out. Fetching the blocks is
the adapter's job.
"""
from __future__ import annotations

import math
import re
from html import escape, unescape
from typing import Any, Dict, Iterable, List, Optional

from crawler.extractors.clean import strip_tags

CJK_RE = re.compile(r"[\u4e00-\u9fa5]")
WORDS_PER_MINUTE = 200
CJK_CHARS_PER_MINUTE = 400

# Applied in this order; each wraps the accumulated string once.
ANNOTATION_TAGS = (
    ("bold", "strong"),
    ("italic", "em"),
    ("code", "code"),
    ("strikethrough", "s"),
    ("underline", "u"),
)

SIMPLE_BLOCKS = {
    "paragraph": "p",
    "heading_1": "h1",
    "heading_2": "h2",
    "heading_3": "h3",
    "bulleted_list_item": "li",
    "numbered_list_item": "li",
    "quote": "blockquote",
}


def plain_text(rich_text: Optional[Iterable[Dict[str, Any]]]) -> str:
    return "".join(segment.get("plain_text", "") for segment in rich_text or [])


def render_rich_text(rich_text: Optional[Iterable[Dict[str, Any]]]) -> str:
    parts: List[str] = []
    for segment in rich_text or []:
        content = escape(segment.get("plain_text", ""), quote=False)
        annotations = segment.get("annotations") or {}
        for flag, tag in ANNOTATION_TAGS:
            if annotations.get(flag):
                content = f"<{tag}>{content}</{tag}>"
        href = segment.get("href")
        if href:
            content = f'<a href="{escape(href)}">{content}</a>'
        parts.append(content)
    return "".join(parts)


def file_url(file_obj: Optional[Dict[str, Any]]) -> Optional[str]:
    """URL of a hosted or external file object."""
    if not file_obj:
        return None
    kind = file_obj.get("type")
    if kind in ("file", "external"):
        return (file_obj.get(kind) or {}).get("url")
    return None


def render_block(block: Dict[str, Any]) -> str:
    block_type = block.get("type") or ""
    body = block.get(block_type) or {}

    tag = SIMPLE_BLOCKS.get(block_type)
    if tag:
        return f"<{tag}>{render_rich_text(body.get('rich_text'))}</{tag}>"

    if block_type == "code":
        language = escape(body.get("language") or "plain")
        return f'<pre><code class="language-{language}">{render_rich_text(body.get("rich_text"))}</code></pre>'

    if block_type == "image":
        url = escape(file_url(body) or "")
        alt = escape(plain_text(body.get("caption")))
        caption = render_rich_text(body.get("caption"))
        figcaption = f"<figcaption>{caption}</figcaption>" if caption else ""
        return f'<figure><img src="{url}" alt="{alt}" loading="lazy" />{figcaption}</figure>'

    if block_type == "divider":
        return "<hr />"

    if block_type == "callout":
        return f'<aside class="callout">{render_rich_text(body.get("rich_text"))}</aside>'

    if block_type == "toggle":
        # nested children are intentionally not rendered
        return f"<details><summary>{render_rich_text(body.get('rich_text'))}</summary></details>"

    if isinstance(body, dict) and body.get("rich_text"):
        text = render_rich_text(body["rich_text"])
        if text:
            return f"<p>{text}</p>"
    return ""


def render_blocks(blocks: Iterable[Dict[str, Any]]) -> str:
    return "\n".join(html for html in (render_block(block) for block in blocks) if html)


def reading_time(content: str) -> int:
    """Minutes to read: CJK ideographs at 400/min plus other words at 200/min, at least 1."""
    text = unescape(strip_tags(content))
    cjk_chars = len(CJK_RE.findall(text))
    words = len(CJK_RE.sub("", text).split())
    minutes = math.ceil(cjk_chars / CJK_CHARS_PER_MINUTE + words / WORDS_PER_MINUTE)
    return max(1, minutes)
