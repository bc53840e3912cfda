"""
Identity helpers for crawler outputs: content digests and de-duplication.
"""
from __future__ import annotations

import hashlib
from typing import Callable, Hashable, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def make_digest(parts: Sequence[Optional[str]]) -> str:
    joined = "|".join(part or "" for part in parts)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def stable_id(prefix: str, parts: Sequence[Optional[str]], length: int = 16) -> str:
    """Deterministic identifier for records that lack a native one."""
    return f"{prefix}-{make_digest(parts)[:length]}"


def dedupe_by_key(items: Iterable[T], key_fn: Callable[[T], Hashable]) -> List[T]:
    seen = set()
    result: List[T] = []
    for item in items:
        key = key_fn(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result
