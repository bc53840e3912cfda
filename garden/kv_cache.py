"""
Durable key-value cache tier for fully materialized result sets.

Entries round-trip through JSON, so timestamp fields are revived on read.
Every store failure is logged and treated as a cache miss; writes from
``with_cache`` are dispatched to a background executor and never awaited by
the caller.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Set, TypeVar

from garden.security import redact_secrets

logger = logging.getLogger(__name__)

T = TypeVar("T")

DATE_FIELDS = frozenset({"date", "publishedAt", "takenAt"})

_WRITE_EXECUTOR = ThreadPoolExecutor(max_workers=2, thread_name_prefix="kv-write")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str, expiration_ttl: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class FileKeyValueStore:
    """JSON-file backed store with per-entry expiration, safe to share between threads."""

    def __init__(self, storage_path: Path, clock: Callable[[], float] = time.time) -> None:
        self.storage_path = Path(storage_path)
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._load_entries().get(key)
        if not entry:
            return None
        if entry.get("expires_at", 0) <= self._clock():
            return None
        return entry.get("value")

    def put(self, key: str, value: str, expiration_ttl: int) -> None:
        with self._lock:
            now = self._clock()
            entries = {k: v for k, v in self._load_entries().items() if v.get("expires_at", 0) > now}
            entries[key] = {"value": value, "expires_at": now + expiration_ttl}
            self._write_entries(entries)

    def delete(self, key: str) -> None:
        with self._lock:
            entries = self._load_entries()
            if entries.pop(key, None) is not None:
                self._write_entries(entries)

    def _load_entries(self) -> Dict[str, Dict[str, Any]]:
        if not self.storage_path.exists():
            return {}
        blob = json.loads(self.storage_path.read_text(encoding="utf-8") or "{}")
        return blob.get("entries", {})

    def _write_entries(self, entries: Dict[str, Dict[str, Any]]) -> None:
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"entries": entries, "version": 1}
        tmp_path = self.storage_path.with_suffix(self.storage_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.storage_path)


@dataclass
class CacheLookup:
    found: bool
    value: Any = None
    error: Optional[str] = None


@dataclass
class CacheWrite:
    success: bool
    error: Optional[str] = None


def revive_dates(node: Any) -> Any:
    """Walk decoded JSON and turn ISO strings under timestamp keys back into datetimes."""
    if isinstance(node, list):
        return [revive_dates(child) for child in node]
    if isinstance(node, dict):
        revived = {}
        for key, value in node.items():
            if key in DATE_FIELDS and isinstance(value, str):
                revived[key] = _parse_timestamp(value)
            else:
                revived[key] = revive_dates(value)
        return revived
    return node


def _parse_timestamp(value: str) -> Any:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DurableCache:
    def __init__(self, store: Optional[KeyValueStore], executor: Optional[Executor] = None) -> None:
        self.store = store
        self._executor = executor or _WRITE_EXECUTOR
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()

    def is_available(self) -> bool:
        return self.store is not None

    def get(self, key: str) -> CacheLookup:
        if self.store is None:
            return CacheLookup(found=False)
        try:
            raw = self.store.get(key)
            if raw is None:
                return CacheLookup(found=False)
            return CacheLookup(found=True, value=revive_dates(json.loads(raw)))
        except Exception as exc:
            message = redact_secrets(str(exc))
            logger.error("KV get error for key %s: %s", key, message)
            return CacheLookup(found=False, error=message)

    def set(self, key: str, value: Any, ttl_seconds: int) -> CacheWrite:
        if self.store is None:
            return CacheWrite(success=False, error="store unavailable")
        try:
            payload = json.dumps(value, default=_json_default, ensure_ascii=False)
            self.store.put(key, payload, expiration_ttl=ttl_seconds)
            return CacheWrite(success=True)
        except Exception as exc:
            message = redact_secrets(str(exc))
            logger.error("KV set error for key %s: %s", key, message)
            return CacheWrite(success=False, error=message)

    def delete(self, key: str) -> None:
        if self.store is None:
            return
        try:
            self.store.delete(key)
        except Exception as exc:
            logger.error("KV delete error for key %s: %s", key, redact_secrets(str(exc)))

    def with_cache(
        self,
        key: str,
        ttl_seconds: int,
        producer: Callable[[], T],
        encode: Optional[Callable[[T], Any]] = None,
        decode: Optional[Callable[[Any], T]] = None,
    ) -> T:
        if self.store is None:
            return producer()

        lookup = self.get(key)
        if lookup.found and lookup.value is not None:
            try:
                value = decode(lookup.value) if decode else lookup.value
                logger.info("KV cache hit: %s", key)
                return value
            except Exception as exc:
                logger.warning("Discarding undecodable KV entry %s: %s", key, exc)

        logger.info("KV cache miss: %s, fetching...", key)
        fresh = producer()
        if fresh is not None:
            self._schedule_write(key, encode(fresh) if encode else fresh, ttl_seconds)
        return fresh

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until writes scheduled so far have finished."""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def _schedule_write(self, key: str, value: Any, ttl_seconds: int) -> None:
        future = self._executor.submit(self.set, key, value, ttl_seconds)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(lambda done: self._on_write_done(key, done))

    def _on_write_done(self, key: str, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        result = future.result()
        if not result.success:
            logger.warning("Failed to cache %s: %s", key, result.error)
