"""
Short-lived in-process memoization for aggregated datasets.

Each dataset (feed, archives, currently consuming) owns one ``MemoryCache``
slot. The slot only collapses rapid repeat requests inside one process; it
holds no fallback logic and there is no cross-dataset invalidation.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300


class MemoryCache(Generic[T]):
    def __init__(self, name: str, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self.name = name
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[T]:
        with self._lock:
            if self._stored_at is None:
                return None
            if self._clock() - self._stored_at < self.ttl_seconds:
                return self._value
            self._value = None
            self._stored_at = None
            return None

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._stored_at = self._clock()

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._stored_at = None
        logger.debug("Cleared memory cache %s", self.name)

    def read_through(self, producer: Callable[[], T]) -> T:
        """Return the cached value, or compute, store and return a fresh one."""
        cached = self.get()
        if cached is not None:
            logger.debug("Memory cache hit: %s", self.name)
            return cached
        value = producer()
        self.set(value)
        return value

    def snapshot(self) -> Dict[str, object]:
        """Return a lightweight view for status endpoints without exposing payload content."""
        with self._lock:
            age = None if self._stored_at is None else round(self._clock() - self._stored_at, 2)
            populated = age is not None and age < self.ttl_seconds
        return {"name": self.name, "ttl_seconds": self.ttl_seconds, "populated": populated, "age_seconds": age}
