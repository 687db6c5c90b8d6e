from __future__ import annotations

import copy
import time
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .types import ResearchResult


def normalize_topic(topic: str) -> str:
    return " ".join((topic or "").split()).lower()


@dataclass
class CacheEntry:
    result: ResearchResult
    cached_at: float


class ResearchCache:
    """Process-lifetime memo of completed research runs, keyed by normalized topic.

    Entries older than ``ttl_seconds`` are ignored (and dropped on access).
    Capacity is bounded: once ``max_entries`` is exceeded the least recently
    used entry is evicted. Guarded by a lock since API requests run on a
    threadpool.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 256, *, clock: Callable[[], float] = time.time) -> None:
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, topic: str) -> bool:
        return self.get(topic) is not None

    def get(self, topic: str) -> Optional[ResearchResult]:
        """Fresh cached result reshaped with the caller's topic string, or None."""
        key = normalize_topic(topic)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now - entry.cached_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            result = copy.deepcopy(entry.result)
        return replace(result, topic=topic)

    def put(self, topic: str, result: ResearchResult) -> None:
        key = normalize_topic(topic)
        entry = CacheEntry(result=copy.deepcopy(result), cached_at=self._clock())
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
