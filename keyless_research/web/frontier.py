from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Optional, Set

from .fetch import canonicalize_url

# Insertion priorities: local/priority links go to the front, everything else to the back
PRIORITY_LOCAL = 0
PRIORITY_OTHER = 1


class Frontier:
    """Double-ended crawl queue with a size cap.

    ``push(url, PRIORITY_LOCAL)`` inserts at the front (locality first),
    ``push(url, PRIORITY_OTHER)`` appends at the back (breadth). URLs are
    keyed on their canonical form; a URL already queued is not queued twice.
    The cap only limits growth through ``push``; ``seed`` may start above it.
    """

    def __init__(self, cap: Optional[int] = None) -> None:
        self.cap = cap
        self._queue: Deque[str] = deque()
        self._queued: Set[str] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    def __iter__(self):
        return iter(list(self._queue))

    def seed(self, urls: Iterable[str]) -> None:
        for u in urls:
            key = canonicalize_url(u)
            if key not in self._queued:
                self._queued.add(key)
                self._queue.append(key)

    def push(self, url: str, priority: int = PRIORITY_OTHER) -> bool:
        key = canonicalize_url(url)
        if key in self._queued:
            return False
        if self.cap is not None and len(self._queue) >= self.cap:
            return False
        self._queued.add(key)
        if priority == PRIORITY_LOCAL:
            self._queue.appendleft(key)
        else:
            self._queue.append(key)
        return True

    def push_many(self, urls: Iterable[str], priority: int = PRIORITY_OTHER) -> int:
        if priority != PRIORITY_LOCAL:
            return sum(1 for u in urls if self.push(u, priority))
        # Front insertion keeps document order: choose in order, insert reversed
        chosen = []
        keys = set()
        room = None if self.cap is None else max(0, self.cap - len(self._queue))
        for u in urls:
            key = canonicalize_url(u)
            if key in self._queued or key in keys:
                continue
            if room is not None and len(chosen) >= room:
                break
            keys.add(key)
            chosen.append(key)
        for key in reversed(chosen):
            self._queued.add(key)
            self._queue.appendleft(key)
        return len(chosen)

    def pop(self) -> str:
        key = self._queue.popleft()
        self._queued.discard(key)
        return key


class VisitedSet:
    """URLs already attempted in this run (success or failure)."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def __contains__(self, url: str) -> bool:
        return canonicalize_url(url) in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, url: str) -> None:
        self._seen.add(canonicalize_url(url))
