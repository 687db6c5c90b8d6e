from __future__ import annotations

import time
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse
from urllib import robotparser

from ..core.config import ResearchConfig, get_default_config
from .fetch import fetch_text
from .types import FetchError

logger = logging.getLogger(__name__)


@dataclass
class RobotsRecord:
    ts: float
    parser: Optional[robotparser.RobotFileParser]
    # Set when robots.txt could not be retrieved; the policy decides what that means
    unreachable: bool = False


class RobotsGate:
    """Per-host robots.txt policy.

    ``robots.txt`` is fetched once per host (memoized for
    ``cfg.robots_ttl_seconds``). When it cannot be fetched (transport error,
    timeout or 5xx) the decision follows ``cfg.robots_fail_open``: fail-open
    treats the page as allowed, fail-closed blocks it. A 4xx answer means the
    host publishes no rules and everything is allowed.
    """

    def __init__(self, client: Any, cfg: Optional[ResearchConfig] = None, *, clock: Callable[[], float] = time.time) -> None:
        self.client = client
        self.cfg = cfg or get_default_config()
        self._clock = clock
        self._mem: Dict[str, RobotsRecord] = {}
        self._lock = threading.Lock()

    def _fetch(self, scheme: str, netloc: str) -> RobotsRecord:
        robots_url = f"{scheme}://{netloc}/robots.txt"
        now = self._clock()
        try:
            res = fetch_text(self.client, robots_url, cfg=self.cfg, timeout=self.cfg.robots_timeout_s, accept="text/plain,*/*;q=0.1", require_text=False)
            raw = res.text
        except FetchError as e:
            if 400 <= e.status < 500 and e.status != 429:
                raw = ''
            else:
                logger.debug("robots.txt unreachable for %s: %s", netloc, e)
                return RobotsRecord(ts=now, parser=None, unreachable=True)
        rp = robotparser.RobotFileParser()
        rp.parse(raw.splitlines())
        return RobotsRecord(ts=now, parser=rp)

    def record_for(self, url: str) -> RobotsRecord:
        parsed = urlparse(url)
        netloc = (parsed.netloc or '').lower()
        scheme = (parsed.scheme or 'https').lower()
        key = f"{scheme}://{netloc}"
        now = self._clock()
        with self._lock:
            rec = self._mem.get(key)
        if rec and (now - rec.ts) < self.cfg.robots_ttl_seconds:
            return rec
        rec = self._fetch(scheme, netloc)
        with self._lock:
            self._mem[key] = rec
        return rec

    def is_allowed(self, url: str, user_agent: Optional[str] = None) -> bool:
        if not self.cfg.respect_robots:
            return True
        try:
            rec = self.record_for(url)
        except Exception as e:
            logger.debug("robots check failed for %s: %s", url, e)
            return self.cfg.robots_fail_open
        if rec.unreachable or rec.parser is None:
            return self.cfg.robots_fail_open
        try:
            return bool(rec.parser.can_fetch(user_agent or self.cfg.user_agent, url))
        except Exception:
            return self.cfg.robots_fail_open
