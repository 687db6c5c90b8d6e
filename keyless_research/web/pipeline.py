from __future__ import annotations

import time
import logging
import threading
from typing import Any, Callable, List, Optional

from ..core.config import ResearchConfig, get_default_config
from .cache import ResearchCache
from .compose import compose_result
from .crawler import CrawlScheduler
from .dictionary import DictionaryClient
from .extract import ContentExtractor
from .fetch import build_client
from .robots import RobotsGate
from .search import search
from .types import CrawlBudget, Fragment, InvalidTopicError, ResearchError, ResearchResult

logger = logging.getLogger(__name__)


class ResearchEngine:
    """Entry point of the research core: ``research(topic, ...) -> ResearchResult``.

    Order of a run: validate input and budget (no I/O), cache lookup,
    dictionary pre-check, then the crawl. Every completed crawl is written back
    to the cache, including empty ones.

    Collaborators default to the real network-backed implementations built on
    one shared ``httpx.Client``; any of them can be injected.
    """

    def __init__(
        self,
        cfg: Optional[ResearchConfig] = None,
        *,
        cache: Optional[ResearchCache] = None,
        client: Any = None,
        search_fn: Optional[Callable[[str], List[str]]] = None,
        robots: Any = None,
        extractor: Any = None,
        dictionary: Any = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg or get_default_config()
        self.cache = cache if cache is not None else ResearchCache(self.cfg.cache_ttl_seconds, self.cfg.cache_max_entries)
        self._client = client
        self._owns_client = client is None
        self._search_fn = search_fn
        self._robots = robots
        self._extractor = extractor
        self._dictionary = dictionary
        self._clock = clock
        self._sleep = sleep
        # Reentrant: collaborator properties build the shared client under the same lock
        self._lock = threading.RLock()

    # ----------------------------- Collaborators -----------------------------

    @property
    def client(self) -> Any:
        with self._lock:
            if self._client is None:
                self._client = build_client(self.cfg)
            return self._client

    @property
    def robots(self) -> Any:
        with self._lock:
            if self._robots is None:
                self._robots = RobotsGate(self.client, self.cfg)
            return self._robots

    @property
    def extractor(self) -> Any:
        with self._lock:
            if self._extractor is None:
                self._extractor = ContentExtractor(self.client, self.cfg)
            return self._extractor

    @property
    def dictionary(self) -> Any:
        with self._lock:
            if self._dictionary is None:
                self._dictionary = DictionaryClient(self.client, self.cfg)
            return self._dictionary

    def _search(self, query: str) -> List[str]:
        if self._search_fn is not None:
            return self._search_fn(query)
        return search(query, self.client, cfg=self.cfg)

    def close(self) -> None:
        with self._lock:
            if self._owns_client and self._client is not None:
                try:
                    self._client.close()
                finally:
                    self._client = None

    def __enter__(self) -> "ResearchEngine":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ----------------------------- Run -----------------------------

    def research(
        self,
        topic: str,
        *,
        max_pages: Any = None,
        max_time_seconds: Any = None,
        deep: bool = True,
    ) -> ResearchResult:
        if not isinstance(topic, str) or not topic.strip():
            raise InvalidTopicError("Missing topic parameter")
        topic = topic.strip()
        budget = CrawlBudget.from_options(
            max_pages,
            max_time_seconds,
            default_pages=self.cfg.default_max_pages,
            default_seconds=self.cfg.default_max_time_s,
            pages_ceiling=self.cfg.max_pages_ceiling,
            seconds_ceiling=self.cfg.max_time_ceiling_s,
            started_at=self._clock(),
        )

        cached = self.cache.get(topic)
        if cached is not None:
            logger.info("cache hit for %r", topic)
            return cached

        if self.cfg.dictionary_enabled:
            entry = self.dictionary.lookup(topic)
            if entry is not None:
                logger.info("dictionary hit for %r at %s", topic, entry.source)
                return ResearchResult(
                    topic=topic,
                    summary=entry.summary,
                    sources=[entry.source],
                    fragments=[Fragment(text=entry.summary, code=[])],
                    not_found=False,
                )

        if not deep:
            return compose_result(topic, [], [], cfg=self.cfg)

        scheduler = CrawlScheduler(
            search_fn=self._search,
            robots=self.robots,
            extractor=self.extractor,
            cfg=self.cfg,
            clock=self._clock,
            sleep=self._sleep,
        )
        try:
            outcome = scheduler.run(topic, budget)
        except ResearchError:
            raise
        except Exception as e:
            logger.exception("research run failed for %r", topic)
            raise ResearchError(f"research run failed: {e}") from e

        result = compose_result(topic, outcome.fragments, outcome.sources, cfg=self.cfg)
        # notFound results are cached as well
        self.cache.put(topic, result)
        return result


_DEFAULT_ENGINE: Optional[ResearchEngine] = None
_DEFAULT_LOCK = threading.Lock()


def set_default_engine(engine: Optional[ResearchEngine]) -> None:
    global _DEFAULT_ENGINE
    with _DEFAULT_LOCK:
        _DEFAULT_ENGINE = engine


def get_default_engine() -> ResearchEngine:
    global _DEFAULT_ENGINE
    with _DEFAULT_LOCK:
        if _DEFAULT_ENGINE is None:
            _DEFAULT_ENGINE = ResearchEngine()
        return _DEFAULT_ENGINE


def run_research(
    topic: str,
    *,
    max_pages: Any = None,
    max_time_seconds: Any = None,
    deep: bool = True,
    engine: Optional[ResearchEngine] = None,
) -> ResearchResult:
    engine = engine or get_default_engine()
    return engine.research(topic, max_pages=max_pages, max_time_seconds=max_time_seconds, deep=deep)
