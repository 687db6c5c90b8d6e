from __future__ import annotations

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Set

from ..core.config import ResearchConfig, get_default_config
from .fetch import canonicalize_url, host_of
from .frontier import Frontier, VisitedSet, PRIORITY_LOCAL, PRIORITY_OTHER
from .query_utils import expand_queries, is_priority_url, sort_by_priority
from .types import CrawlBudget, Fragment

logger = logging.getLogger(__name__)


class CrawlState(str, Enum):
    IDLE = "idle"
    SEEDING = "seeding"
    CRAWLING = "crawling"
    DONE = "done"


@dataclass
class CrawlOutcome:
    fragments: List[Fragment] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    seeds: List[str] = field(default_factory=list)
    pages_fetched: int = 0
    attempted: int = 0
    stop_reason: str = "frontier_empty"


class CrawlScheduler:
    """Drives one research run: Idle -> Seeding -> Crawling -> Done.

    Seeding runs the expanded queries in fixed-width concurrent batches and
    merges every non-failed result into one bounded seed list. Crawling is
    sequential: before every fetch both budgets are checked, each URL is
    attempted at most once, robots-disallowed URLs never reach the extractor,
    and any per-URL failure is logged and skipped.

    Collaborators are duck-typed so they can be swapped in tests:
    ``search_fn(query) -> list[str]``, ``robots.is_allowed(url) -> bool`` and
    ``extractor.extract_page(url) -> ExtractedPage | None``.
    """

    def __init__(
        self,
        *,
        search_fn: Callable[[str], List[str]],
        robots: Any,
        extractor: Any,
        cfg: Optional[ResearchConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.cfg = cfg or get_default_config()
        self._search_fn = search_fn
        self._robots = robots
        self._extractor = extractor
        self._clock = clock
        self._sleep = sleep
        self.state = CrawlState.IDLE

    def _transition(self, state: CrawlState) -> None:
        logger.info("crawl state %s -> %s", self.state.value, state.value)
        self.state = state

    # ----------------------------- Seeding -----------------------------

    @staticmethod
    def _merge(seeds: List[str], seen: Set[str], urls: Sequence[str], limit: int) -> None:
        for u in urls or []:
            if len(seeds) >= limit:
                return
            key = canonicalize_url(u)
            if key not in seen:
                seen.add(key)
                seeds.append(key)

    def seed(self, topic: str, budget: CrawlBudget) -> List[str]:
        queries = expand_queries(topic, self.cfg.priority_domains)
        limit = self.cfg.seed_limit(budget.max_pages)
        width = max(1, self.cfg.search_batch_size)
        seeds: List[str] = []
        seen: Set[str] = set()
        with ThreadPoolExecutor(max_workers=width) as pool:
            for start in range(0, len(queries), width):
                if len(seeds) >= limit or budget.time_exhausted(self._clock()):
                    break
                if start and self.cfg.search_batch_pause_s:
                    self._sleep(self.cfg.search_batch_pause_s)
                batch = queries[start:start + width]
                futures = [pool.submit(self._search_fn, q) for q in batch]
                # Batch-local results are merged only once the whole batch resolved
                results = []
                for q, fut in zip(batch, futures):
                    try:
                        results.append(fut.result())
                    except Exception as e:
                        logger.debug("search failed for %r: %s", q, e)
                for urls in results:
                    self._merge(seeds, seen, urls, limit)
        if not seeds:
            bare = " ".join(topic.split())
            logger.info("no seeds from %d expanded queries; retrying bare topic", len(queries))
            try:
                self._merge(seeds, seen, self._search_fn(bare), limit)
            except Exception as e:
                logger.debug("bare-topic search failed: %s", e)
        return seeds

    # ----------------------------- Crawling -----------------------------

    def _enqueue_links(self, frontier: Frontier, visited: VisitedSet, page_url: str, links: Sequence[str]) -> None:
        host = host_of(page_url)
        local: List[str] = []
        other: List[str] = []
        for link in links or []:
            if link in visited:
                continue
            if host_of(link) == host or is_priority_url(link, self.cfg.priority_domains):
                local.append(link)
            else:
                other.append(link)
        frontier.push_many(local, PRIORITY_LOCAL)
        frontier.push_many(other, PRIORITY_OTHER)

    def crawl(self, seeds: Sequence[str], budget: CrawlBudget) -> CrawlOutcome:
        outcome = CrawlOutcome(seeds=list(seeds))
        ordered = sort_by_priority(list(seeds), self.cfg.priority_domains)
        frontier = Frontier(cap=self.cfg.frontier_cap(budget.max_pages))
        frontier.seed(ordered[: self.cfg.initial_frontier_size(len(ordered))])
        visited = VisitedSet()
        while frontier:
            if budget.exhausted(outcome.pages_fetched, self._clock()):
                outcome.stop_reason = "max_pages" if outcome.pages_fetched >= budget.max_pages else "time_budget"
                break
            url = frontier.pop()
            if url in visited:
                continue
            visited.add(url)
            outcome.attempted += 1
            try:
                if not self._robots.is_allowed(url):
                    logger.debug("robots.txt disallows %s", url)
                else:
                    page = self._extractor.extract_page(url)
                    if page is None:
                        logger.debug("no readable content at %s", url)
                    else:
                        outcome.pages_fetched += 1
                        outcome.fragments.append(page.fragment)
                        outcome.sources.append(url)
                        self._enqueue_links(frontier, visited, url, page.links)
            except Exception as e:
                logger.debug("skipping %s: %s", url, e)
            if frontier and self.cfg.crawl_delay_s:
                self._sleep(self.cfg.crawl_delay_s)
        return outcome

    def run(self, topic: str, budget: CrawlBudget) -> CrawlOutcome:
        self._transition(CrawlState.SEEDING)
        seeds = self.seed(topic, budget)
        self._transition(CrawlState.CRAWLING)
        try:
            outcome = self.crawl(seeds, budget)
        finally:
            self._transition(CrawlState.DONE)
        logger.info(
            "crawl done: topic=%r seeds=%d attempted=%d pages=%d reason=%s elapsed=%.0fms",
            topic, len(seeds), outcome.attempted, outcome.pages_fetched, outcome.stop_reason,
            budget.elapsed_ms(self._clock()),
        )
        return outcome
