from __future__ import annotations

from keyless_research.core.config import ResearchConfig
from keyless_research.web.crawler import CrawlScheduler, CrawlState
from keyless_research.web.types import CrawlBudget, FetchError

from fakes import AllowAll, DenyHosts, FakeClock, FakeExtractor


def _cfg(**kw):
    base = dict(crawl_delay_s=0, search_batch_pause_s=0, priority_domains=["developer.mozilla.org", "github.com"])
    base.update(kw)
    return ResearchConfig(**base)


def _budget(pages=20, seconds=60, started_at=0.0):
    return CrawlBudget(max_pages=pages, max_wall_clock_ms=int(seconds * 1000), started_at=started_at)


def _scheduler(search_fn, extractor, robots=None, cfg=None, clock=None):
    return CrawlScheduler(
        search_fn=search_fn,
        robots=robots or AllowAll(),
        extractor=extractor,
        cfg=cfg or _cfg(),
        clock=clock or FakeClock(0.0),
        sleep=lambda s: None,
    )


def test_seed_merges_and_dedupes_across_queries():
    calls = []

    def search_fn(q):
        calls.append(q)
        return ["https://a.com/1", "https://a.com/1#x", "https://b.com/1"]

    sched = _scheduler(search_fn, FakeExtractor())
    seeds = sched.seed("topic", _budget())
    assert seeds == ["https://a.com/1", "https://b.com/1"]
    assert "topic" in calls
    assert len(calls) == 2 + 7 + 3 * 2


def test_seed_skips_failed_queries():
    def search_fn(q):
        if q.startswith("site:"):
            raise RuntimeError("provider down")
        return [f"https://example.com/{abs(hash(q)) % 1000}"]

    seeds = _scheduler(search_fn, FakeExtractor()).seed("topic", _budget())
    assert seeds


def test_seed_falls_back_to_bare_topic():
    calls = []

    def search_fn(q):
        calls.append(q)
        return ["https://only.example/"] if len(calls) > 15 else []

    seeds = _scheduler(search_fn, FakeExtractor()).seed("  some   topic ", _budget())
    assert seeds == ["https://only.example/"]
    assert calls[-1] == "some topic"


def test_seed_limit_is_bounded_by_budget():
    def search_fn(q):
        return [f"https://example.com/{q.replace(' ', '_')}/{i}" for i in range(30)]

    seeds = _scheduler(search_fn, FakeExtractor()).seed("x", _budget(pages=2))
    assert len(seeds) == 12


def test_each_url_attempted_once_and_max_pages_honoured():
    pages = {
        "https://a.com/": ("Page A with content", ["https://a.com/1", "https://a.com/", "https://b.com/"]),
        "https://a.com/1": ("Page A1 with content", ["https://a.com/", "https://a.com/2"]),
        "https://a.com/2": ("Page A2 with content", []),
        "https://b.com/": ("Page B with content", ["https://a.com/1"]),
    }
    extractor = FakeExtractor(pages)
    sched = _scheduler(lambda q: [], extractor)
    out = sched.crawl(["https://a.com/", "https://b.com/"], _budget(pages=3))
    assert len(extractor.calls) == len(set(extractor.calls))
    assert out.pages_fetched == 3
    assert len(out.fragments) == len(out.sources) == 3
    assert out.stop_reason == "max_pages"


def test_locality_first_then_breadth():
    pages = {
        "https://a.com/": ("A", ["https://c.com/", "https://a.com/deep"]),
        "https://a.com/deep": ("A deep", []),
        "https://b.com/": ("B", []),
        "https://c.com/": ("C", []),
    }
    extractor = FakeExtractor(pages)
    _scheduler(lambda q: [], extractor).crawl(["https://a.com/", "https://b.com/"], _budget())
    assert extractor.calls == ["https://a.com/", "https://a.com/deep", "https://b.com/", "https://c.com/"]


def test_priority_domain_seeds_crawled_first():
    extractor = FakeExtractor(default_text="content")
    seeds = ["https://someblog.example/post", "https://developer.mozilla.org/en-US/docs/Web"]
    out = _scheduler(lambda q: [], extractor).crawl(seeds, _budget())
    assert extractor.calls[0] == "https://developer.mozilla.org/en-US/docs/Web"
    assert out.sources[0] == "https://developer.mozilla.org/en-US/docs/Web"


def test_robots_blocked_urls_never_reach_extractor():
    extractor = FakeExtractor(default_text="content")
    out = _scheduler(lambda q: [], extractor, robots=DenyHosts("blocked.example")).crawl(
        ["https://blocked.example/a", "https://ok.example/a"], _budget()
    )
    assert extractor.calls == ["https://ok.example/a"]
    assert out.sources == ["https://ok.example/a"]
    assert out.attempted == 2


def test_failures_are_skipped_without_losing_fragments():
    extractor = FakeExtractor({
        "https://a.com/": ("A", []),
        "https://b.com/": FetchError("https://b.com/", "timeout"),
        "https://c.com/": ValueError("parser blew up"),
        "https://d.com/": ("D", []),
    })
    out = _scheduler(lambda q: [], extractor).crawl(
        ["https://a.com/", "https://b.com/", "https://c.com/", "https://d.com/", "https://e.com/"], _budget()
    )
    assert [f.text for f in out.fragments] == ["A", "D"]
    assert out.sources == ["https://a.com/", "https://d.com/"]
    assert out.attempted == 5


def test_wall_clock_budget_stops_crawl():
    clock = FakeClock(0.0)

    class SlowExtractor(FakeExtractor):
        def extract_page(self, url):
            clock.advance(0.6)
            return super().extract_page(url)

    extractor = SlowExtractor(default_text="content")
    seeds = [f"https://s{i}.example/" for i in range(10)]
    out = _scheduler(lambda q: [], extractor, clock=clock).crawl(seeds, _budget(seconds=1))
    assert len(extractor.calls) == 2
    assert out.stop_reason == "time_budget"


def test_run_transitions_and_empty_search_yields_nothing():
    sched = _scheduler(lambda q: [], FakeExtractor(default_text="content"))
    assert sched.state == CrawlState.IDLE
    out = sched.run("nothing to find", _budget())
    assert sched.state == CrawlState.DONE
    assert out.fragments == [] and out.sources == []
    assert out.stop_reason == "frontier_empty"


def test_exhausted_budget_fetches_nothing():
    clock = FakeClock(5.0)
    extractor = FakeExtractor(default_text="content")
    out = _scheduler(lambda q: [], extractor, clock=clock).crawl(
        ["https://a.example/"], _budget(seconds=1, started_at=0.0)
    )
    assert extractor.calls == []
    assert out.stop_reason == "time_budget"


def test_page_limit_reported_when_both_limits_hit():
    clock = FakeClock(0.0)

    class SlowExtractor(FakeExtractor):
        def extract_page(self, url):
            clock.advance(2.0)
            return super().extract_page(url)

    extractor = SlowExtractor(default_text="content")
    out = _scheduler(lambda q: [], extractor, clock=clock).crawl(
        ["https://a.example/", "https://b.example/"], _budget(pages=1, seconds=1)
    )
    assert extractor.calls == ["https://a.example/"]
    assert out.stop_reason == "max_pages"
