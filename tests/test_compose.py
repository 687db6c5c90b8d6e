from __future__ import annotations

from keyless_research.core.config import ResearchConfig
from keyless_research.web.compose import compose_result, compose_summary
from keyless_research.web.types import Fragment


def test_summary_joins_first_three_fragments():
    frags = [Fragment(text=f"text {i}") for i in range(5)]
    assert compose_summary(frags) == "text 0\n\n---\n\ntext 1\n\n---\n\ntext 2"


def test_compose_result_pairs_sources_and_fragments():
    frags = [Fragment(text="alpha"), Fragment(text="beta")]
    res = compose_result("topic", frags, ["https://a.com/", "https://b.com/"], cfg=ResearchConfig())
    assert not res.not_found
    assert res.summary == "alpha\n\n---\n\nbeta"
    assert list(res.pairs()) == [("https://a.com/", frags[0]), ("https://b.com/", frags[1])]


def test_empty_crawl_is_not_found():
    res = compose_result("nothing", [], [], cfg=ResearchConfig())
    assert res.not_found
    assert res.summary == ""
    assert res.to_dict() == {"topic": "nothing", "summary": "", "sources": [], "fragments": [], "notFound": True}
