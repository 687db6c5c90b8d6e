from __future__ import annotations

from keyless_research.web.frontier import PRIORITY_LOCAL, PRIORITY_OTHER, Frontier, VisitedSet


def test_local_links_go_to_front_in_document_order():
    f = Frontier()
    f.seed(["https://a.com/1", "https://b.com/1"])
    f.push_many(["https://a.com/2", "https://a.com/3"], PRIORITY_LOCAL)
    f.push_many(["https://c.com/1"], PRIORITY_OTHER)
    assert list(f) == [
        "https://a.com/2",
        "https://a.com/3",
        "https://a.com/1",
        "https://b.com/1",
        "https://c.com/1",
    ]


def test_cap_limits_growth_but_not_seed():
    f = Frontier(cap=3)
    f.seed([f"https://s.com/{i}" for i in range(5)])
    assert len(f) == 5
    assert not f.push("https://x.com/", PRIORITY_OTHER)
    assert f.push_many(["https://a.com/1"], PRIORITY_LOCAL) == 0

    g = Frontier(cap=3)
    g.seed(["https://s.com/0"])
    added = g.push_many(["https://a.com/1", "https://a.com/2", "https://a.com/3"], PRIORITY_LOCAL)
    assert added == 2
    assert list(g) == ["https://a.com/1", "https://a.com/2", "https://s.com/0"]


def test_duplicates_are_not_queued_twice():
    f = Frontier()
    assert f.push("https://a.com/x?utm_source=feed")
    assert not f.push("https://A.com/x")
    assert len(f) == 1
    assert f.pop() == "https://a.com/x"
    assert not f


def test_visited_set_uses_canonical_form():
    v = VisitedSet()
    v.add("https://Example.com/page#section")
    assert "https://example.com/page" in v
    assert "https://example.com/other" not in v
    assert len(v) == 1
