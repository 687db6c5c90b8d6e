from __future__ import annotations

import math

import pytest

from keyless_research.web.types import BudgetError, CrawlBudget, Fragment, ResearchError, ResearchResult


def _budget(pages=None, seconds=None):
    return CrawlBudget.from_options(
        pages, seconds,
        default_pages=20, default_seconds=60,
        pages_ceiling=200, seconds_ceiling=300,
        started_at=0.0,
    )


def test_result_rejects_mismatched_lengths():
    with pytest.raises(ResearchError):
        ResearchResult(topic="t", summary="", sources=["https://a.com/"], fragments=[], not_found=True)


def test_filtered_and_reordered_keep_pairing():
    frags = [Fragment(text="long text here"), Fragment(text="short"), Fragment(text="medium text")]
    res = ResearchResult(
        topic="t", summary="", not_found=False,
        sources=["https://a.com/", "https://b.com/", "https://c.com/"], fragments=frags,
    )
    kept = res.filtered(lambda s, f: len(f.text) > 5)
    assert kept.sources == ["https://a.com/", "https://c.com/"]
    assert [f.text for f in kept.fragments] == ["long text here", "medium text"]
    assert not kept.not_found
    assert res.filtered(lambda s, f: False).not_found

    by_len = res.reordered(lambda s, f: len(f.text))
    assert list(by_len.pairs()) == [
        ("https://b.com/", frags[1]),
        ("https://c.com/", frags[2]),
        ("https://a.com/", frags[0]),
    ]


def test_budget_defaults_and_clamping():
    b = _budget()
    assert (b.max_pages, b.max_wall_clock_ms) == (20, 60000)
    assert _budget(0, -5).max_pages == 1
    assert _budget(0, -5).max_wall_clock_ms == 1000
    assert _budget(10_000, 10_000).max_pages == 200
    assert _budget(10_000, 10_000).max_wall_clock_ms == 300000
    assert _budget("5", "2.5").max_pages == 5
    assert _budget("5", "2.5").max_wall_clock_ms == 2500


@pytest.mark.parametrize("bad", ["abc", math.nan, math.inf, True, [1]])
def test_budget_rejects_non_numeric(bad):
    with pytest.raises(BudgetError):
        _budget(bad, None)


def test_budget_exhaustion():
    b = _budget(2, 1)
    assert not b.exhausted(1, 0.5)
    assert b.exhausted(2, 0.5)
    assert b.time_exhausted(1.0)
    assert b.elapsed_ms(0.25) == 250.0
