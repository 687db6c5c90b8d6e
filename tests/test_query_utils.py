from __future__ import annotations

from keyless_research.core.config import DEFAULT_PRIORITY_DOMAINS
from keyless_research.web.query_utils import (
    QUERY_SUFFIXES,
    expand_queries,
    host_matches,
    is_priority_url,
    sort_by_priority,
)


def test_expand_queries_order_and_shape():
    qs = expand_queries("python asyncio", ["docs.python.org", "github.com"])
    assert qs[0] == "python asyncio"
    assert qs[1] == '"python asyncio"'
    assert qs[2:2 + len(QUERY_SUFFIXES)] == [f"python asyncio {s}" for s in QUERY_SUFFIXES]
    assert qs[-6:] == [
        "site:docs.python.org python asyncio",
        "site:docs.python.org python asyncio example",
        "site:docs.python.org python asyncio error",
        "site:github.com python asyncio",
        "site:github.com python asyncio example",
        "site:github.com python asyncio error",
    ]


def test_expand_queries_is_deterministic_and_deduplicated():
    domains = ["github.com", "GitHub.com", "stackoverflow.com"]
    a = expand_queries("  react   hooks ", domains)
    b = expand_queries("react hooks", domains)
    assert a == b
    assert len(a) == len(set(a))
    assert a[0] == "react hooks"


def test_expand_queries_default_domain_count():
    domains = [d for d in DEFAULT_PRIORITY_DOMAINS.split(",") if d]
    qs = expand_queries("rust lifetimes", domains)
    assert len(qs) == 2 + len(QUERY_SUFFIXES) + 3 * len(domains)


def test_host_matches_suffix_only_on_label_boundary():
    assert host_matches("github.com", "github.com")
    assert host_matches("gist.github.com", "github.com")
    assert host_matches("pandas.readthedocs.io", "readthedocs.io")
    assert not host_matches("notgithub.com", "github.com")
    assert not host_matches("", "github.com")


def test_sort_by_priority_is_stable():
    urls = [
        "https://blog.example.com/a",
        "https://developer.mozilla.org/en-US/docs/Web/JavaScript",
        "https://another.example.org/b",
        "https://stackoverflow.com/questions/1",
    ]
    out = sort_by_priority(urls, ["developer.mozilla.org", "stackoverflow.com"])
    assert out == [
        "https://developer.mozilla.org/en-US/docs/Web/JavaScript",
        "https://stackoverflow.com/questions/1",
        "https://blog.example.com/a",
        "https://another.example.org/b",
    ]
    assert is_priority_url("https://en.wikipedia.org/wiki/X", ["wikipedia.org"])
    assert not is_priority_url("not a url", ["wikipedia.org"])
