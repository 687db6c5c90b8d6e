from __future__ import annotations

from typing import Iterable, List, Sequence
from urllib.parse import urlparse

# Suffixes appended to the bare topic, in emission order
QUERY_SUFFIXES = ("example", "tutorial", "how to", "error", "stack trace", "installation", "guide")

# Per priority domain: site-restricted variants
SITE_SUFFIXES = ("", " example", " error")


def expand_queries(topic: str, priority_domains: Sequence[str]) -> List[str]:
    """Expand one topic into its ordered, deterministic list of search queries.

    Order: bare topic, quoted exact phrase, suffixed variants, then three
    ``site:<domain>`` variants per priority domain. Duplicates (e.g. a
    repeated domain) are dropped, first occurrence wins.
    """
    base = " ".join((topic or "").split())
    queries: List[str] = [base, f'"{base}"']
    queries.extend(f"{base} {s}" for s in QUERY_SUFFIXES)
    for domain in priority_domains:
        d = (domain or "").strip().lower()
        if not d:
            continue
        queries.extend(f"site:{d} {base}{s}" for s in SITE_SUFFIXES)
    unique: List[str] = []
    seen = set()
    for q in queries:
        if q not in seen:
            seen.add(q)
            unique.append(q)
    return unique


def host_matches(host: str, domain: str) -> bool:
    h = (host or "").lower().rstrip(".")
    d = (domain or "").lower().strip().lstrip(".")
    if not h or not d:
        return False
    return h == d or h.endswith("." + d)


def is_priority_url(url: str, priority_domains: Iterable[str]) -> bool:
    try:
        host = urlparse(url).hostname or ""
    except Exception:
        return False
    return any(host_matches(host, d) for d in priority_domains)


def sort_by_priority(urls: Sequence[str], priority_domains: Sequence[str]) -> List[str]:
    """Stable sort: priority-domain URLs first, relative order otherwise kept."""
    return sorted(urls, key=lambda u: 0 if is_priority_url(u, priority_domains) else 1)
