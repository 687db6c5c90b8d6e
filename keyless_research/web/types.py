from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple


class ResearchError(RuntimeError):
    """Unexpected internal fault; surfaced as a generic internal error."""


class InvalidTopicError(ValueError):
    """Missing or whitespace-only topic."""


class BudgetError(ResearchError):
    """Budget values that cannot be interpreted as numbers."""


class FetchError(RuntimeError):
    def __init__(self, url: str, reason: str, status: int = 0) -> None:
        super().__init__(f"{reason}: {url}")
        self.url = url
        self.reason = reason
        self.status = status


@dataclass
class CodeSample:
    code: str
    lang: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "lang": self.lang}


@dataclass
class Fragment:
    text: str
    code: List[CodeSample] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "code": [c.to_dict() for c in self.code]}


@dataclass
class ResearchResult:
    topic: str
    summary: str
    sources: List[str]
    fragments: List[Fragment]
    not_found: bool

    def __post_init__(self) -> None:
        # sources[i] is the provenance of fragments[i]
        if len(self.sources) != len(self.fragments):
            raise ResearchError(
                f"sources/fragments length mismatch ({len(self.sources)} != {len(self.fragments)})"
            )

    def pairs(self) -> Iterator[Tuple[str, Fragment]]:
        return iter(zip(self.sources, self.fragments))

    def filtered(self, predicate: Callable[[str, Fragment], bool]) -> "ResearchResult":
        kept = [(s, f) for s, f in self.pairs() if predicate(s, f)]
        return replace(
            self,
            sources=[s for s, _ in kept],
            fragments=[f for _, f in kept],
            not_found=not kept,
        )

    def reordered(self, key: Callable[[str, Fragment], Any]) -> "ResearchResult":
        ordered = sorted(self.pairs(), key=lambda p: key(p[0], p[1]))
        return replace(self, sources=[s for s, _ in ordered], fragments=[f for _, f in ordered])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "summary": self.summary,
            "sources": list(self.sources),
            "fragments": [f.to_dict() for f in self.fragments],
            "notFound": self.not_found,
        }


@dataclass(frozen=True)
class CrawlBudget:
    max_pages: int
    max_wall_clock_ms: int
    started_at: float

    def elapsed_ms(self, now: float) -> float:
        return (now - self.started_at) * 1000.0

    def time_exhausted(self, now: float) -> bool:
        return self.elapsed_ms(now) >= self.max_wall_clock_ms

    def exhausted(self, pages_fetched: int, now: float) -> bool:
        return pages_fetched >= self.max_pages or self.time_exhausted(now)

    @classmethod
    def from_options(
        cls,
        max_pages: Any,
        max_time_seconds: Any,
        *,
        default_pages: int,
        default_seconds: int,
        pages_ceiling: int,
        seconds_ceiling: int,
        started_at: float,
    ) -> "CrawlBudget":
        pages = _coerce_limit("max_pages", max_pages, default_pages, pages_ceiling)
        seconds = _coerce_limit("max_time_seconds", max_time_seconds, default_seconds, seconds_ceiling)
        return cls(max_pages=int(pages), max_wall_clock_ms=int(seconds * 1000), started_at=started_at)


def _coerce_limit(name: str, value: Any, default: int, ceiling: int) -> float:
    if value is None:
        value = default
    if isinstance(value, bool):
        raise BudgetError(f"{name} must be a number, got {value!r}")
    try:
        num = float(value)
    except (TypeError, ValueError):
        raise BudgetError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(num):
        raise BudgetError(f"{name} must be finite, got {value!r}")
    return min(float(ceiling), max(1.0, num))
