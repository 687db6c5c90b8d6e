from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.config import ResearchConfig, get_default_config
from .types import Fragment, ResearchResult


def compose_summary(fragments: Sequence[Fragment], *, limit: int = 3, separator: str = "\n\n---\n\n") -> str:
    texts = [f.text for f in list(fragments)[: max(0, limit)] if f.text]
    return separator.join(texts)


def compose_result(
    topic: str,
    fragments: Sequence[Fragment],
    sources: Sequence[str],
    *,
    cfg: Optional[ResearchConfig] = None,
) -> ResearchResult:
    cfg = cfg or get_default_config()
    frags: List[Fragment] = list(fragments)
    return ResearchResult(
        topic=topic,
        summary=compose_summary(frags, limit=cfg.summary_fragments, separator=cfg.summary_separator),
        sources=list(sources),
        fragments=frags,
        not_found=not frags,
    )
