from __future__ import annotations

from typing import Any, Dict, List

from .fetch import host_of
from .types import ResearchResult

# Convert a research result into knowledge-entry dicts, one per fragment:
# {"title": "React hooks (react.dev)", "content": "...", "tags": ["react.dev", "javascript"], "source": "https://..."}


def _code_section(fragment) -> str:
    if not fragment.code:
        return ""
    blocks = []
    for sample in fragment.code:
        fence = "```" + (sample.lang or "")
        blocks.append(f"{fence}\n{sample.code}\n```")
    return "\n\nCode examples:\n\n" + "\n\n".join(blocks)


def result_to_entries(result: ResearchResult, *, max_entries: int = 100) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for source, fragment in result.pairs():
        host = host_of(source)
        langs = [c.lang for c in fragment.code if c.lang]
        tags: List[str] = []
        for t in ([host] if host else []) + langs:
            if t not in tags:
                tags.append(t)
        out.append({
            "title": f"{result.topic} ({host})" if host else result.topic,
            "content": (fragment.text or "") + _code_section(fragment),
            "tags": tags,
            "source": source,
        })
        if len(out) >= max_entries:
            break
    if not out and result.summary.strip():
        out.append({"title": result.topic, "content": result.summary, "tags": [], "source": None})
    return out
