"""Structured encyclopedia pre-check (Wikipedia REST page summary, no API key)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from urllib.parse import quote

from ..core.config import ResearchConfig, get_default_config

logger = logging.getLogger(__name__)

SUMMARY_ENDPOINT = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"


@dataclass
class DictionaryEntry:
    title: str
    summary: str
    source: str


def summary_url(topic: str, lang: str) -> str:
    title = quote("_".join((topic or "").split()), safe="")
    return SUMMARY_ENDPOINT.format(lang=lang, title=title)


class DictionaryClient:
    def __init__(self, client: Any, cfg: Optional[ResearchConfig] = None, *, langs: Optional[Sequence[str]] = None) -> None:
        self.client = client
        self.cfg = cfg or get_default_config()
        self.langs = list(langs or self.cfg.dictionary_langs)

    def lookup(self, topic: str) -> Optional[DictionaryEntry]:
        """First language whose summary endpoint returns an extract wins; misses return None."""
        for lang in self.langs:
            url = summary_url(topic, lang)
            try:
                resp = self.client.get(url, headers={"Accept": "application/json"}, timeout=self.cfg.dictionary_timeout_s)
                if resp.status_code != 200:
                    continue
                data = resp.json() or {}
            except Exception as e:
                logger.debug("dictionary lookup failed for %s: %s", url, e)
                continue
            extract = data.get("extract") or data.get("extract_html") or ""
            if extract:
                return DictionaryEntry(title=data.get("title") or topic, summary=extract, source=url)
        return None
