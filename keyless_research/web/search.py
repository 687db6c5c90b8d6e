from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlparse, parse_qs, unquote

from ..core.config import ResearchConfig, get_default_config
from .fetch import fetch_text, is_http_url, parse_html_document
from .query_utils import host_matches

logger = logging.getLogger(__name__)


def _decode_duckduckgo(url: str) -> Optional[str]:
    """Resolve ``duckduckgo.com/l/?uddg=<target>`` redirect links."""
    parsed = urlparse(url)
    if not parsed.path.startswith("/l/"):
        return None
    uddg = (parse_qs(parsed.query or "").get("uddg") or [None])[0]
    return unquote(uddg) if uddg else None


def _decode_bing(url: str) -> Optional[str]:
    """Resolve ``bing.com/ck/a?...&u=a1<base64url>`` redirect links."""
    parsed = urlparse(url)
    if not parsed.path.startswith("/ck/"):
        return None
    u = (parse_qs(parsed.query or "").get("u") or [None])[0]
    if not u or not u.startswith("a1"):
        return None
    payload = u[2:]
    try:
        return base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)).decode("utf-8")
    except Exception:
        return None


@dataclass
class HtmlSearchProvider:
    """A keyless HTML search-results surface.

    ``result_xpath`` selects the hrefs of organic result anchors; when it
    matches nothing, ``fallback_xpath`` (every anchor) is used instead.
    Redirect links back through the search host are decoded with
    ``redirect_decoder``; any other link to an excluded host is dropped.
    """

    name: str
    endpoint: str
    query_param: str
    result_xpath: str
    excluded_hosts: Tuple[str, ...]
    fallback_xpath: str = "//a/@href"
    extra_params: dict = field(default_factory=dict)
    redirect_decoder: Optional[Callable[[str], Optional[str]]] = None

    def _resolve(self, href: str) -> Optional[str]:
        absolute = urljoin(self.endpoint, (href or "").strip())
        host = urlparse(absolute).hostname or ""
        if any(host_matches(host, h) for h in self.excluded_hosts):
            target = self.redirect_decoder(absolute) if self.redirect_decoder else None
            if not target:
                return None
            absolute = target
            host = urlparse(absolute).hostname or ""
            if any(host_matches(host, h) for h in self.excluded_hosts):
                return None
        return absolute if is_http_url(absolute) else None

    def parse(self, html: str, *, limit: int = 30) -> List[str]:
        if not html or not html.strip():
            return []
        try:
            doc = parse_html_document(html)
        except Exception:
            return []
        hrefs = doc.xpath(self.result_xpath) or doc.xpath(self.fallback_xpath)
        out: List[str] = []
        seen = set()
        for href in hrefs:
            url = self._resolve(str(href))
            if not url or url in seen:
                continue
            seen.add(url)
            out.append(url)
            if len(out) >= limit:
                break
        return out

    def search(self, query: str, client: Any, *, cfg: ResearchConfig) -> List[str]:
        """Best-effort: any failure degrades to an empty list."""
        params = dict(self.extra_params)
        params[self.query_param] = query
        try:
            res = fetch_text(client, self.endpoint, cfg=cfg, params=params, timeout=cfg.search_timeout_s, accept="text/html")
            urls = self.parse(res.text, limit=cfg.search_results_per_query)
        except Exception as e:
            logger.debug("%s search failed for %r: %s", self.name, query, e)
            return []
        logger.debug("%s: %d urls for %r", self.name, len(urls), query)
        return urls


DUCKDUCKGO_HTML = HtmlSearchProvider(
    name="duckduckgo",
    endpoint="https://html.duckduckgo.com/html/",
    query_param="q",
    result_xpath="//a[contains(concat(' ', normalize-space(@class), ' '), ' result__a ')]/@href",
    excluded_hosts=("duckduckgo.com", "duck.com"),
    extra_params={"kl": "wt-wt"},
    redirect_decoder=_decode_duckduckgo,
)

BING_HTML = HtmlSearchProvider(
    name="bing",
    endpoint="https://www.bing.com/search",
    query_param="q",
    result_xpath="//li[contains(concat(' ', normalize-space(@class), ' '), ' b_algo ')]//h2/a/@href",
    excluded_hosts=("bing.com",),
    redirect_decoder=_decode_bing,
)

DEFAULT_PROVIDERS: Tuple[HtmlSearchProvider, ...] = (DUCKDUCKGO_HTML, BING_HTML)


def search(
    query: str,
    client: Any,
    *,
    cfg: Optional[ResearchConfig] = None,
    providers: Sequence[HtmlSearchProvider] = DEFAULT_PROVIDERS,
) -> List[str]:
    """Candidate URLs for ``query``; the next provider is tried only when the previous returned nothing."""
    cfg = cfg or get_default_config()
    for provider in providers:
        urls = provider.search(query, client, cfg=cfg)
        if urls:
            return urls
    return []
