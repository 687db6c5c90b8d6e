from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urljoin, urldefrag

import lxml.html
import trafilatura
from readability import Document

from ..core.config import ResearchConfig, get_default_config
from .fetch import fetch_text, is_http_url, parse_html_document, strip_xml_declaration
from .langtag import class_rule, detect_language
from .types import CodeSample, Fragment

logger = logging.getLogger(__name__)

# Below this many characters the main-content isolator is considered to have failed
MIN_EXCERPT_CHARS = 20

_BLOCK_TAGS = (
    "p", "div", "br", "li", "ul", "ol", "pre", "blockquote", "section", "article",
    "h1", "h2", "h3", "h4", "h5", "h6", "tr", "table", "dd", "dt", "figure",
)

_CODE_XPATH = (
    "//pre"
    " | //code[contains(@class, 'language-') or contains(@class, 'lang-')]"
)


@dataclass
class ExtractedPage:
    url: str
    final_url: str
    fragment: Fragment
    links: List[str] = field(default_factory=list)


def _block_text(html_fragment: str) -> str:
    """Flatten an HTML fragment to text, one line per block element."""
    root = lxml.html.fragment_fromstring(html_fragment, create_parent="div")
    for el in root.iter(*_BLOCK_TAGS):
        el.tail = "\n" + (el.tail or "")
    return root.text_content()


def _readability_text(html: str) -> str:
    try:
        summary = Document(html).summary(html_partial=True)
    except Exception as e:
        logger.debug("readability failed: %s", e)
        return ""
    if not summary or not summary.strip():
        return ""
    try:
        return _block_text(summary)
    except Exception:
        return ""


def _trafilatura_text(html: str) -> str:
    try:
        return trafilatura.extract(html, include_comments=False, include_tables=False) or ""
    except Exception as e:
        logger.debug("trafilatura failed: %s", e)
        return ""


def make_excerpt(text: str, *, max_lines: int, max_chars: int) -> str:
    lines = [ln.strip() for ln in (text or "").splitlines()]
    lines = [ln for ln in lines if ln][:max_lines]
    return "\n\n".join(lines)[:max_chars]


def _class_hint(el: Any) -> Optional[str]:
    """First class string carrying a language tag: own, then nested <code>, then parent."""
    candidates = [el.get("class")]
    candidates.extend(child.get("class") for child in el.iter("code"))
    parent = el.getparent()
    if parent is not None:
        candidates.append(parent.get("class"))
    for cls in candidates:
        if cls and class_rule(cls):
            return cls
    return None


def extract_code_samples(doc: Any, cfg: ResearchConfig) -> List[CodeSample]:
    samples: List[CodeSample] = []
    if cfg.code_max_blocks <= 0:
        return samples
    seen = set()
    for el in doc.xpath(_CODE_XPATH):
        txt = (el.text_content() or "").strip()
        if len(txt) <= cfg.code_min_chars or txt in seen:
            continue
        seen.add(txt)
        code = txt[: cfg.code_max_chars]
        samples.append(CodeSample(code=code, lang=detect_language(code, _class_hint(el))))
        if len(samples) >= cfg.code_max_blocks:
            break
    return samples


def extract_links(doc: Any, base_url: str, *, limit: int) -> List[str]:
    out: List[str] = []
    if limit <= 0:
        return out
    seen = {urldefrag(base_url)[0]}
    for href in doc.xpath("//a/@href"):
        try:
            absolute = urldefrag(urljoin(base_url, str(href).strip()))[0]
        except Exception:
            continue
        if not is_http_url(absolute) or absolute in seen:
            continue
        seen.add(absolute)
        out.append(absolute)
        if len(out) >= limit:
            break
    return out


def extract_from_html(html: str, url: str, *, cfg: Optional[ResearchConfig] = None, final_url: Optional[str] = None) -> Optional[ExtractedPage]:
    """Turn a fetched page into a Fragment plus its outbound links.

    Returns None when no readable main content can be recovered.
    """
    cfg = cfg or get_default_config()
    html = strip_xml_declaration(html)
    if not html.strip():
        return None
    text = _readability_text(html)
    excerpt = make_excerpt(text, max_lines=cfg.excerpt_max_lines, max_chars=cfg.excerpt_max_chars)
    if len(excerpt) < MIN_EXCERPT_CHARS:
        excerpt = make_excerpt(_trafilatura_text(html), max_lines=cfg.excerpt_max_lines, max_chars=cfg.excerpt_max_chars)
    if len(excerpt) < MIN_EXCERPT_CHARS:
        return None
    base = final_url or url
    try:
        doc = parse_html_document(html)
        code = extract_code_samples(doc, cfg)
        links = extract_links(doc, base, limit=cfg.links_per_page)
    except Exception as e:
        logger.debug("dom scan failed for %s: %s", url, e)
        code, links = [], []
    return ExtractedPage(url=url, final_url=base, fragment=Fragment(text=excerpt, code=code), links=links)


class ContentExtractor:
    def __init__(self, client: Any, cfg: Optional[ResearchConfig] = None) -> None:
        self.client = client
        self.cfg = cfg or get_default_config()

    def extract_page(self, url: str) -> Optional[ExtractedPage]:
        """Fetch and extract; network errors propagate as ``FetchError``."""
        res = fetch_text(self.client, url, cfg=self.cfg, timeout=self.cfg.page_timeout_s)
        return extract_from_html(res.text, url, cfg=self.cfg, final_url=res.final_url)

    def extract(self, url: str) -> Optional[Fragment]:
        try:
            page = self.extract_page(url)
        except Exception as e:
            logger.debug("extract failed for %s: %s", url, e)
            return None
        return page.fragment if page else None
