from __future__ import annotations

import re
import time
import random
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

import httpx
import lxml.html

from ..core.config import ResearchConfig
from .types import FetchError

logger = logging.getLogger(__name__)

_TRACKING_PARAMS = {'gclid', 'fbclid', 'ref', 'mc_cid', 'mc_eid', 'igshid'}
_TEXT_TYPES = ('text/html', 'application/xhtml+xml', 'text/plain', 'application/xml', 'text/xml')
# lxml refuses str input that still carries an XML encoding declaration
_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.I)


@dataclass
class FetchResult:
    status: int
    url: str
    final_url: str
    content_type: str
    text: str


def canonicalize_url(url: str) -> str:
    try:
        p = urlparse(url)
        # Drop fragment, normalize scheme/host
        scheme = p.scheme.lower() if p.scheme else 'https'
        netloc = p.netloc.lower()
        # Remove default ports
        if (scheme == 'http' and netloc.endswith(':80')) or (scheme == 'https' and netloc.endswith(':443')):
            netloc = netloc.rsplit(':', 1)[0]
        path = p.path or '/'
        # Filter tracking query params and sort
        try:
            params = []
            for k, v in parse_qsl(p.query, keep_blank_values=True):
                kl = k.lower()
                if kl.startswith('utm_') or kl in _TRACKING_PARAMS:
                    continue
                params.append((k, v))
            query = urlencode(sorted(params)) if params else ''
        except Exception:
            query = p.query
        return urlunparse((scheme, netloc, path, p.params, query, ''))
    except Exception:
        return url


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or '').lower()
    except Exception:
        return ''


def is_http_url(url: str) -> bool:
    try:
        p = urlparse(url)
        return p.scheme in ('http', 'https') and bool(p.netloc)
    except Exception:
        return False


def build_client(cfg: ResearchConfig, *, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    # httpx requires either a default timeout or all four: connect, read, write, pool
    timeout = httpx.Timeout(
        connect=cfg.timeout_connect,
        read=cfg.page_timeout_s,
        write=cfg.timeout_write,
        pool=cfg.timeout_connect,
    )
    limits = httpx.Limits(max_connections=cfg.max_connections, max_keepalive_connections=cfg.max_keepalive)
    client_kwargs: Dict[str, Any] = {
        "timeout": timeout,
        "limits": limits,
        "headers": {"User-Agent": cfg.user_agent, "Accept-Language": "en-US,en;q=0.9"},
        "follow_redirects": True,
        "trust_env": False,
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    return httpx.Client(**client_kwargs)


def _backoff(cfg: ResearchConfig, attempt: int) -> float:
    return min(cfg.retry_backoff_max, cfg.retry_backoff_base * (2 ** attempt)) + random.random() * 0.2


def fetch_text(
    client: Any,
    url: str,
    *,
    cfg: ResearchConfig,
    timeout: Optional[float] = None,
    params: Optional[Dict[str, str]] = None,
    accept: str = "text/html,application/xhtml+xml;q=0.9,text/plain;q=0.8,*/*;q=0.1",
    require_text: bool = True,
) -> FetchResult:
    """GET ``url`` and return its decoded body.

    Retries transport errors, 429 and 5xx with exponential backoff and jitter
    up to ``cfg.retry_attempts`` attempts. Raises ``FetchError`` on anything
    that is not a usable 2xx text response.
    """
    attempts = max(1, cfg.retry_attempts)
    headers = {"Accept": accept}
    last_exc: Optional[FetchError] = None
    for i in range(attempts):
        try:
            resp = client.get(url, params=params, headers=headers, timeout=timeout or cfg.page_timeout_s)
        except httpx.TimeoutException:
            last_exc = FetchError(url, "timeout")
        except httpx.HTTPError as e:
            last_exc = FetchError(url, f"transport error ({type(e).__name__})")
        else:
            status = int(getattr(resp, 'status_code', 0) or 0)
            if status == 429 or status >= 500:
                last_exc = FetchError(url, f"server error {status}", status)
            elif not (200 <= status < 300):
                raise FetchError(url, f"http {status}", status)
            else:
                ctype = str((getattr(resp, 'headers', None) or {}).get('content-type', '') or '').lower()
                if require_text and ctype and not any(t in ctype for t in _TEXT_TYPES):
                    raise FetchError(url, f"unsupported content-type {ctype}", status)
                body = getattr(resp, 'content', b'') or b''
                if len(body) > cfg.max_download_bytes:
                    raise FetchError(url, "content too large", status)
                final_url = str(getattr(resp, 'url', '') or url)
                return FetchResult(status=status, url=url, final_url=final_url, content_type=ctype, text=resp.text or '')
        if i < attempts - 1:
            delay = _backoff(cfg, i)
            logger.debug("retrying %s in %.2fs (%s)", url, delay, last_exc)
            time.sleep(delay)
    raise last_exc or FetchError(url, "request failed")


def strip_xml_declaration(text: str) -> str:
    return _XML_DECL_RE.sub("", text or "", count=1)


def parse_html_document(text: str) -> Any:
    """Parse decoded HTML (or XHTML with a leading ``<?xml ...?>`` prolog) into an lxml tree."""
    return lxml.html.document_fromstring(strip_xml_declaration(text))
