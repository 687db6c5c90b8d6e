from __future__ import annotations

"""
Configuration for the research engine.

Every knob is read from a ``RESEARCH_*`` environment variable with a safe
default. Parsing helpers never raise: a malformed value falls back to the
default so a typo in ``.env`` cannot take the service down.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import os
import sys
import logging

from dotenv import load_dotenv, find_dotenv

_LOG_SILENCERS = (os.getenv("LOG_SILENCERS", "1").strip().lower() not in {"0", "false", "no", "off"})

_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "trafilatura", "readability.readability")

# Dampen third-party chatter unless explicitly debugging
if _LOG_SILENCERS:
    try:
        if (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper() != "DEBUG":
            for name in _NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)
    except Exception:
        pass


# ----------------------------- Env files -----------------------------

def load_env_files() -> None:
    """Load the closest .env.local then .env (searching upward from the cwd)."""
    try:
        path_local = find_dotenv(".env.local", usecwd=True)
        if path_local:
            load_dotenv(path_local, override=True)
        path_default = find_dotenv(".env", usecwd=True)
        if path_default:
            # Do not override values already loaded from .env.local or process env
            load_dotenv(path_default, override=False)
    except Exception as e:
        logging.getLogger(__name__).debug("env file loading skipped: %s", e)


# ----------------------------- Helpers -----------------------------

def _env_bool(name: str, default: bool) -> bool:
    try:
        v = os.getenv(name)
        if v is None:
            return default
        return str(v).strip().lower() not in {"0", "false", "no", "off"}
    except Exception:
        return default


def _env_int(name: str, default: int, *, min_value: Optional[int] = None) -> int:
    try:
        v = os.getenv(name)
        if v is None or str(v).strip() == "":
            return default
        val = int(v)
        if min_value is not None:
            val = max(min_value, val)
        return val
    except Exception:
        return default


def _env_float(name: str, default: float, *, min_value: Optional[float] = None) -> float:
    try:
        v = os.getenv(name)
        if v is None or str(v).strip() == "":
            return default
        val = float(v)
        if min_value is not None:
            val = max(min_value, val)
        return val
    except Exception:
        return default


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        raw = default
    return [d.strip().lower() for d in raw.split(",") if d.strip()]


DEFAULT_PRIORITY_DOMAINS = (
    "github.com,stackoverflow.com,developer.mozilla.org,docs.python.org,dev.to,"
    "medium.com,npmjs.com,docs.microsoft.com,readthedocs.io,gist.github.com,"
    "towardsdatascience.com,wikipedia.org"
)


# ----------------------------- Dataclasses -----------------------------

@dataclass
class ResearchConfig:
    # Identity
    user_agent: str = field(default_factory=lambda: os.getenv("RESEARCH_UA", "Mozilla/5.0 (compatible; KeylessResearch/0.3; +https://github.com)"))
    # Timeouts (seconds)
    timeout_connect: float = field(default_factory=lambda: _env_float("RESEARCH_TIMEOUT_CONNECT", 5.0, min_value=0.1))
    timeout_write: float = field(default_factory=lambda: _env_float("RESEARCH_TIMEOUT_WRITE", 10.0, min_value=0.1))
    search_timeout_s: float = field(default_factory=lambda: _env_float("RESEARCH_SEARCH_TIMEOUT_S", 10.0, min_value=0.5))
    page_timeout_s: float = field(default_factory=lambda: _env_float("RESEARCH_PAGE_TIMEOUT_S", 12.0, min_value=0.5))
    robots_timeout_s: float = field(default_factory=lambda: _env_float("RESEARCH_ROBOTS_TIMEOUT_S", 5.0, min_value=0.5))
    dictionary_timeout_s: float = field(default_factory=lambda: _env_float("RESEARCH_DICTIONARY_TIMEOUT_S", 5.0, min_value=0.5))
    # Retries
    retry_attempts: int = field(default_factory=lambda: _env_int("RESEARCH_RETRY_ATTEMPTS", 1, min_value=1))
    retry_backoff_base: float = field(default_factory=lambda: _env_float("RESEARCH_RETRY_BACKOFF_BASE", 0.4, min_value=0.0))
    retry_backoff_max: float = field(default_factory=lambda: _env_float("RESEARCH_RETRY_BACKOFF_MAX", 4.0, min_value=0.0))
    # Connection pool
    max_connections: int = field(default_factory=lambda: _env_int("RESEARCH_MAX_CONNECTIONS", 16, min_value=1))
    max_keepalive: int = field(default_factory=lambda: _env_int("RESEARCH_MAX_KEEPALIVE", 8, min_value=0))
    max_download_bytes: int = field(default_factory=lambda: _env_int("RESEARCH_MAX_DOWNLOAD_BYTES", 5 * 1024 * 1024, min_value=1024))
    # Seeding
    search_batch_size: int = field(default_factory=lambda: _env_int("RESEARCH_SEARCH_BATCH_SIZE", 6, min_value=1))
    search_batch_pause_s: float = field(default_factory=lambda: _env_float("RESEARCH_SEARCH_BATCH_PAUSE_S", 0.2, min_value=0.0))
    search_results_per_query: int = field(default_factory=lambda: _env_int("RESEARCH_SEARCH_RESULTS_PER_QUERY", 30, min_value=1))
    seed_cap: int = field(default_factory=lambda: _env_int("RESEARCH_SEED_CAP", 240, min_value=1))
    seed_per_page: int = field(default_factory=lambda: _env_int("RESEARCH_SEED_PER_PAGE", 6, min_value=1))
    # Crawling
    frontier_floor: int = field(default_factory=lambda: _env_int("RESEARCH_FRONTIER_FLOOR", 40, min_value=1))
    frontier_ceiling: int = field(default_factory=lambda: _env_int("RESEARCH_FRONTIER_CEILING", 200, min_value=1))
    frontier_per_page: int = field(default_factory=lambda: _env_int("RESEARCH_FRONTIER_PER_PAGE", 3, min_value=1))
    crawl_delay_s: float = field(default_factory=lambda: _env_float("RESEARCH_CRAWL_DELAY_S", 0.2, min_value=0.0))
    links_per_page: int = field(default_factory=lambda: _env_int("RESEARCH_LINKS_PER_PAGE", 60, min_value=0))
    # Budgets
    default_max_pages: int = field(default_factory=lambda: _env_int("RESEARCH_DEFAULT_MAX_PAGES", 20, min_value=1))
    default_max_time_s: int = field(default_factory=lambda: _env_int("RESEARCH_DEFAULT_MAX_TIME_S", 60, min_value=1))
    max_pages_ceiling: int = field(default_factory=lambda: _env_int("RESEARCH_MAX_PAGES_CEILING", 200, min_value=1))
    max_time_ceiling_s: int = field(default_factory=lambda: _env_int("RESEARCH_MAX_TIME_CEILING_S", 300, min_value=1))
    # Robots policy
    respect_robots: bool = field(default_factory=lambda: _env_bool("RESEARCH_RESPECT_ROBOTS", True))
    robots_fail_open: bool = field(default_factory=lambda: _env_bool("RESEARCH_ROBOTS_FAIL_OPEN", True))
    robots_ttl_seconds: int = field(default_factory=lambda: _env_int("RESEARCH_ROBOTS_TTL_SECONDS", 3600, min_value=0))
    # Result cache
    cache_ttl_seconds: int = field(default_factory=lambda: _env_int("RESEARCH_CACHE_TTL_SECONDS", 3600, min_value=0))
    cache_max_entries: int = field(default_factory=lambda: _env_int("RESEARCH_CACHE_MAX_ENTRIES", 256, min_value=1))
    # Extraction
    excerpt_max_lines: int = field(default_factory=lambda: _env_int("RESEARCH_EXCERPT_MAX_LINES", 40, min_value=1))
    excerpt_max_chars: int = field(default_factory=lambda: _env_int("RESEARCH_EXCERPT_MAX_CHARS", 3000, min_value=1))
    code_min_chars: int = field(default_factory=lambda: _env_int("RESEARCH_CODE_MIN_CHARS", 10, min_value=0))
    code_max_blocks: int = field(default_factory=lambda: _env_int("RESEARCH_CODE_MAX_BLOCKS", 6, min_value=0))
    code_max_chars: int = field(default_factory=lambda: _env_int("RESEARCH_CODE_MAX_CHARS", 2000, min_value=1))
    # Composition
    summary_fragments: int = field(default_factory=lambda: _env_int("RESEARCH_SUMMARY_FRAGMENTS", 3, min_value=1))
    summary_separator: str = field(default_factory=lambda: os.getenv("RESEARCH_SUMMARY_SEPARATOR", "\n\n---\n\n"))
    # Query expansion
    priority_domains: List[str] = field(default_factory=lambda: _env_list("RESEARCH_PRIORITY_DOMAINS", DEFAULT_PRIORITY_DOMAINS))
    # Dictionary pre-check
    dictionary_enabled: bool = field(default_factory=lambda: _env_bool("RESEARCH_DICTIONARY_ENABLED", True))
    dictionary_langs: List[str] = field(default_factory=lambda: _env_list("RESEARCH_DICTIONARY_LANGS", "pt,en"))

    def frontier_cap(self, max_pages: int) -> int:
        return max(1, int(max_pages) * self.frontier_per_page)

    def seed_limit(self, max_pages: int) -> int:
        return max(1, min(self.seed_cap, int(max_pages) * self.seed_per_page))

    def initial_frontier_size(self, seed_count: int) -> int:
        return max(self.frontier_floor, min(self.frontier_ceiling, seed_count))


_DEFAULT_CFG: Optional[ResearchConfig] = None


def set_default_config(cfg: Optional[ResearchConfig]) -> None:
    """Inject a process-wide default used when callers omit ``cfg``."""
    global _DEFAULT_CFG
    _DEFAULT_CFG = cfg


def get_default_config() -> ResearchConfig:
    return _DEFAULT_CFG or ResearchConfig()


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, (level or "INFO").upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    # Reduce noise from third-party libraries unless debugging
    if (level or "").upper() != "DEBUG":
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
