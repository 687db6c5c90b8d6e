"""Pytest session bootstrap for this repository.

- Ensure the ``keyless_research`` package is importable without installing
- Set safe, fast defaults so no test sleeps or reaches the network

All environment defaults here are set with `setdefault` so individual tests
can override them with `monkeypatch.setenv` when needed.
"""

import os
import sys

HERE = os.path.dirname(__file__)
ROOT = os.path.abspath(os.path.join(HERE, '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Fast, deterministic defaults for the research engine during tests (overrideable)
os.environ.setdefault("RESEARCH_CRAWL_DELAY_S", "0")
os.environ.setdefault("RESEARCH_SEARCH_BATCH_PAUSE_S", "0")
os.environ.setdefault("RESEARCH_RETRY_ATTEMPTS", "1")
os.environ.setdefault("RESEARCH_RETRY_BACKOFF_BASE", "0")
os.environ.setdefault("RESEARCH_RETRY_BACKOFF_MAX", "0")
os.environ.setdefault("RESEARCH_DICTIONARY_ENABLED", "0")
os.environ.setdefault("LOG_LEVEL", "WARNING")
