"""Research core: query expansion, search scraping, crawl scheduling, extraction, caching."""
from .ingest import result_to_entries
from .pipeline import ResearchEngine, run_research

__all__ = ["ResearchEngine", "run_research", "result_to_entries"]
