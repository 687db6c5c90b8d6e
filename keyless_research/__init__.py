"""Key-less web research engine: search scraping, budgeted crawl, extraction."""

__version__ = "0.3.0"
