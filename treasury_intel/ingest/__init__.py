"""News ingestion: source registry, feed normalization and concurrent fetching."""

from .engine import IngestionEngine, IngestionReport, SourceOutcome
from .search import NewsSearch
from .sources import RSS_FEEDS, SEARCH_QUERIES, Source, default_sources, search_source

__all__ = [
    "IngestionEngine",
    "IngestionReport",
    "NewsSearch",
    "RSS_FEEDS",
    "SEARCH_QUERIES",
    "Source",
    "SourceOutcome",
    "default_sources",
    "search_source",
]
