"""Live news search backing the agent's news-search tool."""

from __future__ import annotations

import logging

from ..store.news_cache import NewsCache
from ..utils.logging import log_event
from .engine import IngestionEngine
from .sources import search_source


logger = logging.getLogger(__name__)


class NewsSearch:
    """Answer a free-text query from a live Google News query plus cached matches."""

    def __init__(
        self,
        engine: IngestionEngine,
        cache: NewsCache | None = None,
        live_limit: int = 8,
        cached_limit: int = 5,
    ) -> None:
        self.engine = engine
        self.cache = cache
        self.live_limit = live_limit
        self.cached_limit = cached_limit

    def search(self, query: str) -> str:
        query = query.strip()
        if not query:
            return "Empty search query."

        outcome = self.engine.fetch_source(search_source(query))
        sections: list[str] = []

        if outcome.failed:
            sections.append(f"Live search unavailable ({outcome.error}).")
        elif outcome.records:
            lines = [f'Live results for "{query}" ({len(outcome.records[: self.live_limit])}):']
            for idx, record in enumerate(outcome.records[: self.live_limit], start=1):
                lines.append(
                    f"{idx}. {record.title} ({record.published_at.date().isoformat()})"
                )
                if record.description:
                    lines.append(f"   {record.description}")
                lines.append(f"   {record.source_url}")
            sections.append("\n".join(lines))

        if self.cache is not None:
            cached = self.cache.query(search=query, limit=self.cached_limit)
            if cached:
                lines = [f"Matching items already in the feed ({len(cached)}):"]
                for record in cached:
                    summary = f" — {record.ai_summary}" if record.ai_summary else ""
                    lines.append(
                        f"• [{record.category.value} | U{record.urgency}] {record.title}{summary}"
                    )
                sections.append("\n".join(lines))

        log_event(
            logger,
            "News search",
            event="news_search",
            query=query,
            live=len(outcome.records),
            live_status=outcome.status,
        )
        if not sections:
            return f'No recent news found for "{query}".'
        return "\n\n".join(sections)
