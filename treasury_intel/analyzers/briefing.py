"""Daily executive briefing generation with a per-date cache."""

from __future__ import annotations

from datetime import date
import logging

from ..config import BriefingConfig
from ..core.types import Briefing, utcnow
from ..errors import NoSourceDataError
from ..llm.prompts import briefing_system_prompt, build_briefing_prompt
from ..llm.providers.base import ChatProvider
from ..llm.tracing import start_span
from ..store.briefing_cache import BriefingCache
from ..store.news_cache import NewsCache
from ..utils.logging import log_event


logger = logging.getLogger(__name__)


class BriefingGenerator:
    """Return the cached briefing for a date or build a new one from cached news."""

    def __init__(
        self,
        provider: ChatProvider,
        news: NewsCache,
        briefings: BriefingCache,
        cfg: BriefingConfig,
    ):
        self.provider = provider
        self.news = news
        self.briefings = briefings
        self.cfg = cfg

    def get_or_generate(self, day: date | None = None, force: bool = False) -> Briefing:
        """Return the briefing for ``day`` (default today, UTC).

        Raises:
            NoSourceDataError: If a briefing must be generated and the news
                cache holds no records. The model is not called.
            ProviderError: If the model call fails.
        """
        day = day or utcnow().date()
        key = day.isoformat()
        if not force:
            cached = self.briefings.get(key)
            if cached is not None:
                log_event(logger, "Briefing cache hit", event="briefing_cache_hit", date=key)
                return cached

        records = self.news.query(limit=self.cfg.query_limit)
        if not records:
            raise NoSourceDataError("No news items available. Run a news refresh first.")

        prompt = build_briefing_prompt(records, day, self.cfg.digest_size)
        with start_span("briefing.generate", kind="chain", attributes={"date": key}):
            content = self.provider.complete(
                prompt,
                system=briefing_system_prompt(),
                max_tokens=self.cfg.max_output_tokens,
                temperature=self.cfg.temperature,
            )

        briefing = Briefing(date=key, content=content.strip(), generated_at=utcnow())
        self.briefings.save(briefing)
        log_event(
            logger,
            "Briefing generated",
            event="briefing_generated",
            date=key,
            records=len(records),
            forced=force,
        )
        return briefing
