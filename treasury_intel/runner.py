"""
Pipeline orchestration.

Components are constructed once from AppConfig and shared by the CLI
commands:
1. refresh: fetch all sources, upsert into the news cache, classify pending
   records, refresh the tracked company snapshot when SEC has a newer filing
2. briefing: cached or freshly generated daily briefing
3. chat: one agent answer over the current cached context
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from functools import cached_property
import logging
from pathlib import Path
from typing import Sequence

import httpx

from .agent.context import build_system_context
from .agent.loop import AgentLoop
from .agent.tools import build_dispatcher
from .analyzers.briefing import BriefingGenerator
from .analyzers.classifier import ClassificationPipeline
from .config import AppConfig
from .core.types import Briefing, ConversationTurn, utcnow
from .errors import MissingApiKeyError
from .external.edgar import EdgarClient, SnapshotStore
from .ingest.engine import IngestionEngine, SourceOutcome
from .ingest.search import NewsSearch
from .llm.providers import ChatProvider, create_provider
from .llm.tracing import start_span
from .store import open_stores
from .utils.logging import log_event


logger = logging.getLogger(__name__)


@dataclass
class RefreshReport:
    """Summary of one refresh run.

    Attributes:
        fetched: Records produced by ingestion after cross-source dedup
        raw: Records parsed across all sources before dedup
        added: Records newly stored in the news cache
        classified: Classification annotations applied
        outcomes: Per-source fetch outcomes
        snapshot_updated: Whether the tracked company snapshot was replaced
        classify_skipped: Why classification did not run, if it was skipped
        timestamp: When the run started
    """

    fetched: int
    raw: int = 0
    added: int = 0
    classified: int = 0
    outcomes: list[SourceOutcome] = field(default_factory=list)
    snapshot_updated: bool = False
    classify_skipped: str | None = None
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def no_sources(self) -> bool:
        return self.fetched == 0

    @property
    def failed_sources(self) -> list[SourceOutcome]:
        return [o for o in self.outcomes if o.failed]


class Services:
    """Every long-lived component, built from one AppConfig."""

    def __init__(
        self,
        cfg: AppConfig,
        provider: ChatProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        edgar_transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg
        self.news, self.briefings, self.settings = open_stores(cfg.storage)
        self.snapshots = SnapshotStore(Path(cfg.storage.data_dir) / "company.json")
        self.engine = IngestionEngine(cfg.fetch, dedup_cfg=cfg.dedup, transport=transport)
        self.edgar = EdgarClient(cfg.company, transport=edgar_transport)
        self.search = NewsSearch(
            self.engine, self.news, live_limit=cfg.fetch.search_item_limit
        )
        self._provider = provider

    @cached_property
    def provider(self) -> ChatProvider:
        if self._provider is not None:
            return self._provider
        return create_provider(self.cfg.provider)

    @cached_property
    def classifier(self) -> ClassificationPipeline:
        return ClassificationPipeline(self.provider, self.news, self.cfg.classify)

    @cached_property
    def briefing_generator(self) -> BriefingGenerator:
        return BriefingGenerator(self.provider, self.news, self.briefings, self.cfg.briefing)

    @cached_property
    def agent(self) -> AgentLoop:
        edgar = self.edgar if self.cfg.agent.enable_financial_lookup else None
        return AgentLoop(self.provider, build_dispatcher(self.search, edgar), self.cfg.agent)


def run_refresh(services: Services, refresh_company: bool = True) -> RefreshReport:
    """Fetch, store and classify news; an empty fetch is reported, not raised."""
    with start_span("refresh", kind="chain"):
        ingestion = services.engine.collect()
        report = RefreshReport(
            fetched=len(ingestion.records),
            raw=ingestion.raw_count,
            outcomes=ingestion.outcomes,
            timestamp=ingestion.started_at,
        )
        if report.no_sources:
            log_event(
                logger,
                "No news items fetched; no sources available",
                level=logging.WARNING,
                event="refresh_no_sources",
                failed=len(report.failed_sources),
            )
            return report

        # stored before classification so raw records survive a model outage
        report.added = services.news.upsert(ingestion.records)
        try:
            report.classified = services.classifier.classify()
        except MissingApiKeyError as exc:
            log_event(
                logger,
                "Classification skipped; records kept unclassified",
                level=logging.WARNING,
                event="classify_skipped",
                error=str(exc),
            )
            report.classify_skipped = str(exc)

        if refresh_company:
            report.snapshot_updated = services.edgar.check_and_refresh(services.snapshots)

    log_event(
        logger,
        "Refresh complete",
        event="refresh_complete",
        raw=report.raw,
        fetched=report.fetched,
        added=report.added,
        classified=report.classified,
        failed_sources=len(report.failed_sources),
        snapshot_updated=report.snapshot_updated,
    )
    return report


def generate_briefing(services: Services, day: date | None = None, force: bool = False) -> Briefing:
    return services.briefing_generator.get_or_generate(day, force=force)


def answer(services: Services, history: Sequence[ConversationTurn]) -> str:
    """Answer the last user turn of ``history`` with freshly assembled context."""
    system = build_system_context(
        services.news,
        services.briefings,
        services.snapshots,
        news_limit=services.cfg.agent.context_news_limit,
        financial_lookup=services.cfg.agent.enable_financial_lookup,
    )
    return services.agent.run(history, system)
