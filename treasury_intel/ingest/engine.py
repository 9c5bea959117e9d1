"""
Concurrent multi-source ingestion.

Every registered source is fetched in parallel with its own time bound.
A source that fails or times out contributes zero records and is recorded
as a failed SourceOutcome; it never aborts or delays its siblings. After all
fetches settle, records from every source are deduplicated by normalized URL.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
import logging

import feedparser
import httpx

from ..config import DedupConfig, FetchConfig
from ..core.dedup import dedup_records
from ..core.types import NewsRecord, utcnow
from ..utils.logging import log_event
from .normalize import record_from_entry
from .sources import Source, default_sources, item_limit


logger = logging.getLogger(__name__)


@dataclass
class SourceOutcome:
    """Result of fetching one source.

    Attributes:
        source: The source that was fetched
        status: "ok" (records found), "empty" (reachable, no entries) or "failed"
        records: Normalized records, empty unless status is "ok"
        error: Error description for failed sources
        status_code: HTTP status code when a response was received
    """

    source: Source
    status: str
    records: list[NewsRecord] = field(default_factory=list)
    error: str | None = None
    status_code: int | None = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass
class IngestionReport:
    """Everything one fetch-all run produced."""

    records: list[NewsRecord]
    outcomes: list[SourceOutcome]
    started_at: datetime

    @property
    def failed_sources(self) -> list[SourceOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def raw_count(self) -> int:
        return sum(len(o.records) for o in self.outcomes)


class IngestionEngine:
    """Fetch all registered sources concurrently and merge their records."""

    def __init__(
        self,
        cfg: FetchConfig,
        sources: list[Source] | None = None,
        dedup_cfg: DedupConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cfg = cfg
        self.sources = list(sources) if sources is not None else default_sources()
        self.dedup_cfg = dedup_cfg or DedupConfig()
        self._transport = transport

    def fetch_all(self) -> list[NewsRecord]:
        """Fetch every source and return deduplicated records.

        An empty list means no source yielded anything; it is not an error.
        """
        return self.collect().records

    def collect(self) -> IngestionReport:
        return asyncio.run(self.acollect())

    def fetch_source(self, source: Source) -> SourceOutcome:
        """Fetch a single source outside of a full run."""
        return asyncio.run(self._fetch_one(source))

    async def acollect(self) -> IngestionReport:
        started_at = utcnow()
        async with self._client() as client:
            tasks = [
                asyncio.create_task(self._fetch_source(client, source))
                for source in self.sources
            ]
            outcomes = await asyncio.gather(*tasks)

        merged: list[NewsRecord] = []
        for outcome in outcomes:
            merged.extend(outcome.records)
        records = dedup_records(merged, self.dedup_cfg.title_similarity_threshold)

        log_event(
            logger,
            "Ingestion complete",
            event="ingestion_complete",
            sources=len(outcomes),
            failed=sum(1 for o in outcomes if o.failed),
            raw=len(merged),
            kept=len(records),
        )
        return IngestionReport(records=records, outcomes=list(outcomes), started_at=started_at)

    async def _fetch_one(self, source: Source) -> SourceOutcome:
        async with self._client() as client:
            return await self._fetch_source(client, source)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.cfg.timeout_seconds,
            headers={
                "User-Agent": self.cfg.user_agent,
                "Accept": "application/rss+xml, application/xml, text/xml",
            },
            follow_redirects=True,
            trust_env=self.cfg.trust_env,
            transport=self._transport,
        )

    async def _fetch_source(self, client: httpx.AsyncClient, source: Source) -> SourceOutcome:
        status_code: int | None = None
        try:
            resp = await asyncio.wait_for(client.get(source.url), timeout=self.cfg.timeout_seconds)
            status_code = resp.status_code
            resp.raise_for_status()
            fetched_at = utcnow()
            feed = feedparser.parse(resp.content)
            if feed.bozo and not feed.entries:
                raise ValueError(f"Malformed feed: {feed.get('bozo_exception')!r}")
            entries = feed.entries[: item_limit(source, self.cfg)]
            records = [record_from_entry(entry, source, fetched_at) for entry in entries]
        except asyncio.TimeoutError:
            return self._failed(source, "Timed out", status_code)
        except Exception as exc:  # noqa: BLE001
            return self._failed(source, f"{type(exc).__name__}: {exc}", status_code)

        log_event(
            logger,
            "Source fetched",
            level=logging.DEBUG,
            event="source_fetched",
            source=source.name,
            count=len(records),
        )
        return SourceOutcome(
            source=source,
            status="ok" if records else "empty",
            records=records,
            status_code=status_code,
        )

    def _failed(self, source: Source, error: str, status_code: int | None) -> SourceOutcome:
        log_event(
            logger,
            f"Failed to fetch {source.name!r}: {error}",
            level=logging.WARNING,
            event="source_failed",
            source=source.name,
            url=source.url,
            error=error,
            status_code=status_code,
        )
        return SourceOutcome(source=source, status="failed", error=error, status_code=status_code)
