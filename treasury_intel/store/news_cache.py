"""
Age-bounded persistent cache of canonical news records.

The same retention cutoff is applied on every read and every write, so a
shrinking retention window takes effect on the next operation even without
an intervening ingestion run.
"""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from ..core.dedup import normalize_url
from ..core.types import Category, Classification, NewsRecord, utcnow
from ..utils.logging import log_event
from .json_store import JsonCollection


logger = logging.getLogger(__name__)

MAX_STORED_RECORDS = 500


class NewsCache:
    """Durable store of NewsRecords keyed by normalized source URL.

    Attributes:
        retention_days: Callable returning the current retention window in days
        max_records: Cap applied after every upsert
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        path: Path,
        retention_days: Callable[[], int],
        max_records: int = MAX_STORED_RECORDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._collection = JsonCollection(path, list)
        self.retention_days = retention_days
        self.max_records = max_records
        self.clock = clock

    def upsert(self, new_records: Iterable[NewsRecord]) -> int:
        """Merge new records into the store and return how many were added.

        Records whose URL is already stored (or repeated within ``new_records``)
        are not duplicated. New records go first, the retention cutoff is then
        applied to the whole store and the result is truncated to the cap.
        """
        incoming = list(new_records)
        added = 0

        def merge(raw: Any) -> list[dict[str, Any]]:
            nonlocal added
            existing = self._decode(raw)
            seen = {normalize_url(r.source_url) for r in existing}
            fresh: list[NewsRecord] = []
            for record in incoming:
                key = normalize_url(record.source_url)
                if not key or key in seen:
                    continue
                seen.add(key)
                fresh.append(record)
            added = len(fresh)
            combined = self._within_retention(fresh + existing)[: self.max_records]
            return [r.to_dict() for r in combined]

        stored = self._collection.update(merge)
        log_event(
            logger,
            "News cache upsert",
            event="news_cache_upsert",
            incoming=len(incoming),
            added=added,
            stored=len(stored),
        )
        return added

    def query(
        self,
        category: str | Category | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[NewsRecord]:
        """Return retained records ranked by urgency, then recency.

        Args:
            category: Only records in this category; None or "all" means any
            search: Case-insensitive substring matched against title,
                description and source name
            limit: Truncate the ranked result
        """
        records = self._within_retention(self._decode(self._collection.read()))

        if category is not None and category != "all":
            wanted = Category.parse(category)
            records = [r for r in records if r.category == wanted]

        if search:
            needle = search.lower()
            records = [
                r
                for r in records
                if needle in r.title.lower()
                or needle in r.description.lower()
                or needle in r.source_name.lower()
            ]

        records.sort(key=lambda r: (r.urgency, r.published_at.timestamp()), reverse=True)
        if limit is not None:
            records = records[:limit]
        return records

    def pending(self, limit: int) -> list[NewsRecord]:
        """Highest-ranked retained records still awaiting classification."""
        return [r for r in self.query() if r.is_pending][:limit]

    def apply_classifications(self, updates: Iterable[Classification]) -> int:
        """Write model annotations onto pending records and return how many were applied.

        Already classified records are never touched again and ids that are
        not in the store are ignored.
        """
        by_id = {u.id: u for u in updates}
        applied = 0

        def merge(raw: Any) -> list[dict[str, Any]]:
            nonlocal applied
            records = self._within_retention(self._decode(raw))
            for record in records:
                update = by_id.get(record.id)
                if update is None or not record.is_pending:
                    continue
                record.category = update.category
                record.urgency = update.urgency
                record.ai_summary = update.ai_summary
                applied += 1
            return [r.to_dict() for r in records]

        if by_id:
            self._collection.update(merge)
        log_event(
            logger,
            "Classifications applied",
            event="news_cache_classified",
            received=len(by_id),
            applied=applied,
        )
        return applied

    def count(self) -> int:
        return len(self.query())

    def cutoff(self) -> datetime:
        return self.clock() - timedelta(days=self.retention_days())

    def _within_retention(self, records: list[NewsRecord]) -> list[NewsRecord]:
        cutoff = self.cutoff()
        return [r for r in records if r.published_at >= cutoff]

    def _decode(self, raw: Any) -> list[NewsRecord]:
        records: list[NewsRecord] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                records.append(NewsRecord.from_dict(item))
            except (KeyError, TypeError) as exc:
                log_event(
                    logger,
                    "Skipping malformed cached record",
                    level=logging.WARNING,
                    event="news_cache_bad_record",
                    error=str(exc),
                )
        return records
