"""
Batched AI classification of pending news records.

Pending records (no AI summary) are taken from the news cache in ranked
order, capped to a working set and split into fixed-size batches. Batches
run one after another; each is a single structured-output model call whose
JSON array is parsed and validated. A batch that fails is logged and skipped
so the remaining batches still run. The union of successful batches is
written back through the cache.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ..config import ClassifyConfig
from ..core.types import Category, Classification, NewsRecord, clamp_urgency
from ..errors import ProviderError, ResponseParseError
from ..llm.parsing import parse_json_array
from ..llm.prompts import build_classification_prompt, classification_system_prompt
from ..llm.providers.base import ChatProvider
from ..llm.tracing import start_span
from ..store.news_cache import NewsCache
from ..utils.logging import log_event


logger = logging.getLogger(__name__)


class ClassificationPipeline:
    """Classify pending cached records and apply the results."""

    def __init__(self, provider: ChatProvider, cache: NewsCache, cfg: ClassifyConfig):
        self.provider = provider
        self.cache = cache
        self.cfg = cfg

    def classify(self, records: Sequence[NewsRecord] | None = None) -> int:
        """Classify pending records and return how many annotations were applied.

        Args:
            records: Candidates to classify; defaults to the cache's
                highest-ranked pending records. Already classified records are
                dropped either way.
        """
        if records is None:
            pending = self.cache.pending(self.cfg.working_set)
        else:
            pending = [r for r in records if r.is_pending][: self.cfg.working_set]
        if not pending:
            return 0

        batches = [
            pending[i : i + self.cfg.batch_size]
            for i in range(0, len(pending), self.cfg.batch_size)
        ]
        updates: list[Classification] = []
        with start_span(
            "classify.run",
            kind="chain",
            attributes={"records": len(pending), "batches": len(batches)},
        ):
            for number, batch in enumerate(batches, start=1):
                try:
                    results = self.classify_batch(batch)
                except (ProviderError, ResponseParseError, httpx.HTTPError) as exc:
                    log_event(
                        logger,
                        f"Classification batch {number} failed",
                        level=logging.WARNING,
                        event="classify_batch_failed",
                        batch=number,
                        size=len(batch),
                        error=str(exc),
                    )
                    continue
                updates.extend(results)

        applied = self.cache.apply_classifications(updates) if updates else 0
        log_event(
            logger,
            "Classification complete",
            event="classify_complete",
            pending=len(pending),
            batches=len(batches),
            returned=len(updates),
            applied=applied,
        )
        return applied

    def classify_batch(self, batch: Sequence[NewsRecord]) -> list[Classification]:
        """Run one model call for ``batch`` and return its validated annotations.

        Annotations whose id is not part of the batch are dropped.

        Raises:
            ProviderError: If the model call fails.
            ResponseParseError: If the output is not a JSON array.
        """
        prompt = build_classification_prompt(batch, self.cfg.description_chars)
        text = self.provider.complete(
            prompt,
            system=classification_system_prompt(),
            max_tokens=self.cfg.max_output_tokens,
            temperature=self.cfg.temperature,
        )
        items = parse_json_array(text)
        known = {record.id for record in batch}
        results = []
        for item in items:
            parsed = _to_classification(item)
            if parsed is not None and parsed.id in known:
                results.append(parsed)
        return results


def _to_classification(item: Any) -> Classification | None:
    if not isinstance(item, dict):
        return None
    record_id = str(item.get("id") or "").strip()
    category = Category.parse(item.get("category"))
    summary = str(item.get("aiSummary") or item.get("ai_summary") or "").strip()
    if not record_id or category is None or not summary:
        return None
    return Classification(
        id=record_id,
        category=category,
        urgency=clamp_urgency(item.get("urgency")),
        ai_summary=summary,
    )
