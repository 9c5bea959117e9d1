"""Persistent store holding at most one briefing per calendar date."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ..core.types import Briefing
from ..utils.logging import log_event
from .json_store import JsonCollection


logger = logging.getLogger(__name__)

MAX_STORED_BRIEFINGS = 30


class BriefingCache:
    """Dated briefings, newest date first, pruned to a fixed count."""

    def __init__(self, path: Path, max_briefings: int = MAX_STORED_BRIEFINGS):
        self._collection = JsonCollection(path, list)
        self.max_briefings = max_briefings

    def save(self, briefing: Briefing) -> None:
        """Store a briefing, replacing any existing one for the same date."""

        def merge(raw: Any) -> list[dict[str, Any]]:
            items = [b for b in self._decode(raw) if b.date != briefing.date]
            items.append(briefing)
            items.sort(key=lambda b: b.date, reverse=True)
            return [b.to_dict() for b in items[: self.max_briefings]]

        self._collection.update(merge)
        log_event(logger, "Briefing saved", event="briefing_saved", date=briefing.date)

    def get(self, date: str) -> Briefing | None:
        for briefing in self._decode(self._collection.read()):
            if briefing.date == date:
                return briefing
        return None

    def latest(self) -> Briefing | None:
        items = self._decode(self._collection.read())
        if not items:
            return None
        return max(items, key=lambda b: b.date)

    def _decode(self, raw: Any) -> list[Briefing]:
        items: list[Briefing] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                items.append(Briefing.from_dict(item))
            except (KeyError, TypeError):
                continue
        return items
