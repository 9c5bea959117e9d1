from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from treasury_intel.core.types import Category, NewsRecord


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_record():
    def _make(
        n: int,
        hours_old: float = 1,
        urgency: int = 3,
        category: Category = Category.GENERAL,
        summary: str | None = None,
        url: str | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> NewsRecord:
        return NewsRecord(
            id=f"id-{n}",
            title=title or f"Story {n}",
            description=description if description is not None else f"Description {n}",
            source_url=url or f"https://news.example.com/{n}",
            source_name="Example Wire",
            published_at=NOW - timedelta(hours=hours_old),
            fetched_at=NOW,
            category=category,
            urgency=urgency,
            ai_summary=summary,
        )

    return _make
