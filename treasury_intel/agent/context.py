"""Assembly of the chat agent's system prompt from cached state."""

from __future__ import annotations

from typing import Sequence

from ..core.types import Briefing, NewsRecord
from ..external.cash import flag_exposures, format_cash_summary
from ..external.edgar import SnapshotStore, format_snapshot_text
from ..llm.prompts import agent_system_prompt
from ..store.briefing_cache import BriefingCache
from ..store.news_cache import NewsCache


NO_NEWS_TEXT = "No news items loaded yet. Ask the user to run a news refresh."
NO_BRIEFING_TEXT = "No daily briefing has been generated yet for today."
NO_SNAPSHOT_TEXT = "No company financial snapshot is available yet."


def format_news_lines(records: Sequence[NewsRecord]) -> str:
    if not records:
        return NO_NEWS_TEXT
    lines = []
    for record in records:
        summary = f" — {record.ai_summary}" if record.ai_summary else ""
        lines.append(f"• [{record.category.value} | U{record.urgency}] {record.title}{summary}")
    return "\n".join(lines)


def format_briefing_block(briefing: Briefing | None) -> str:
    if briefing is None:
        return NO_BRIEFING_TEXT
    generated = briefing.generated_at.strftime("%I:%M %p")
    return (
        f"--- TODAY'S EXECUTIVE BRIEFING (generated {generated}) ---\n"
        f"{briefing.content}\n"
        "--- END BRIEFING ---"
    )


def build_system_context(
    news: NewsCache,
    briefings: BriefingCache,
    snapshots: SnapshotStore | None = None,
    news_limit: int = 150,
    financial_lookup: bool = False,
) -> str:
    """Combine instructions, company financials, cash, news and the latest briefing."""
    records = news.query(limit=news_limit)
    snapshot = snapshots.load() if snapshots is not None else None
    company_text = format_snapshot_text(snapshot) if snapshot is not None else NO_SNAPSHOT_TEXT

    return "\n\n".join(
        [
            agent_system_prompt(financial_lookup),
            f"--- COMPANY FINANCIALS (SEC EDGAR) ---\n{company_text}",
            f"--- COMPANY CASH POSITIONS ---\n{format_cash_summary(flag_exposures(records))}",
            f"--- TODAY'S NEWS FEED ({len(records)} articles) ---\n{format_news_lines(records)}",
            f"{format_briefing_block(briefings.latest())}\n--- END CONTEXT ---",
        ]
    )
