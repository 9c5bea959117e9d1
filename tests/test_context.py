"""Tests for cash exposure flagging and agent context assembly."""

from __future__ import annotations

from datetime import datetime, timezone

from treasury_intel.agent.context import (
    NO_BRIEFING_TEXT,
    NO_NEWS_TEXT,
    NO_SNAPSHOT_TEXT,
    build_system_context,
)
from treasury_intel.core.types import Briefing, Category
from treasury_intel.external.cash import (
    flag_exposures,
    format_cash_summary,
    total_counterparty_exposure,
)
from treasury_intel.store.briefing_cache import BriefingCache
from treasury_intel.store.news_cache import NewsCache


def _exposed(records):
    return {(e.kind, e.position.name) for e in flag_exposures(records)}


def test_total_counterparty_exposure():
    assert total_counterparty_exposure() == 2107
    assert "Total counterparty exposure: $2,107M" in format_cash_summary()


def test_bank_headline_flags_bank_and_country(make_record):
    record = make_record(1, title="Deutsche Bank shares slide on litigation", description="")
    assert _exposed([record]) == {("bank", "Deutsche Bank"), ("country", "Germany")}


def test_keywords_match_whole_words_only(make_record):
    record = make_record(1, title="Duke Energy beats estimates", description="Fedex hauls freight")
    assert _exposed([record]) == set()

    record = make_record(2, title="UK gilts rally as Fed signals pause", description="")
    assert _exposed([record]) == {("country", "United Kingdom"), ("country", "United States")}


def test_cash_summary_lists_mentioned_positions(make_record):
    records = [
        make_record(1, title="HSBC restructures Asia unit", description=""),
        make_record(2, title="HSBC fined by regulator", description=""),
    ]
    text = format_cash_summary(flag_exposures(records))

    assert "  Germany: $318M (EUR)" in text
    assert "Positions mentioned in current news:" in text
    assert "  [bank] HSBC $243M: HSBC restructures Asia unit; HSBC fined by regulator" in text


def test_context_with_empty_state_uses_placeholders(tmp_path, now):
    news = NewsCache(tmp_path / "news.json", retention_days=lambda: 2, clock=lambda: now)
    context = build_system_context(news, BriefingCache(tmp_path / "briefings.json"))

    assert context.startswith("You are the Treasury Intelligence Assistant")
    assert NO_SNAPSHOT_TEXT in context
    assert "--- TODAY'S NEWS FEED (0 articles) ---\n" + NO_NEWS_TEXT in context
    assert NO_BRIEFING_TEXT in context
    assert context.endswith("--- END CONTEXT ---")
    assert "get_company_financials" not in context


def test_context_lists_news_and_latest_briefing(tmp_path, now, make_record):
    news = NewsCache(tmp_path / "news.json", retention_days=lambda: 2, clock=lambda: now)
    news.upsert(
        [
            make_record(1, urgency=5, category=Category.RISK, title="Barclays outage", summary="Payments delayed"),
            make_record(2, urgency=2, title="Quiet day in credit"),
        ]
    )
    briefings = BriefingCache(tmp_path / "briefings.json")
    briefings.save(
        Briefing(
            date="2026-10-19",
            content="## Executive Summary\nWatch Barclays.",
            generated_at=datetime(2026, 10, 19, 7, 5, tzinfo=timezone.utc),
        )
    )

    context = build_system_context(news, briefings, financial_lookup=True)

    assert "--- TODAY'S NEWS FEED (2 articles) ---" in context
    assert "• [risk | U5] Barclays outage — Payments delayed\n• [general | U2] Quiet day in credit" in context
    assert "[bank] Barclays $152M: Barclays outage" in context
    assert "--- TODAY'S EXECUTIVE BRIEFING (generated 07:05 AM) ---\n## Executive Summary" in context
    assert "get_company_financials" in context
