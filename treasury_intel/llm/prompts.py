"""Prompt loading and rendering helpers."""

from __future__ import annotations

from datetime import date
from functools import lru_cache
import json
from pathlib import Path
from typing import Sequence

from ..core.types import Category, NewsRecord


_PROMPT_DIR = Path(__file__).resolve().parent.parent / "prompts"


@lru_cache(maxsize=None)
def _load_template(name: str) -> str:
    path = _PROMPT_DIR / f"{name}.md"
    return path.read_text(encoding="utf-8").strip()


def _render_template(name: str, **values: str) -> str:
    template = _load_template(name)
    return template.format(**values)


def classification_system_prompt() -> str:
    return _load_template("classify_system")


def build_classification_prompt(records: Sequence[NewsRecord], description_chars: int) -> str:
    items = [
        {
            "id": record.id,
            "title": record.title,
            "description": record.description[:description_chars],
        }
        for record in records
    ]
    return _render_template(
        "classify",
        count=str(len(records)),
        categories=", ".join(c.value for c in Category),
        items=json.dumps(items, indent=2, ensure_ascii=False),
    )


def briefing_system_prompt() -> str:
    return _load_template("briefing_system")


def format_briefing_digest(records: Sequence[NewsRecord]) -> str:
    """Numbered digest lines in ranked order; AI summary preferred over description."""
    lines = []
    for idx, record in enumerate(records, start=1):
        body = record.ai_summary or record.description
        lines.append(
            f"{idx}. [{record.category.value.upper()} | Urgency {record.urgency}] {record.title}\n"
            f"   {body}"
        )
    return "\n\n".join(lines)


def format_long_date(day: date) -> str:
    """Long US date, e.g. Monday, October 19, 2026."""
    return f"{day.strftime('%A')}, {day.strftime('%B')} {day.day}, {day.year}"


def build_briefing_prompt(
    records: Sequence[NewsRecord],
    today: date,
    digest_size: int,
) -> str:
    return _render_template(
        "briefing",
        today=format_long_date(today),
        total=str(len(records)),
        digest=format_briefing_digest(records[:digest_size]),
    )


def agent_system_prompt(financial_lookup: bool) -> str:
    if financial_lookup:
        guidance = (
            "- Use the get_company_financials tool for balance sheet, debt maturity, "
            "income statement or cash flow data on US public companies"
        )
    else:
        guidance = "- Financial statements for other companies are not available in this session"
    return _render_template("agent_system", tool_guidance=guidance)
