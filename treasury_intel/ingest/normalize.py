"""
Normalization of raw feed entries into canonical NewsRecords.

Feed entries arrive as feedparser dictionaries; this module strips HTML from
descriptions, applies defaults for missing titles and dates, and assigns a
fresh identifier to every record.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
import re
from typing import Any
import uuid
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from ..core.dedup import normalize_url
from ..core.types import DEFAULT_URGENCY, NewsRecord
from .sources import Source


DESCRIPTION_MAX_CHARS = 400
UNTITLED = "Untitled"

_WS_RE = re.compile(r"\s+")

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def clean_description(html: str | None, max_chars: int = DESCRIPTION_MAX_CHARS) -> str:
    """Convert an HTML fragment to capped plain text.

    Tags are removed, entities decoded and whitespace collapsed.

    Examples:
        >>> clean_description("<p>Rates &amp; FX</p>")
        'Rates & FX'
    """
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WS_RE.sub(" ", text).strip()[:max_chars]


def record_from_entry(entry: Any, source: Source, fetched_at: datetime) -> NewsRecord:
    """Build a provisional NewsRecord from one feedparser entry.

    The record carries the source's default category and mid urgency until
    the classification pipeline annotates it.
    """
    title = (entry.get("title") or "").strip() or UNTITLED
    link = entry.get("link") or entry.get("id") or ""
    return NewsRecord(
        id=str(uuid.uuid4()),
        title=title,
        description=clean_description(_entry_body(entry)),
        source_url=normalize_url(link),
        source_name=source.name,
        published_at=_published_at(entry) or fetched_at,
        fetched_at=fetched_at,
        category=source.default_category,
        urgency=DEFAULT_URGENCY,
    )


def _entry_body(entry: Any) -> str:
    summary = entry.get("summary")
    if summary:
        return summary
    for part in entry.get("content") or []:
        value = part.get("value") if isinstance(part, dict) else getattr(part, "value", None)
        if value:
            return value
    return ""


def _published_at(entry: Any) -> datetime | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None
