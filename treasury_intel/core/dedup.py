"""
News record deduplication using URL matching and optional fuzzy title comparison.

This module removes duplicate records based on:
1. Normalized URL matches (canonical duplicates, always applied)
2. Fuzzy title similarity (same story syndicated under different URLs, opt-in)
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from rapidfuzz import fuzz

from .types import NewsRecord


_TRACKING_KEYS = {"ref", "ref_src", "cmpid", "mod"}


def normalize_url(url: str | None) -> str:
    """Normalize a link so the same article under tracking variants compares equal.

    Drops ``utm_*`` and common referral parameters and the fragment, and
    lowercases scheme and host. Returns "" for missing links.

    Examples:
        >>> normalize_url("https://Example.com/a?utm_source=x&id=1#top")
        'https://example.com/a?id=1'
    """
    if not url:
        return ""
    text = url.strip()
    if not text:
        return ""
    parts = urlparse(text)
    if not parts.scheme or not parts.netloc:
        return text
    query = [
        (k, v)
        for (k, v) in parse_qsl(parts.query, keep_blank_values=True)
        if not k.lower().startswith("utm_") and k.lower() not in _TRACKING_KEYS
    ]
    return urlunparse(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            parts.path,
            parts.params,
            urlencode(query, doseq=True),
            "",
        )
    )


def dedup_records(
    records: list[NewsRecord],
    title_threshold: int | None = None,
) -> list[NewsRecord]:
    """Remove duplicate records from a list.

    Records without a URL are discarded. The first occurrence of each
    normalized URL wins and input order is preserved.

    Args:
        records: Records from every source, in fetch order
        title_threshold: When set, also drop records whose title is at least
            this similar (0-100) to an already kept title

    Returns:
        Deduplicated list of records
    """
    seen_urls: set[str] = set()
    kept: list[NewsRecord] = []
    titles: list[str] = []

    for record in records:
        key = normalize_url(record.source_url)
        if not key or key in seen_urls:
            continue
        if title_threshold is not None and _is_similar_title(record.title, titles, title_threshold):
            continue
        seen_urls.add(key)
        titles.append(record.title)
        kept.append(record)

    return kept


def _is_similar_title(title: str, titles: list[str], threshold: int) -> bool:
    """Check if a title is similar to any title in the given list.

    Uses rapidfuzz's ratio, a normalized Levenshtein similarity percentage.
    """
    for existing in titles:
        if fuzz.ratio(title, existing) >= threshold:
            return True
    return False
