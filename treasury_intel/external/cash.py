"""
Static cash-position dataset and news exposure flagging.

Balances are illustrative figures in USD millions standing in for a treasury
management system feed. Exposure flagging matches cached headlines and
descriptions against per-country and per-bank keyword lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable

from ..core.types import NewsRecord


@dataclass(frozen=True)
class CashPosition:
    name: str
    balance: int
    currency: str | None = None


@dataclass
class Exposure:
    """A cash position mentioned by cached news."""

    kind: str
    position: CashPosition
    headlines: list[str] = field(default_factory=list)


CASH_BY_COUNTRY: tuple[CashPosition, ...] = (
    CashPosition("United States", 847, "USD"),
    CashPosition("Germany", 318, "EUR"),
    CashPosition("United Kingdom", 276, "GBP"),
    CashPosition("Japan", 193, "JPY"),
    CashPosition("Singapore", 162, "SGD"),
    CashPosition("Canada", 138, "CAD"),
    CashPosition("France", 124, "EUR"),
    CashPosition("Australia", 91, "AUD"),
    CashPosition("Brazil", 73, "BRL"),
    CashPosition("China", 58, "CNY"),
)

CASH_BY_BANK: tuple[CashPosition, ...] = (
    CashPosition("JPMorgan Chase", 423),
    CashPosition("Bank of America", 314),
    CashPosition("Deutsche Bank", 278),
    CashPosition("HSBC", 243),
    CashPosition("Citibank", 208),
    CashPosition("Wells Fargo", 183),
    CashPosition("Barclays", 152),
    CashPosition("BNP Paribas", 129),
    CashPosition("Goldman Sachs", 94),
    CashPosition("Mizuho Bank", 83),
)

COUNTRY_KEYWORDS: dict[str, list[str]] = {
    "United States": ["united states", "u.s.", "us economy", "america", "federal reserve", "fed"],
    "Germany": ["germany", "german", "deutsche", "bundesbank", "dax"],
    "United Kingdom": ["united kingdom", "u.k.", "uk", "britain", "british", "bank of england", "ftse"],
    "Japan": ["japan", "japanese", "boj", "bank of japan", "nikkei", "yen"],
    "Singapore": ["singapore", "mas", "singapore dollar"],
    "Canada": ["canada", "canadian", "bank of canada", "cad"],
    "France": ["france", "french", "banque de france", "cac"],
    "Australia": ["australia", "australian", "rba", "aud"],
    "Brazil": ["brazil", "brazilian", "bcb", "real", "brl"],
    "China": ["china", "chinese", "pboc", "renminbi", "yuan", "cny"],
}

BANK_KEYWORDS: dict[str, list[str]] = {
    "JPMorgan Chase": ["jpmorgan", "jp morgan", "jpm"],
    "Bank of America": ["bank of america", "bofa", "bac"],
    "Deutsche Bank": ["deutsche bank", "db"],
    "HSBC": ["hsbc"],
    "Citibank": ["citibank", "citigroup", "citi"],
    "Wells Fargo": ["wells fargo"],
    "Barclays": ["barclays"],
    "BNP Paribas": ["bnp paribas", "bnp"],
    "Goldman Sachs": ["goldman sachs", "goldman", "gs"],
    "Mizuho Bank": ["mizuho"],
}


def _keyword_pattern(keywords: Iterable[str]) -> re.Pattern[str]:
    # whole-word match so "uk" does not fire inside "duke"
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"(?<![a-z0-9])(?:{alternatives})(?![a-z0-9])")


_COUNTRY_PATTERNS = {name: _keyword_pattern(words) for name, words in COUNTRY_KEYWORDS.items()}
_BANK_PATTERNS = {name: _keyword_pattern(words) for name, words in BANK_KEYWORDS.items()}


def total_counterparty_exposure() -> int:
    return sum(p.balance for p in CASH_BY_BANK)


def flag_exposures(records: Iterable[NewsRecord]) -> list[Exposure]:
    """Return every country or bank position mentioned by at least one record."""
    records = list(records)
    flagged: list[Exposure] = []
    groups = (
        ("country", CASH_BY_COUNTRY, _COUNTRY_PATTERNS),
        ("bank", CASH_BY_BANK, _BANK_PATTERNS),
    )
    for kind, positions, patterns in groups:
        for position in positions:
            pattern = patterns[position.name]
            headlines = [
                r.title
                for r in records
                if pattern.search(f"{r.title} {r.description}".lower())
            ]
            if headlines:
                flagged.append(Exposure(kind=kind, position=position, headlines=headlines))
    return flagged


def format_cash_summary(exposures: Iterable[Exposure] = ()) -> str:
    lines = ["Cash by Country (USD millions):"]
    for p in CASH_BY_COUNTRY:
        currency = f" ({p.currency})" if p.currency else ""
        lines.append(f"  {p.name}: ${p.balance}M{currency}")
    lines.append("")
    lines.append("Cash by Banking Counterparty (USD millions):")
    for p in CASH_BY_BANK:
        lines.append(f"  {p.name}: ${p.balance}M")
    lines.append(f"Total counterparty exposure: ${total_counterparty_exposure():,}M")

    exposures = list(exposures)
    if exposures:
        lines.append("")
        lines.append("Positions mentioned in current news:")
        for exposure in exposures:
            sample = "; ".join(exposure.headlines[:3])
            more = len(exposure.headlines) - 3
            suffix = f" (+{more} more)" if more > 0 else ""
            lines.append(
                f"  [{exposure.kind}] {exposure.position.name} ${exposure.position.balance}M: "
                f"{sample}{suffix}"
            )
    return "\n".join(lines)
