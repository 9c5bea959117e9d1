"""
SEC EDGAR collaborator.

Provides the tracked company's normalized financial snapshot (refreshed only
when SEC lists a newer 10-K or 10-Q than the stored one) and an on-demand
lookup for any US-listed company used by the agent's financial tool. Lookups
never raise; every failure comes back as an explanatory string.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
import logging
from pathlib import Path
from typing import Any

import httpx

from ..config import CompanyConfig, get_sec_contact
from ..core.types import utcnow
from ..store.json_store import JsonCollection
from ..utils.logging import log_event


logger = logging.getLogger(__name__)

SUBMISSIONS_URL = "https://data.sec.gov/submissions/CIK{cik}.json"
COMPANY_FACTS_URL = "https://data.sec.gov/api/xbrl/companyfacts/CIK{cik}.json"
TICKERS_URL = "https://www.sec.gov/files/company_tickers.json"

PERIODIC_FORMS = ("10-K", "10-Q")

DATA_TYPES = ("balance_sheet", "debt_maturity", "income_statement", "cash_flow", "full_snapshot")

CONCEPT_GROUPS: dict[str, list[str]] = {
    "balance_sheet": [
        "CashAndCashEquivalentsAtCarryingValue",
        "Assets",
        "Liabilities",
        "StockholdersEquity",
        "LongTermDebt",
        "LongTermDebtCurrent",
        "LongTermDebtNoncurrent",
        "ShortTermBorrowings",
    ],
    "debt_maturity": [
        "LongTermDebtMaturitiesRepaymentsOfPrincipalInNextTwelveMonths",
        "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearTwo",
        "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearThree",
        "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearFour",
        "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearFive",
        "LongTermDebtMaturitiesRepaymentsOfPrincipalAfterYearFive",
        "LongTermDebt",
        "LongTermDebtCurrent",
        "ShortTermBorrowings",
    ],
    "income_statement": [
        "RevenueFromContractWithCustomerExcludingAssessedTax",
        "Revenues",
        "OperatingIncomeLoss",
        "NetIncomeLoss",
        "InterestAndDebtExpense",
        "InterestExpense",
        "IncomeTaxExpenseBenefit",
    ],
    "cash_flow": [
        "NetCashProvidedByUsedInOperatingActivitiesContinuingOperations",
        "NetCashProvidedByUsedInOperatingActivities",
        "PaymentsToAcquirePropertyPlantAndEquipment",
        "AmortizationOfIntangibleAssets",
        "DepreciationAndAmortization",
    ],
}

_LADDER_CONCEPTS = {
    "year1": "LongTermDebtMaturitiesRepaymentsOfPrincipalInNextTwelveMonths",
    "year2": "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearTwo",
    "year3": "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearThree",
    "year4": "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearFour",
    "year5": "LongTermDebtMaturitiesRepaymentsOfPrincipalInYearFive",
    "after_year5": "LongTermDebtMaturitiesRepaymentsOfPrincipalAfterYearFive",
}


@dataclass
class CompanyMatch:
    cik: str
    name: str
    ticker: str


@dataclass
class CompanySnapshot:
    """Normalized XBRL figures for one company, in USD."""

    ticker: str
    name: str
    cik: str
    period_end: str
    filing_type: str
    filing_date: str
    refreshed_at: str
    cash: float | None = None
    total_assets: float | None = None
    total_liabilities: float | None = None
    equity: float | None = None
    long_term_debt: float | None = None
    long_term_debt_current: float | None = None
    long_term_debt_noncurrent: float | None = None
    short_term_borrowings: float | None = None
    maturity_ladder: dict[str, float] = field(default_factory=dict)
    revenue: float | None = None
    operating_income: float | None = None
    net_income: float | None = None
    interest_expense: float | None = None
    tax_expense: float | None = None
    operating_cash_flow: float | None = None
    amortization: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompanySnapshot:
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in data.items() if k in known})


def latest_value(gaap: dict[str, Any], concept: str) -> float | None:
    """Most recent value for ``concept``, preferring 10-K facts over 10-Q."""
    entries = _usd_entries(gaap, concept)
    for form in PERIODIC_FORMS:
        filtered = [e for e in entries if e.get("form") == form and e.get("val") is not None]
        if filtered:
            return max(filtered, key=lambda e: e.get("end", ""))["val"]
    return None


def latest_full_year(gaap: dict[str, Any], *concepts: str) -> float | None:
    """Most recent full-year 10-K value from the first concept that has one."""
    for concept in concepts:
        annual = [
            e
            for e in _usd_entries(gaap, concept)
            if e.get("form") == "10-K" and e.get("val") is not None and _is_full_year(e)
        ]
        if annual:
            return max(annual, key=lambda e: e.get("end", ""))["val"]
    return None


def _gaap_facts(facts: dict[str, Any]) -> dict[str, Any]:
    nested = facts.get("facts")
    gaap = nested.get("us-gaap") if isinstance(nested, dict) else None
    return gaap if isinstance(gaap, dict) else {}


def _usd_entries(gaap: dict[str, Any], concept: str) -> list[dict[str, Any]]:
    return ((gaap.get(concept) or {}).get("units") or {}).get("USD") or []


def _is_full_year(entry: dict[str, Any]) -> bool:
    if not entry.get("start"):
        return True
    try:
        days = (date.fromisoformat(entry["end"]) - date.fromisoformat(entry["start"])).days
    except (KeyError, ValueError):
        return False
    return days / 30 >= 11


def _latest_periodic_filing(submissions: dict[str, Any]) -> tuple[str, str] | None:
    recent = (submissions.get("filings") or {}).get("recent") or {}
    for form, filed in zip(recent.get("form") or [], recent.get("filingDate") or []):
        if form in PERIODIC_FORMS:
            return form, filed
    return None


def fmt_millions(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"${value / 1e6:.0f}M"


def format_snapshot_text(s: CompanySnapshot) -> str:
    """Render a snapshot as the block embedded in the chat context."""
    period_year = s.period_end[:4] if s.period_end else "N/A"
    if s.filing_type == "10-K":
        period_label = f"FY{period_year}"
    else:
        period_label = f"{s.period_end} ({s.filing_type})"

    total_debt = s.long_term_debt
    net_debt = total_debt - s.cash if total_debt is not None and s.cash is not None else None
    ebitda = (
        s.operating_income + s.amortization
        if s.operating_income is not None and s.amortization is not None
        else None
    )

    try:
        base_year = int(period_year)
    except ValueError:
        base_year = utcnow().year
    ladder = s.maturity_ladder or {}
    ladder_lines = [
        f"  {base_year + n}: {fmt_millions(ladder[key])}"
        for n, key in enumerate(("year1", "year2", "year3", "year4", "year5"), start=1)
        if ladder.get(key) is not None
    ]
    if ladder.get("after_year5") is not None:
        ladder_lines.append(f"  After {base_year + 5}: {fmt_millions(ladder['after_year5'])}")

    return "\n".join(
        [
            f"--- {s.name} ({s.ticker}) - {period_label} ({s.filing_type} filed {s.filing_date}) ---",
            "Balance Sheet:",
            f"  Cash: {fmt_millions(s.cash)}  |  Total Assets: {fmt_millions(s.total_assets)}"
            f"  |  Equity: {fmt_millions(s.equity)}",
            "Debt:",
            f"  Total LT Debt: {fmt_millions(total_debt)}  |  Current: {fmt_millions(s.long_term_debt_current)}"
            f"  |  Non-current: {fmt_millions(s.long_term_debt_noncurrent)}",
            f"  Short-term Borrowings: {fmt_millions(s.short_term_borrowings)}",
            f"  Net Debt: {fmt_millions(net_debt)}",
            "Debt Maturity Ladder:",
            *(ladder_lines or ["  Not available in XBRL data"]),
            "Income Statement (annual):",
            f"  Revenue: {fmt_millions(s.revenue)}  |  Operating Income: {fmt_millions(s.operating_income)}"
            f"  |  Net Income: {fmt_millions(s.net_income)}",
            f"  EBITDA (approx): {fmt_millions(ebitda)}  |  Interest Expense: {fmt_millions(s.interest_expense)}",
            "Cash Flow:",
            f"  Operating CF: {fmt_millions(s.operating_cash_flow)}  |  FCF proxy: {fmt_millions(s.operating_cash_flow)}",
            f"--- End {s.ticker} snapshot (auto-refreshed when new SEC filing detected) ---",
        ]
    )


def _concept_label(concept: str) -> str:
    out = []
    for ch in concept:
        if ch.isupper() and out:
            out.append(" ")
        out.append(ch)
    return "".join(out)


class SnapshotStore:
    """The tracked company's snapshot persisted as one JSON document."""

    def __init__(self, path: Path):
        self._collection = JsonCollection(path, dict)

    def load(self) -> CompanySnapshot | None:
        raw = self._collection.read()
        if not raw:
            return None
        try:
            return CompanySnapshot.from_dict(raw)
        except TypeError:
            return None

    def save(self, snapshot: CompanySnapshot) -> None:
        self._collection.write(snapshot.to_dict())


class EdgarClient:
    """Thin SEC EDGAR client over httpx."""

    def __init__(self, cfg: CompanyConfig, transport: httpx.BaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": f"TreasuryIntelligencePlatform {get_sec_contact(self.cfg)}",
            "Accept": "application/json",
        }

    def _get_json(self, url: str) -> dict[str, Any]:
        with httpx.Client(
            timeout=self.cfg.timeout_seconds,
            headers=self._headers(),
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            resp = client.get(url)
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected SEC response shape from {url}")
        return data

    def fetch_snapshot(self, cik: str) -> CompanySnapshot:
        """Build a normalized snapshot from submissions and XBRL company facts.

        Raises:
            httpx.HTTPError: If either SEC request fails.
        """
        submissions = self._get_json(SUBMISSIONS_URL.format(cik=cik))
        filing_type, filing_date = _latest_periodic_filing(submissions) or ("", "")
        facts = self._get_json(COMPANY_FACTS_URL.format(cik=cik))
        gaap = _gaap_facts(facts)

        ladder = {}
        for key, concept in _LADDER_CONCEPTS.items():
            value = latest_value(gaap, concept)
            if value is not None:
                ladder[key] = value
        periodic_ltd = [
            e for e in _usd_entries(gaap, "LongTermDebt") if e.get("form") in PERIODIC_FORMS
        ]
        if periodic_ltd:
            period_end = max(periodic_ltd, key=lambda e: e.get("end", "")).get("end", "")
        else:
            period_end = filing_date[:10]

        tickers = submissions.get("tickers") or [""]
        return CompanySnapshot(
            ticker=tickers[0],
            name=submissions.get("name") or "",
            cik=cik,
            period_end=period_end,
            filing_type=filing_type,
            filing_date=filing_date,
            refreshed_at=utcnow().isoformat(),
            cash=latest_value(gaap, "CashAndCashEquivalentsAtCarryingValue"),
            total_assets=latest_value(gaap, "Assets"),
            total_liabilities=latest_value(gaap, "Liabilities"),
            equity=latest_value(gaap, "StockholdersEquity"),
            long_term_debt=latest_value(gaap, "LongTermDebt"),
            long_term_debt_current=latest_value(gaap, "LongTermDebtCurrent"),
            long_term_debt_noncurrent=latest_value(gaap, "LongTermDebtNoncurrent"),
            short_term_borrowings=latest_value(gaap, "ShortTermBorrowings"),
            maturity_ladder=ladder,
            revenue=latest_full_year(
                gaap, "RevenueFromContractWithCustomerExcludingAssessedTax", "Revenues"
            ),
            operating_income=latest_full_year(gaap, "OperatingIncomeLoss"),
            net_income=latest_full_year(gaap, "NetIncomeLoss"),
            interest_expense=latest_full_year(
                gaap, "InterestAndDebtExpense", "InterestExpense", "InterestExpenseDebt"
            ),
            tax_expense=latest_full_year(gaap, "IncomeTaxExpenseBenefit"),
            operating_cash_flow=latest_full_year(
                gaap,
                "NetCashProvidedByUsedInOperatingActivitiesContinuingOperations",
                "NetCashProvidedByUsedInOperatingActivities",
            ),
            amortization=latest_full_year(
                gaap, "AmortizationOfIntangibleAssets", "DepreciationAndAmortization"
            ),
        )

    def resolve(self, ticker_or_name: str) -> CompanyMatch | None:
        """Map a ticker (exact) or company name (substring) to its CIK."""
        data = self._get_json(TICKERS_URL)
        query = ticker_or_name.strip().upper()
        entries = [
            e for e in data.values() if isinstance(e, dict) and e.get("cik_str") is not None
        ]
        for matcher in (
            lambda e: str(e.get("ticker", "")).upper() == query,
            lambda e: query in str(e.get("title", "")).upper(),
        ):
            for entry in entries:
                if matcher(entry):
                    return CompanyMatch(
                        cik=str(entry["cik_str"]).zfill(10),
                        name=str(entry.get("title", "")),
                        ticker=str(entry.get("ticker", "")),
                    )
        return None

    def lookup(self, company: str, data_type: str = "full_snapshot") -> str:
        """Formatted financial data for ``company``; failures come back as text."""
        if data_type not in DATA_TYPES:
            return f"Unknown data type {data_type!r}. Use one of: {', '.join(DATA_TYPES)}."
        try:
            match = self.resolve(company)
        except (httpx.HTTPError, ValueError) as exc:
            log_event(
                logger,
                "SEC ticker lookup failed",
                level=logging.WARNING,
                event="edgar_lookup_failed",
                company=company,
                error=str(exc),
            )
            return f'Could not reach SEC EDGAR to look up "{company}".'
        if match is None:
            return f'Could not find SEC EDGAR listing for "{company}". May not be a US public company.'

        try:
            if data_type == "full_snapshot":
                return format_snapshot_text(self.fetch_snapshot(match.cik))
            facts = self._get_json(COMPANY_FACTS_URL.format(cik=match.cik))
        except (httpx.HTTPError, ValueError) as exc:
            log_event(
                logger,
                "SEC company facts fetch failed",
                level=logging.WARNING,
                event="edgar_lookup_failed",
                company=company,
                cik=match.cik,
                error=str(exc),
            )
            return f"Could not fetch XBRL data for {match.name} ({match.ticker})."

        gaap = _gaap_facts(facts)
        lines = [
            f"{match.name} ({match.ticker}) - {data_type.replace('_', ' ')} from SEC EDGAR XBRL:"
        ]
        for concept in CONCEPT_GROUPS[data_type]:
            value = latest_value(gaap, concept)
            if value is not None:
                lines.append(f"  {_concept_label(concept)}: {fmt_millions(value)}")
        if len(lines) == 1:
            lines.append(
                "  No XBRL data found for the requested concepts. The company may not tag these fields."
            )
        return "\n".join(lines)

    def check_and_refresh(self, store: SnapshotStore) -> bool:
        """Refresh the tracked company's snapshot if SEC lists a newer periodic filing.

        Returns True when the stored snapshot was replaced. Errors are logged
        and reported as False.
        """
        cik = self.cfg.cik
        if not cik:
            return False
        try:
            latest = _latest_periodic_filing(self._get_json(SUBMISSIONS_URL.format(cik=cik)))
            if latest is None:
                return False
            cached = store.load()
            if cached is not None and cached.filing_date >= latest[1]:
                return False
            snapshot = self.fetch_snapshot(cik)
        except (httpx.HTTPError, ValueError) as exc:
            log_event(
                logger,
                "Company snapshot refresh failed",
                level=logging.WARNING,
                event="edgar_refresh_failed",
                cik=cik,
                error=str(exc),
            )
            return False

        store.save(snapshot)
        log_event(
            logger,
            "Company snapshot updated",
            event="edgar_snapshot_updated",
            cik=cik,
            filing_type=snapshot.filing_type,
            period_end=snapshot.period_end,
        )
        return True
