"""Collaborators outside the news pipeline: SEC EDGAR and cash positions."""

from .cash import CASH_BY_BANK, CASH_BY_COUNTRY, flag_exposures, format_cash_summary
from .edgar import CompanySnapshot, EdgarClient, SnapshotStore, format_snapshot_text

__all__ = [
    "CASH_BY_BANK",
    "CASH_BY_COUNTRY",
    "CompanySnapshot",
    "EdgarClient",
    "SnapshotStore",
    "flag_exposures",
    "format_cash_summary",
    "format_snapshot_text",
]
