"""
Date window and company predicates applied to sales and receipts
"""
from __future__ import annotations
from datetime import datetime, time
from typing import Iterable, List, Optional

from models import LedgerFilter, Transaction
from utils import parse_date, parse_timestamp

DAY_START = time(0, 0, 0)
DAY_END = time(23, 59, 59)


def window_bounds(flt: LedgerFilter) -> tuple:
    """(start, end) datetimes of the inclusive window; None for an open side"""
    start = datetime.combine(flt.start_date, DAY_START) if flt.start_date else None
    end = datetime.combine(flt.end_date, DAY_END) if flt.end_date else None
    return start, end


def in_window(when: Optional[datetime], start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is None and end is None:
        return True
    if when is None:
        # unparseable dates never show up in a dated view
        return False
    if start is not None and when < start:
        return False
    if end is not None and when > end:
        return False
    return True


def party_of(t: Transaction) -> str:
    return str(t.party)


def company_of(t: Transaction) -> Optional[str]:
    return str(t.company) if t.company is not None else None


def matches_company(t: Transaction, company_id: Optional[str]) -> bool:
    if not company_id:
        return True
    return company_of(t) == str(company_id)


def matches_party(t: Transaction, party_id: str) -> bool:
    return party_of(t) == str(party_id)


def matches(t: Transaction, flt: LedgerFilter) -> bool:
    """True when the transaction falls inside the window and company scope"""
    if not matches_company(t, flt.company_id):
        return False
    start, end = window_bounds(flt)
    return in_window(parse_timestamp(t.date), start, end)


def filter_transactions(
    transactions: Iterable[Transaction],
    flt: LedgerFilter,
    party_id: Optional[str] = None,
) -> List[Transaction]:
    """Filter transactions by window, company and optionally party"""
    out = []
    for t in transactions:
        if party_id is not None and not matches_party(t, party_id):
            continue
        if matches(t, flt):
            out.append(t)
    return out


def make_filter(
    start: Optional[str] = None,
    end: Optional[str] = None,
    company_id: Optional[str] = None,
) -> LedgerFilter:
    """Build a LedgerFilter from YYYY-MM-DD strings"""
    return LedgerFilter(
        start_date=parse_date(start) if start else None,
        end_date=parse_date(end) if end else None,
        company_id=company_id or None,
    )
