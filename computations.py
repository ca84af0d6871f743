"""
Ledger classification and balance aggregation for receivables
"""
from __future__ import annotations
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from filters import filter_transactions, matches_company, party_of
from models import (
    CREDIT,
    DEBIT,
    Balance,
    LedgerEntry,
    LedgerFilter,
    OverallTotals,
    Party,
    PartySummary,
    Receipt,
    Sale,
    Transaction,
    TransactionSet,
)
from utils import parse_timestamp

CREDIT_PAYMENT_METHOD = "Credit"
NOT_SPECIFIED = "Not Specified"


def _entry(t: Transaction, entry_type: str, label: str, amount: float) -> LedgerEntry:
    return LedgerEntry(
        transaction_id=t.id,
        party_id=party_of(t),
        date=t.date,
        type=entry_type,
        transaction_type=label,
        payment_method=t.payment_method or NOT_SPECIFIED,
        amount=amount,
        reference=t.reference,
        description=t.description,
    )


def classify(t: Transaction) -> List[LedgerEntry]:
    """
    Turn a sale or receipt into ledger entries.

    Every sale is a credit (the customer owes the invoice total). A sale whose
    payment method is anything other than exactly "Credit" was paid on the
    spot, so it also posts a matching "Sales Payment" debit. A receipt is a
    single debit.
    """
    if isinstance(t, Sale):
        entries = [_entry(t, CREDIT, "Sales", t.total_amount)]
        if t.payment_method != CREDIT_PAYMENT_METHOD:
            entries.append(_entry(t, DEBIT, "Sales Payment", t.total_amount))
        return entries
    if isinstance(t, Receipt):
        return [_entry(t, DEBIT, "Receipt", t.amount)]
    raise TypeError(f"cannot classify {type(t).__name__}")


def build_ledger(
    transactions: TransactionSet,
    flt: LedgerFilter,
    party_id: Optional[str] = None,
) -> List[LedgerEntry]:
    """Filter then classify; sales come before receipts, source order kept"""
    entries: List[LedgerEntry] = []
    for t in filter_transactions(transactions.sales, flt, party_id):
        entries.extend(classify(t))
    for t in filter_transactions(transactions.receipts, flt, party_id):
        entries.extend(classify(t))
    return entries


def sort_ledger(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    """Newest first; same-date entries keep their order, undated go last"""
    dated = []
    undated = []
    for e in entries:
        when = parse_timestamp(e.date)
        if when is None:
            undated.append(e)
        else:
            dated.append((when, e))
    dated.sort(key=lambda x: x[0], reverse=True)
    return [e for _, e in dated] + undated


def search_entries(entries: Iterable[LedgerEntry], term: str) -> List[LedgerEntry]:
    """Case-insensitive match on type, payment method, reference, description"""
    term = (term or "").strip().lower()
    if not term:
        return list(entries)
    out = []
    for e in entries:
        haystack = (e.transaction_type, e.payment_method, e.reference, e.description)
        if any(term in (s or "").lower() for s in haystack):
            out.append(e)
    return out


def pair_ledger_rows(
    entries: Sequence[LedgerEntry],
) -> List[Tuple[Optional[LedgerEntry], Optional[LedgerEntry]]]:
    """Lay entries out as (debit, credit) rows for the two-column ledger view"""
    debits = [e for e in entries if e.type == DEBIT]
    credits = [e for e in entries if e.type == CREDIT]
    rows = []
    for i in range(max(len(debits), len(credits))):
        rows.append((
            debits[i] if i < len(debits) else None,
            credits[i] if i < len(credits) else None,
        ))
    return rows


def aggregate(entries: Iterable[LedgerEntry], party_id: str = "") -> Balance:
    """Sum credit and debit entries into one Balance"""
    b = Balance(party_id=party_id)
    for e in entries:
        if e.type == CREDIT:
            b.total_credit += e.amount
        else:
            b.total_debit += e.amount
    return b


def aggregate_all(entries: Iterable[LedgerEntry], parties: List[Party]) -> Dict[str, Balance]:
    """
    Balance per party. Every party gets a key, zero when it has no entries;
    entries of parties outside the list are ignored.
    """
    balances = {p.id: Balance(party_id=p.id) for p in parties}
    for e in entries:
        b = balances.get(e.party_id)
        if b is None:
            continue
        if e.type == CREDIT:
            b.total_credit += e.amount
        else:
            b.total_debit += e.amount
    return balances


def balances_from_stored(stored: Dict[str, float], parties: List[Party]) -> Dict[str, Balance]:
    """
    Balances taken as-is from the stored per-party amounts.
    Only the net is known, so it is carried on the credit side when positive
    and on the debit side when negative.
    """
    out = {}
    for p in parties:
        amount = float(stored.get(p.id) or 0.0)
        out[p.id] = Balance(
            party_id=p.id,
            total_credit=max(amount, 0.0),
            total_debit=max(-amount, 0.0),
            authoritative=True,
        )
    return out


def zero_balances(parties: List[Party]) -> Dict[str, Balance]:
    return {p.id: Balance(party_id=p.id) for p in parties}


def overall_totals(entries: Iterable[LedgerEntry]) -> OverallTotals:
    totals = OverallTotals()
    for e in entries:
        if e.type == CREDIT:
            totals.total_credit += e.amount
        else:
            totals.total_debit += e.amount
    return totals


def totals_from_balances(balances: Iterable[Balance]) -> OverallTotals:
    totals = OverallTotals()
    for b in balances:
        totals.total_credit += b.total_credit
        totals.total_debit += b.total_debit
    return totals


def summarize_parties(
    entries: Iterable[LedgerEntry],
    parties: List[Party],
    balances: Optional[Dict[str, Balance]] = None,
) -> List[PartySummary]:
    """
    Rows of the bulk report: balance, entry count and first/last entry date
    per party, in party list order.
    """
    if balances is None:
        entries = list(entries)
        balances = aggregate_all(entries, parties)
    summaries = {
        p.id: PartySummary(party=p, balance=balances.get(p.id) or Balance(party_id=p.id))
        for p in parties
    }
    for e in entries:
        s = summaries.get(e.party_id)
        if s is None:
            continue
        s.transaction_count += 1
        when = parse_timestamp(e.date)
        if when is None:
            continue
        if s.first_date is None or when < s.first_date:
            s.first_date = when
        if s.last_date is None or when > s.last_date:
            s.last_date = when
    return [summaries[p.id] for p in parties]


def last_transaction_dates(
    transactions: TransactionSet,
    parties: List[Party],
    company_id: Optional[str] = None,
) -> Dict[str, Optional[datetime]]:
    """Latest sale or receipt date per party, ignoring the date window"""
    last: Dict[str, Optional[datetime]] = {p.id: None for p in parties}
    for t in list(transactions.sales) + list(transactions.receipts):
        pid = party_of(t)
        if pid not in last or not matches_company(t, company_id):
            continue
        when = parse_timestamp(t.date)
        if when is None:
            continue
        current = last[pid]
        if current is None or when > current:
            last[pid] = when
    return last


def order_by_recency(parties: List[Party], last_dates: Dict[str, Optional[datetime]]) -> List[Party]:
    """Most recently active parties first; parties without activity keep list order at the end"""
    active = [p for p in parties if last_dates.get(p.id) is not None]
    idle = [p for p in parties if last_dates.get(p.id) is None]
    active.sort(key=lambda p: last_dates[p.id], reverse=True)
    return active + idle
