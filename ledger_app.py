"""
Receivables ledger application: ties the source, the balance orchestrator,
the ledger builder and the exporter together for one tenant.
"""
from __future__ import annotations
import logging
import os
from datetime import datetime
from typing import List, Optional

from computations import (
    build_ledger,
    order_by_recency,
    overall_totals,
    search_entries,
    sort_ledger,
    summarize_parties,
    totals_from_balances,
)
from errors import SourceUnavailable
from excel_export import export_balances_report, export_party_ledger, report_filename
from line_items import parse_line_items
from models import (
    LedgerEntry,
    LedgerFilter,
    LineItem,
    OverallTotals,
    Party,
    TransactionSet,
)
from orchestrator import BalanceOrchestrator, BalanceOutcome, Debouncer, LatestWins

logger = logging.getLogger("receivables.app")


class ReceivablesLedger:
    """Receivables view for one tenant"""

    def __init__(self, source, debounce_seconds: float = 0.3):
        self.source = source
        self.parties: List[Party] = []
        self.outcome: Optional[BalanceOutcome] = None
        self._gate = LatestWins()
        self._debouncer = Debouncer(debounce_seconds)

    # ---------- Parties ----------
    async def load_parties(self) -> List[Party]:
        """Fetch the customer list; on failure keep an empty list"""
        try:
            self.parties = await self.source.fetch_parties()
        except SourceUnavailable as exc:
            logger.warning("Parties unavailable", extra={"endpoint": exc.endpoint, "status": exc.status})
            self.parties = []
        return self.parties

    def find_party(self, party_id: str) -> Optional[Party]:
        for p in self.parties:
            if p.id == str(party_id):
                return p
        return None

    def parties_by_recency(self) -> List[Party]:
        last = self.outcome.last_dates if self.outcome else {}
        return order_by_recency(self.parties, last)

    # ---------- Balances ----------
    async def refresh_balances(self, flt: LedgerFilter) -> BalanceOutcome:
        """
        Compute balances for every party. A refresh that finishes after a
        newer one has been applied does not overwrite it.
        """
        stamp = self._gate.begin()
        outcome = await BalanceOrchestrator(self.source).run(self.parties, flt)
        if self._gate.commit(stamp, outcome):
            self.outcome = outcome
        return self._gate.value

    async def refresh_balances_debounced(self, flt: LedgerFilter) -> Optional[BalanceOutcome]:
        """For rapid filter edits: only the last call in a burst refreshes"""
        if not await self._debouncer.wait():
            return None
        return await self.refresh_balances(flt)

    async def compute_overall_totals(self, flt: LedgerFilter) -> OverallTotals:
        """
        Totals over every sale and receipt in scope. Asks the backend for the
        company-scoped records first, then falls back to the unscoped list
        filtered locally.
        """
        try:
            transactions = await self.source.fetch_transactions(flt.company_id)
        except SourceUnavailable as exc:
            logger.warning(
                "Scoped transactions unavailable, retrying unscoped",
                extra={"endpoint": exc.endpoint, "status": exc.status, "company_id": flt.company_id},
            )
            try:
                transactions = await self.source.fetch_transactions()
            except SourceUnavailable as fallback_exc:
                logger.error(
                    "Overall totals unavailable",
                    extra={"endpoint": fallback_exc.endpoint, "status": fallback_exc.status},
                )
                return OverallTotals()
        return overall_totals(build_ledger(transactions, flt))

    # ---------- Party ledger ----------
    async def _transactions(self, company_id: Optional[str]) -> TransactionSet:
        try:
            return await self.source.fetch_transactions(company_id)
        except SourceUnavailable as exc:
            logger.warning(
                "Transactions unavailable, showing empty ledger",
                extra={"endpoint": exc.endpoint, "status": exc.status},
            )
            return TransactionSet()

    async def party_ledger(
        self,
        party_id: str,
        flt: LedgerFilter,
        search: Optional[str] = None,
    ) -> List[LedgerEntry]:
        """Entries of one customer, newest first, optionally searched"""
        transactions = await self._transactions(flt.company_id)
        entries = sort_ledger(build_ledger(transactions, flt, party_id=party_id))
        if search:
            entries = search_entries(entries, search)
        return entries

    async def transaction_items(self, entry: LedgerEntry) -> List[LineItem]:
        """Line items behind a ledger entry; empty when the detail cannot be loaded"""
        try:
            detail = await self.source.fetch_transaction_detail(entry.transaction_id)
        except SourceUnavailable as exc:
            logger.warning(
                "Transaction detail unavailable",
                extra={"transaction_id": entry.transaction_id, "endpoint": exc.endpoint},
            )
            return []
        return parse_line_items(detail)

    # ---------- Export ----------
    async def export_bulk(self, directory: str, flt: LedgerFilter, now: Optional[datetime] = None) -> str:
        """
        Write the all-customers report and return its path.
        Raises ExportFailure when the workbook cannot be written.
        """
        transactions = await self._transactions(flt.company_id)
        entries = build_ledger(transactions, flt)
        summaries = summarize_parties(entries, self.parties)
        totals = totals_from_balances(s.balance for s in summaries)
        path = os.path.join(directory, report_filename(None, now))
        export_balances_report(summaries, totals, flt, path, generated_at=now)
        logger.info("Exported customer ledger report", extra={"path": path, "parties": len(summaries)})
        return path

    async def export_party(
        self,
        party_id: str,
        directory: str,
        flt: LedgerFilter,
        now: Optional[datetime] = None,
    ) -> str:
        party = self.find_party(party_id)
        if party is None:
            raise KeyError(f"unknown party {party_id}")
        entries = await self.party_ledger(party_id, flt)
        path = os.path.join(directory, report_filename(party.name, now))
        export_party_ledger(party, entries, flt, path, generated_at=now)
        logger.info("Exported party ledger", extra={"path": path, "party_id": party_id})
        return path
