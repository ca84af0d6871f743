"""
Receivables Ledger
- Per-customer balances (stored balances, recomputed from sales and receipts when unavailable).
- A customer's debit/credit ledger with search and line-item breakdown.
- Excel reports for all customers or for one customer.

Run:
  receivables-ledger balances --start 2024-04-01 --end 2025-03-31
  receivables-ledger ledger PARTY_ID --search upi
  receivables-ledger export --party PARTY_ID

Connection settings come from settings.json in the app directory or from
RECEIVABLES_BASE_URL / RECEIVABLES_TOKEN / RECEIVABLES_COMPANY_ID.
"""
from __future__ import annotations
import argparse
import asyncio
import sys
from typing import List, Optional

from config import load_settings
from computations import pair_ledger_rows
from errors import ExportFailure
from filters import make_filter
from ledger_app import ReceivablesLedger
from line_items import line_items_total
from logging_config import configure_logging
from models import LedgerEntry
from source_adapter import TransactionSource
from utils import format_rupees


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="receivables-ledger", description="Customer receivables ledger")
    parser.add_argument("--start", help="window start date, YYYY-MM-DD")
    parser.add_argument("--end", help="window end date, YYYY-MM-DD")
    parser.add_argument("--company", help="company id to scope to")
    parser.add_argument("--settings", help="path to settings.json")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("balances", help="balance of every customer")

    ledger = sub.add_parser("ledger", help="one customer's ledger")
    ledger.add_argument("party_id")
    ledger.add_argument("--search", default="")

    items = sub.add_parser("items", help="line items of a sale or receipt")
    items.add_argument("transaction_id")

    export = sub.add_parser("export", help="write an Excel report")
    export.add_argument("--party", help="export only this customer's ledger")
    export.add_argument("--out", help="output directory")
    return parser


def _print_entry_pair(debit: Optional[LedgerEntry], credit: Optional[LedgerEntry]) -> None:
    def cell(e: Optional[LedgerEntry]) -> str:
        if e is None:
            return " " * 44
        return f"{e.date[:10]:<10} {e.transaction_type:<14} {format_rupees(e.amount):>18}"
    print(f"{cell(debit)} | {cell(credit)}")


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.settings)
    configure_logging(settings.log_level)
    flt = make_filter(args.start, args.end, args.company or settings.company_id)

    async with TransactionSource(settings.base_url, settings.token, timeout=settings.timeout) as source:
        app = ReceivablesLedger(source, debounce_seconds=settings.debounce_seconds)
        await app.load_parties()

        if args.command == "balances":
            outcome = await app.refresh_balances(flt)
            if outcome.error is not None:
                print(f"Balances unavailable: {outcome.error.message}", file=sys.stderr)
            for party in app.parties_by_recency():
                b = outcome.balances[party.id]
                print(f"{party.name:<30} {format_rupees(abs(b.balance)):>18}  {b.status}")
            totals = await app.compute_overall_totals(flt)
            print(f"\nTotal credit {format_rupees(totals.total_credit)}  "
                  f"Total debit {format_rupees(totals.total_debit)}  "
                  f"Net {format_rupees(abs(totals.balance))} ({totals.status})")
            print(f"[source: {outcome.source}]")
            return 0

        if args.command == "ledger":
            entries = await app.party_ledger(args.party_id, flt, search=args.search)
            print(f"{'DEBIT':<44} | CREDIT")
            for debit, credit in pair_ledger_rows(entries):
                _print_entry_pair(debit, credit)
            return 0

        if args.command == "items":
            entry = LedgerEntry(args.transaction_id, "", "", "", "", "", 0.0)
            found = await app.transaction_items(entry)
            for item in found:
                print(f"{item.item_type:<8} {item.name:<30} {item.code:<10} {format_rupees(item.amount):>16}")
            print(f"Total incl. tax: {format_rupees(line_items_total(found))}")
            return 0

        out_dir = args.out or settings.export_dir
        try:
            if args.party:
                path = await app.export_party(args.party, out_dir, flt)
            else:
                path = await app.export_bulk(out_dir, flt)
        except ExportFailure as exc:
            print(f"Error exporting data: {exc.message}. Please try again.", file=sys.stderr)
            return 1
        except KeyError as exc:
            print(f"Error: {exc.args[0]}", file=sys.stderr)
            return 2
        print(path)
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application"""
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
