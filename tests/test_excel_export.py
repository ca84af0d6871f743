"""
Excel reports, read back with openpyxl.
"""

from datetime import date, datetime

import pytest
from openpyxl import load_workbook

from computations import build_ledger, sort_ledger, summarize_parties, totals_from_balances
from config import dict_to_party, dict_to_receipt, dict_to_sale
from errors import ExportFailure
from excel_export import export_balances_report, export_party_ledger, report_filename
from models import LedgerFilter, TransactionSet

GENERATED = datetime(2024, 7, 1, 9, 5)
FLT = LedgerFilter(start_date=date(2024, 4, 1), end_date=date(2024, 6, 30))


@pytest.fixture
def ledger_inputs(parties_json, sales_json, receipts_json):
    parties = [dict_to_party(p) for p in parties_json]
    txs = TransactionSet(
        sales=[dict_to_sale(s) for s in sales_json],
        receipts=[dict_to_receipt(r) for r in receipts_json],
    )
    return parties, build_ledger(txs, FLT)


def _rows(path):
    ws = load_workbook(path).active
    return ws, [list(r) for r in ws.iter_rows(values_only=True)]


def _row_starting_with(rows, label):
    return next(r for r in rows if r[0] == label)


def test_balances_report_layout(tmp_path, ledger_inputs):
    parties, entries = ledger_inputs
    summaries = summarize_parties(entries, parties)
    totals = totals_from_balances(s.balance for s in summaries)
    path = tmp_path / "bulk.xlsx"

    export_balances_report(summaries, totals, FLT, str(path), generated_at=GENERATED)

    ws, rows = _rows(path)
    assert ws.title == "Customer Ledger"
    assert rows[0][0] == "CUSTOMER LEDGER REPORT"
    assert rows[1][0] == "Report Generated: 01/07/2024 09:05"
    assert rows[2][0] == "Period: 2024-04-01 to 2024-06-30"
    assert rows[4][:3] == ["Customer Name", "Contact Number", "Total Credit (₹)"]

    asha = _row_starting_with(rows, "Asha Traders")
    assert asha[1:7] == ["9876543210", 1250, 650, 600, "Customer Owes", 4]
    assert asha[7:] == ["01/05/2024", "15/06/2024"]
    bala = _row_starting_with(rows, "Bala Stores")
    assert bala[1] == "N/A"
    assert bala[4:6] == [100, "You Owe"]
    chetan = _row_starting_with(rows, "Chetan & Sons")
    assert chetan[6:] == [0, "No transactions", "No transactions"]

    assert _row_starting_with(rows, "Total Customers")[1] == 3
    assert _row_starting_with(rows, "Total Credit (All Customers)")[1] == 1750
    assert _row_starting_with(rows, "Total Debit (All Customers)")[1] == 1250
    assert _row_starting_with(rows, "Net Balance")[1] == "₹500.00 (Customers Owe)"


def test_balances_report_alternates_row_fill(tmp_path, ledger_inputs):
    parties, entries = ledger_inputs
    summaries = summarize_parties(entries, parties)
    path = tmp_path / "bulk.xlsx"
    export_balances_report(summaries, totals_from_balances(s.balance for s in summaries), FLT, str(path))

    ws = load_workbook(path).active
    first_data_row = 6
    colors = [ws.cell(first_data_row + i, 1).fill.fgColor.rgb for i in range(3)]
    assert colors[0].endswith("FFFFFF")
    assert colors[1].endswith("F2F2F2")
    assert colors[2].endswith("FFFFFF")


def test_party_ledger_report(tmp_path, ledger_inputs):
    parties, entries = ledger_inputs
    asha = parties[0]
    mine = sort_ledger(e for e in entries if e.party_id == asha.id)
    path = tmp_path / "asha.xlsx"

    export_party_ledger(asha, mine, FLT, str(path), generated_at=GENERATED)

    ws, rows = _rows(path)
    assert rows[0][0] == "CUSTOMER LEDGER - ASHA TRADERS"
    assert rows[3][0] == "Contact: 9876543210"
    assert rows[5] == ["Date", "Type", "Transaction Type", "Payment Method", "Amount (₹)", "Reference", "Description"]
    assert rows[6][:5] == ["15/06/2024", "CREDIT", "Sales", "UPI", 250]
    assert rows[7][:3] == ["15/06/2024", "DEBIT", "Sales Payment"]
    assert ws.cell(8, 2).font.color.rgb.endswith("DC3545")
    assert ws.cell(7, 2).font.color.rgb.endswith("28A745")

    assert _row_starting_with(rows, "Total Transactions")[1] == 4
    assert _row_starting_with(rows, "Total Credit")[1] == 1250
    assert _row_starting_with(rows, "Total Debit")[1] == 650
    assert _row_starting_with(rows, "Net Balance")[1] == "₹600.00 (Customer Owes)"


def test_unwritable_path_raises_export_failure(tmp_path, ledger_inputs):
    parties, entries = ledger_inputs
    target = tmp_path / "missing-dir" / "out.xlsx"
    with pytest.raises(ExportFailure) as info:
        export_party_ledger(parties[0], entries, FLT, str(target))
    assert info.value.details["filepath"] == str(target)


def test_report_filename():
    now = datetime(2024, 7, 1, 9, 5)
    assert report_filename(None, now) == "Ledger_bulk_2024-07-01_0905.xlsx"
    assert report_filename("Chetan & Sons", now) == "Ledger_Chetan_Sons_2024-07-01_0905.xlsx"


def test_header_and_title_cells_are_vertically_centered(tmp_path, ledger_inputs):
    parties, entries = ledger_inputs
    summaries = summarize_parties(entries, parties)
    path = tmp_path / "bulk.xlsx"
    export_balances_report(summaries, totals_from_balances(s.balance for s in summaries), FLT, str(path))

    ws = load_workbook(path).active
    assert ws["A1"].alignment.vertical == "center"
    assert ws["A5"].alignment.horizontal == "center"
    assert ws["A5"].alignment.vertical == "center"
