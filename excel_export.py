"""
Excel export of receivables: bulk balances report and single customer ledger
"""
from __future__ import annotations
import re
from datetime import datetime
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from computations import overall_totals
from errors import ExportFailure
from models import DEBIT, LedgerEntry, LedgerFilter, OverallTotals, Party, PartySummary
from utils import format_indian_number, parse_timestamp

TITLE_FILL = "2E5090"
META_FILL = "E7E6E6"
HEADER_FILL = "4472C4"
ROW_FILLS = ("FFFFFF", "F2F2F2")
SUMMARY_HEADER_FILL = "FFC000"
SUMMARY_FILL = "FFF2CC"
DEBIT_COLOR = "DC3545"
CREDIT_COLOR = "28A745"

MONEY_FORMAT = "#,##0.00"
DATE_FORMAT = "%d/%m/%Y"

_thin = Side(style="thin")
_light = Side(style="thin", color="D9D9D9")
BOX = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)
LIGHT_BOX = Border(left=_light, right=_light, top=_light, bottom=_light)
CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")


def _fill(color: str) -> PatternFill:
    return PatternFill("solid", fgColor=color)


def _style_header(ws, row: int, ncols: int):
    """Apply header styling to worksheet row"""
    for col in range(1, ncols + 1):
        cell = ws.cell(row, col)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = _fill(HEADER_FILL)
        cell.alignment = CENTER
        cell.border = BOX
    ws.row_dimensions[row].height = 22


def _autosize_columns(ws, min_width=12, max_width=45, skip_rows=0):
    """Auto-size columns based on content, ignoring merged banner rows"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter][skip_rows:]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _banner(ws, text: str, ncols: int, fill: str, font: Font, height: Optional[int] = None) -> int:
    ws.append([text])
    row = ws.max_row
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=ncols)
    cell = ws.cell(row, 1)
    cell.font = font
    cell.fill = _fill(fill)
    cell.alignment = CENTER if height else LEFT
    if height:
        ws.row_dimensions[row].height = height
    return row


def _period(flt: LedgerFilter) -> str:
    start = flt.start_date.isoformat() if flt.start_date else "All"
    end = flt.end_date.isoformat() if flt.end_date else "Today"
    return f"Period: {start} to {end}"


def _date_text(value) -> str:
    when = value if isinstance(value, datetime) else parse_timestamp(value)
    return when.strftime(DATE_FORMAT) if when else ""


def _summary_block(ws, title: str, rows: Sequence[tuple], ncols: int):
    ws.append([])
    _banner(ws, title, ncols, SUMMARY_HEADER_FILL, Font(size=13, bold=True), height=22)
    ws.append([])
    for label, value in rows:
        ws.append([label, value])
        r = ws.max_row
        ws.merge_cells(start_row=r, start_column=2, end_row=r, end_column=ncols)
        for col in (1, 2):
            cell = ws.cell(r, col)
            cell.font = Font(bold=True)
            cell.fill = _fill(SUMMARY_FILL)
            cell.border = BOX
            cell.alignment = LEFT
        if isinstance(value, float):
            ws.cell(r, 2).number_format = MONEY_FORMAT


def _net_label(balance: float, owes: str) -> str:
    return f"₹{format_indian_number(abs(balance))} ({owes if balance >= 0 else 'You Owe'})"


def _save(wb: Workbook, filepath: str) -> None:
    try:
        wb.save(filepath)
    except Exception as exc:
        raise ExportFailure(filepath, str(exc)) from exc


def report_filename(party_name: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """Ledger_<party>_<YYYY-MM-DD_HHMM>.xlsx, or Ledger_bulk_... for all customers"""
    now = now or datetime.now()
    label = re.sub(r"[^\w\-]+", "_", party_name).strip("_") if party_name else "bulk"
    return f"Ledger_{label or 'party'}_{now.strftime('%Y-%m-%d_%H%M')}.xlsx"


def export_balances_report(
    summaries: List[PartySummary],
    totals: OverallTotals,
    flt: LedgerFilter,
    filepath: str,
    generated_at: Optional[datetime] = None,
) -> None:
    """
    Write the all-customers report: title, metadata, one row per customer
    and a summary with overall credit, debit and net balance.
    """
    generated_at = generated_at or datetime.now()
    headers = [
        "Customer Name",
        "Contact Number",
        "Total Credit (₹)",
        "Total Debit (₹)",
        "Balance (₹)",
        "Balance Status",
        "Transactions",
        "First Transaction",
        "Last Transaction",
    ]
    n = len(headers)
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = "Customer Ledger"

        _banner(ws, "CUSTOMER LEDGER REPORT", n, TITLE_FILL,
                Font(size=18, bold=True, color="FFFFFF"), height=30)
        _banner(ws, f"Report Generated: {generated_at.strftime('%d/%m/%Y %H:%M')}", n, META_FILL, Font())
        _banner(ws, _period(flt), n, META_FILL, Font())
        ws.append([])

        ws.append(headers)
        header_row = ws.max_row
        _style_header(ws, header_row, n)
        ws.freeze_panes = f"A{header_row + 1}"

        for i, s in enumerate(summaries):
            b = s.balance
            ws.append([
                s.party.name,
                s.party.contact_number or "N/A",
                b.total_credit,
                b.total_debit,
                abs(b.balance),
                b.status,
                s.transaction_count,
                _date_text(s.first_date) or "No transactions",
                _date_text(s.last_date) or "No transactions",
            ])
            r = ws.max_row
            for col in range(1, n + 1):
                cell = ws.cell(r, col)
                cell.fill = _fill(ROW_FILLS[i % 2])
                cell.border = LIGHT_BOX
                cell.alignment = LEFT if col == 1 else CENTER
            for col in (3, 4, 5):
                ws.cell(r, col).number_format = MONEY_FORMAT

        _summary_block(ws, "SUMMARY REPORT", [
            ("Total Customers", len(summaries)),
            ("Total Credit (All Customers)", float(totals.total_credit)),
            ("Total Debit (All Customers)", float(totals.total_debit)),
            ("Net Balance", _net_label(totals.balance, "Customers Owe")),
        ], n)
        _autosize_columns(ws, skip_rows=header_row - 1)
    except Exception as exc:
        raise ExportFailure(filepath, str(exc)) from exc
    _save(wb, filepath)


def export_party_ledger(
    party: Party,
    entries: List[LedgerEntry],
    flt: LedgerFilter,
    filepath: str,
    generated_at: Optional[datetime] = None,
) -> None:
    """Write one customer's ledger entries with a credit/debit summary"""
    generated_at = generated_at or datetime.now()
    headers = [
        "Date",
        "Type",
        "Transaction Type",
        "Payment Method",
        "Amount (₹)",
        "Reference",
        "Description",
    ]
    n = len(headers)
    totals = overall_totals(entries)
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = "Customer Ledger"

        _banner(ws, f"CUSTOMER LEDGER - {party.name.upper()}", n, TITLE_FILL,
                Font(size=16, bold=True, color="FFFFFF"), height=28)
        _banner(ws, f"Report Generated: {generated_at.strftime('%d/%m/%Y %H:%M')}", n, META_FILL, Font())
        _banner(ws, _period(flt), n, META_FILL, Font())
        _banner(ws, f"Contact: {party.contact_number or 'N/A'}", n, META_FILL, Font())
        ws.append([])

        ws.append(headers)
        header_row = ws.max_row
        _style_header(ws, header_row, n)
        ws.freeze_panes = f"A{header_row + 1}"

        for i, e in enumerate(entries):
            ws.append([
                _date_text(e.date),
                e.type.upper(),
                e.transaction_type,
                e.payment_method or "",
                e.amount,
                e.reference or "",
                e.description or "",
            ])
            r = ws.max_row
            for col in range(1, n + 1):
                cell = ws.cell(r, col)
                cell.fill = _fill(ROW_FILLS[i % 2])
                cell.border = LIGHT_BOX
                cell.alignment = LEFT if col == n else CENTER
            ws.cell(r, 2).font = Font(bold=True, color=DEBIT_COLOR if e.type == DEBIT else CREDIT_COLOR)
            ws.cell(r, 5).number_format = MONEY_FORMAT

        _summary_block(ws, "SUMMARY", [
            ("Total Transactions", len(entries)),
            ("Total Credit", float(totals.total_credit)),
            ("Total Debit", float(totals.total_debit)),
            ("Net Balance", _net_label(totals.balance, "Customer Owes")),
        ], n)
        _autosize_columns(ws, skip_rows=header_row - 1)
    except Exception as exc:
        raise ExportFailure(filepath, str(exc)) from exc
    _save(wb, filepath)
