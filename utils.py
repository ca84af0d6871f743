"""
Utility functions for the receivables ledger
"""
from __future__ import annotations
import os
import re
from datetime import date, datetime
from typing import Any, Optional


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date string"""
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as sent by the backend.
    Aware values are converted to naive local time, the same clock the
    calendar-day window bounds are read in.
    Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def safe_float(x: Any, default: float = 0.0) -> float:
    """Convert value to float safely, returning default on error"""
    if x is None:
        return default
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def format_indian_number(value: float) -> str:
    """Format with two decimals and Indian digit grouping (12,34,567.00)"""
    negative = value < 0
    integer_part, decimal_part = f"{abs(value):.2f}".split(".")
    last_three = integer_part[-3:]
    others = integer_part[:-3]
    if others:
        others = re.sub(r"\B(?=(\d{2})+(?!\d))", ",", others)
        integer_part = f"{others},{last_three}"
    out = f"{integer_part}.{decimal_part}"
    return f"-{out}" if negative else out


def format_rupees(value: float) -> str:
    return f"₹{format_indian_number(value)}"


def app_dir() -> str:
    """
    Get application data directory (RECEIVABLES_HOME or ~/.receivables-ledger).
    Creates directory if it doesn't exist.
    """
    path = os.environ.get("RECEIVABLES_HOME") or os.path.expanduser("~/.receivables-ledger")
    os.makedirs(path, exist_ok=True)
    return path
