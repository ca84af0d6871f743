"""
Product and service lines of a single sale or receipt, for the item breakdown
shown next to a ledger entry. Display only; balances never read these.
"""
from __future__ import annotations
from typing import Any, Iterable, List, Optional

from models import LineItem
from utils import safe_float


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return safe_float(value)


def _named(ref: Any, key: str, fallback: str) -> str:
    if isinstance(ref, dict):
        return str(ref.get(key) or fallback)
    return str(ref or fallback)


def _services(transaction: dict) -> list:
    services = transaction.get("services")
    if isinstance(services, list):
        return services
    if isinstance(transaction.get("service"), list):
        return transaction["service"]
    if services:
        return [services]
    return []


def parse_line_items(transaction: dict) -> List[LineItem]:
    """Products first, then services"""
    items = []
    for p in transaction.get("products") or []:
        product = p.get("product")
        items.append(LineItem(
            item_type="product",
            name=_named(product, "name", "(product)"),
            quantity=_optional_float(p.get("quantity")),
            unit_type=str(p.get("unitType") or ""),
            price_per_unit=_optional_float(p.get("pricePerUnit")),
            amount=safe_float(p.get("amount")),
            code=str(p.get("hsn") or (product.get("hsn") if isinstance(product, dict) else "") or ""),
            gst_percentage=_optional_float(p.get("gstPercentage")),
            line_tax=_optional_float(p.get("lineTax")),
        ))
    for s in _services(transaction):
        service = s.get("service")
        items.append(LineItem(
            item_type="service",
            name=_named(service, "serviceName", "(service)"),
            description=str(s.get("description") or ""),
            amount=safe_float(s.get("amount")),
            code=str(s.get("sac") or (service.get("sac") if isinstance(service, dict) else "") or ""),
            gst_percentage=_optional_float(s.get("gstPercentage")),
            line_tax=_optional_float(s.get("lineTax")),
        ))
    return items


def line_items_total(items: Iterable[LineItem]) -> float:
    """Taxable amount plus line tax across all lines"""
    return sum(i.amount + (i.line_tax or 0.0) for i in items)
