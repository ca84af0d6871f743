"""
Configuration loading and record decoding for the receivables ledger
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from errors import ValidationGap
from models import Party, Receipt, Sale
from utils import app_dir, safe_float

logger = logging.getLogger("receivables.config")

ENV_PREFIX = "RECEIVABLES_"


@dataclass
class Settings:
    """Connection and behaviour settings"""
    base_url: str = "http://localhost:5000/api"
    token: str = ""
    company_id: Optional[str] = None
    export_dir: str = "."
    timeout: float = 30.0
    debounce_seconds: float = 0.3
    log_level: str = "INFO"


def load_settings(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Load settings from settings.json in the app directory, then apply
    RECEIVABLES_<FIELD> environment overrides.
    """
    if path is None:
        path = os.path.join(app_dir(), "settings.json")
    environ = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        pass

    settings = Settings()
    for f in fields(Settings):
        if f.name in data:
            setattr(settings, f.name, data[f.name])
        env_value = environ.get(ENV_PREFIX + f.name.upper())
        if env_value is not None:
            setattr(settings, f.name, env_value)

    settings.timeout = safe_float(settings.timeout, 30.0)
    settings.debounce_seconds = safe_float(settings.debounce_seconds, 0.3)
    settings.company_id = settings.company_id or None
    return settings


def save_settings(settings: Settings, path: Optional[str] = None) -> None:
    if path is None:
        path = os.path.join(app_dir(), "settings.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(settings), f, indent=2)


def ref_id(value: Any) -> Optional[str]:
    """Id of a bare reference or of an embedded object with _id/id"""
    if value is None:
        return None
    if isinstance(value, dict):
        inner = value.get("_id") or value.get("id")
        return str(inner) if inner is not None else None
    return str(value)


def _first_present(d: dict, *keys: str) -> Any:
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None


def _record_id(d: dict) -> str:
    return str(_first_present(d, "_id", "id") or "")


def dict_to_party(d: Any) -> Party:
    """Convert a party JSON object to Party"""
    if not isinstance(d, dict):
        raise ValidationGap("party", "not an object", d)
    return Party(
        id=_record_id(d),
        name=str(d.get("name") or ""),
        contact_number=d.get("contactNumber") or None,
        company=ref_id(d.get("company")),
    )


def dict_to_sale(d: Any) -> Sale:
    """Convert a sale JSON object to Sale; missing amounts become 0"""
    if not isinstance(d, dict):
        raise ValidationGap("sale", "not an object", d)
    amount = _first_present(d, "totalAmount", "amount", "invoiceTotal")
    if amount is None:
        logger.warning("Sale without amount, using 0", extra={"transaction_id": _record_id(d)})
    return Sale(
        id=_record_id(d),
        date=str(d.get("date") or ""),
        party=ref_id(d.get("party")) or "",
        company=ref_id(d.get("company")),
        total_amount=safe_float(amount),
        payment_method=d.get("paymentMethod"),
        reference=str(d.get("invoiceNumber") or d.get("referenceNumber") or ""),
        description=str(d.get("description") or ""),
    )


def dict_to_receipt(d: Any) -> Receipt:
    """Convert a receipt JSON object to Receipt; missing amount becomes 0"""
    if not isinstance(d, dict):
        raise ValidationGap("receipt", "not an object", d)
    if d.get("amount") is None:
        logger.warning("Receipt without amount, using 0", extra={"transaction_id": _record_id(d)})
    return Receipt(
        id=_record_id(d),
        date=str(d.get("date") or ""),
        party=ref_id(d.get("party")) or "",
        company=ref_id(d.get("company")),
        amount=safe_float(d.get("amount")),
        payment_method=d.get("paymentMethod"),
        reference=str(d.get("referenceNumber") or ""),
        description=str(d.get("description") or ""),
    )
