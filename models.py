"""
Data models for the receivables ledger
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Union

CREDIT = "credit"
DEBIT = "debit"


@dataclass
class Party:
    """Customer against whom receivables are tracked"""
    id: str
    name: str
    contact_number: Optional[str] = None
    company: Optional[str] = None


@dataclass
class Sale:
    """Sale record as delivered by the sales endpoint"""
    id: str
    date: str  # ISO timestamp as sent by the source
    party: str
    company: Optional[str]
    total_amount: float
    payment_method: Optional[str] = None  # "Credit" means unpaid at sale time
    reference: str = ""
    description: str = ""
    kind: str = field(default="sale", init=False)


@dataclass
class Receipt:
    """Payment received from a customer"""
    id: str
    date: str
    party: str
    company: Optional[str]
    amount: float
    payment_method: Optional[str] = None
    reference: str = ""
    description: str = ""
    kind: str = field(default="receipt", init=False)


Transaction = Union[Sale, Receipt]


@dataclass
class LedgerEntry:
    """One posting derived from a sale or receipt"""
    transaction_id: str
    party_id: str
    date: str
    type: str  # CREDIT or DEBIT
    transaction_type: str  # "Sales", "Sales Payment", "Receipt"
    payment_method: str
    amount: float
    reference: str = ""
    description: str = ""


@dataclass
class Balance:
    """Per-party totals; positive balance means the customer owes money"""
    party_id: str
    total_credit: float = 0.0
    total_debit: float = 0.0
    authoritative: bool = False  # True when taken from the stored balances

    @property
    def balance(self) -> float:
        return self.total_credit - self.total_debit

    @property
    def status(self) -> str:
        return "Customer Owes" if self.balance >= 0 else "You Owe"


@dataclass
class OverallTotals:
    """Totals across every party in scope"""
    total_credit: float = 0.0
    total_debit: float = 0.0

    @property
    def balance(self) -> float:
        return self.total_credit - self.total_debit

    @property
    def status(self) -> str:
        return "Customers Owe" if self.balance >= 0 else "You Owe"


@dataclass
class LedgerFilter:
    """Date window (inclusive calendar dates) and optional company scope"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    company_id: Optional[str] = None

    @property
    def has_window(self) -> bool:
        return self.start_date is not None or self.end_date is not None


@dataclass
class TransactionSet:
    """Raw records for one tenant, optionally company scoped"""
    sales: List[Sale] = field(default_factory=list)
    receipts: List[Receipt] = field(default_factory=list)


@dataclass
class PartySummary:
    """Row of the bulk balances report"""
    party: Party
    balance: Balance
    transaction_count: int = 0
    first_date: Optional[datetime] = None
    last_date: Optional[datetime] = None


@dataclass
class LineItem:
    """Product or service line of a transaction detail"""
    item_type: str  # "product" or "service"
    name: str
    amount: float
    quantity: Optional[float] = None
    unit_type: str = ""
    price_per_unit: Optional[float] = None
    description: str = ""
    code: str = ""  # HSN for products, SAC for services
    gst_percentage: Optional[float] = None
    line_tax: Optional[float] = None
