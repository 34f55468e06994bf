"""
Domain: Sale transactions.

A transaction draws quantity from exactly one produce lot. Cash sales are
settled on the spot; credit sales carry a settlement status that may move
from Pending to Paid exactly once.

Contract excerpts implemented here:
- quantity_kg is at least 1.
- Amounts are never negative.
- CreditSale.status only transitions Pending -> Paid; Paid is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from .produce import Branch, ProduceKind
from .time import require_utc_timestamp


class TransactionKind(str, Enum):
    CASH = "Cash"
    CREDIT = "Credit"


class CreditStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"


def _check_common(quantity_kg: int, created_at: Optional[datetime]) -> None:
    if quantity_kg < 1:
        raise ValueError("quantity_kg must be at least 1")
    if created_at is not None:
        require_utc_timestamp("created_at", created_at)


@dataclass(frozen=True, slots=True)
class CashSale:
    """Immutable record of a cash sale."""

    sale_id: UUID
    lot_id: UUID
    produce: ProduceKind
    quantity_kg: int
    amount_paid: Decimal
    buyer_name: str
    sales_agent: str
    branch: Branch
    sold_at: datetime
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        _check_common(self.quantity_kg, self.created_at)
        require_utc_timestamp("sold_at", self.sold_at)
        if self.amount_paid < 0:
            raise ValueError("amount_paid cannot be negative")

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.CASH

    @property
    def amount(self) -> Decimal:
        return self.amount_paid


@dataclass(frozen=True, slots=True)
class CreditSale:
    """
    Record of a sale on credit.

    Everything except ``status`` is fixed at creation time. Status changes
    produce a new instance through ``mark_paid``.
    """

    sale_id: UUID
    lot_id: UUID
    produce: ProduceKind
    quantity_kg: int
    amount_due: Decimal
    buyer_name: str
    national_id: str
    location: str
    contact: str
    sales_agent: str
    branch: Branch
    due_date: date
    dispatch_date: date
    status: CreditStatus = CreditStatus.PENDING
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        _check_common(self.quantity_kg, self.created_at)
        if self.amount_due < 0:
            raise ValueError("amount_due cannot be negative")

    @property
    def kind(self) -> TransactionKind:
        return TransactionKind.CREDIT

    @property
    def amount(self) -> Decimal:
        return self.amount_due

    @property
    def is_pending(self) -> bool:
        return self.status is CreditStatus.PENDING

    def is_overdue(self, as_of: date) -> bool:
        """A credit sale is overdue once its due date has passed while still Pending."""
        return self.is_pending and self.due_date < as_of

    def mark_paid(self) -> "CreditSale":
        """Return a new CreditSale settled as Paid."""

        if not can_transition(self.status, CreditStatus.PAID):
            raise ValueError(f"Credit sale is already {self.status.value}")
        return replace(self, status=CreditStatus.PAID)


Transaction = Union[CashSale, CreditSale]

_ALLOWED_TRANSITIONS: frozenset[tuple[CreditStatus, CreditStatus]] = frozenset(
    {(CreditStatus.PENDING, CreditStatus.PAID)}
)


def can_transition(current: CreditStatus, target: CreditStatus) -> bool:
    return (current, target) in _ALLOWED_TRANSITIONS


__all__ = [
    "CashSale",
    "CreditSale",
    "CreditStatus",
    "Transaction",
    "TransactionKind",
    "can_transition",
]
