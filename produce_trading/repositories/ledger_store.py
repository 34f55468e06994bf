"""
Ledger store interface.

The ledger store exclusively owns persisted state: produce lots, cash sales
and credit sales. Services hold a store handle and never keep state between
calls.

Two primitives carry the consistency guarantees:
- ``conditional_decrement``: decrement a lot's tonnage only if the result
  stays non-negative, as one indivisible store operation.
- ``commit_transaction``: the same conditional decrement plus insertion of the
  transaction record, both applied or neither.

Implementations must provide these through the store's own atomic primitive
(a conditional UPDATE inside a database function), never an in-process lock
alone, because several process instances may share one store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from produce_trading.domain.produce import Branch, ProduceKind, ProduceLot
from produce_trading.domain.transaction import CashSale, CreditSale, CreditStatus, Transaction


class StoreUnavailableError(RuntimeError):
    """Raised when the underlying store cannot be reached or rejects a call."""


@dataclass(frozen=True, slots=True)
class DecrementResult:
    """
    Outcome of a conditional decrement.

    found: the lot exists
    applied: the decrement was applied
    remaining_kg: tonnage after the decrement when applied, otherwise the
        tonnage observed when the condition was evaluated (None if not found)
    """
    found: bool
    applied: bool
    remaining_kg: Optional[int]


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of ``commit_transaction``; ``transaction`` is set only when applied."""
    decrement: DecrementResult
    transaction: Optional[Transaction] = None


class LedgerStore(ABC):

    # Produce lots

    @abstractmethod
    def insert_lot(self, lot: ProduceLot) -> ProduceLot:
        ...

    @abstractmethod
    def get_lot(self, lot_id: UUID) -> Optional[ProduceLot]:
        ...

    @abstractmethod
    def find_latest_lot(self, produce: ProduceKind, branch: Branch) -> Optional[ProduceLot]:
        """Most recently created lot for (produce, branch), or None."""

    @abstractmethod
    def list_lots(self, branch: Optional[Branch] = None) -> List[ProduceLot]:
        """Lots ordered newest first, optionally limited to one branch."""

    @abstractmethod
    def update_selling_price(self, lot_id: UUID, selling_price: Decimal) -> Optional[ProduceLot]:
        ...

    @abstractmethod
    def delete_lot(self, lot_id: UUID) -> bool:
        ...

    # Reservations

    @abstractmethod
    def conditional_decrement(self, lot_id: UUID, quantity_kg: int) -> DecrementResult:
        ...

    @abstractmethod
    def commit_transaction(self, lot_id: UUID, transaction: Transaction) -> CommitResult:
        """Decrement ``lot_id`` by the transaction quantity and persist it, atomically."""

    # Sales

    @abstractmethod
    def list_cash_sales(
        self,
        branch: Optional[Branch] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CashSale]:
        """Cash sales ordered by sold_at, newest first; start/end are inclusive."""

    @abstractmethod
    def list_credit_sales(
        self,
        branch: Optional[Branch] = None,
        status: Optional[CreditStatus] = None,
    ) -> List[CreditSale]:
        """Credit sales ordered by created_at, newest first."""

    @abstractmethod
    def get_credit_sale(self, sale_id: UUID) -> Optional[CreditSale]:
        ...

    @abstractmethod
    def transition_credit_status(
        self,
        sale_id: UUID,
        expected: CreditStatus,
        target: CreditStatus,
    ) -> Optional[CreditSale]:
        """
        Set status to ``target`` only if it currently equals ``expected``.

        Returns the updated record, or None when no row matched.
        """


__all__ = [
    "CommitResult",
    "DecrementResult",
    "LedgerStore",
    "StoreUnavailableError",
]
