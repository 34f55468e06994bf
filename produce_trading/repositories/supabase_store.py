"""
Supabase-backed ledger store.

Binds the module-level repository functions to one explicit client handle so
services can depend on the LedgerStore interface.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from produce_trading.config import Settings
from produce_trading.domain.produce import Branch, ProduceKind, ProduceLot
from produce_trading.domain.transaction import CashSale, CreditSale, CreditStatus, Transaction
from produce_trading.repositories import produce_repository, reservation_repository, sale_repository
from produce_trading.repositories.client import create_supabase_client
from produce_trading.repositories.ledger_store import CommitResult, DecrementResult, LedgerStore


class SupabaseLedgerStore(LedgerStore):

    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseLedgerStore":
        return cls(create_supabase_client(settings))

    def insert_lot(self, lot: ProduceLot) -> ProduceLot:
        return produce_repository.insert_lot(self._client, lot)

    def get_lot(self, lot_id: UUID) -> Optional[ProduceLot]:
        return produce_repository.get_lot(self._client, lot_id)

    def find_latest_lot(self, produce: ProduceKind, branch: Branch) -> Optional[ProduceLot]:
        return produce_repository.find_latest_lot(self._client, produce, branch)

    def list_lots(self, branch: Optional[Branch] = None) -> List[ProduceLot]:
        return produce_repository.list_lots(self._client, branch)

    def update_selling_price(self, lot_id: UUID, selling_price: Decimal) -> Optional[ProduceLot]:
        return produce_repository.update_selling_price(self._client, lot_id, selling_price)

    def delete_lot(self, lot_id: UUID) -> bool:
        return produce_repository.delete_lot(self._client, lot_id)

    def conditional_decrement(self, lot_id: UUID, quantity_kg: int) -> DecrementResult:
        return reservation_repository.reserve_stock(self._client, lot_id, quantity_kg)

    def commit_transaction(self, lot_id: UUID, transaction: Transaction) -> CommitResult:
        return reservation_repository.record_transaction_atomic(self._client, lot_id, transaction)

    def list_cash_sales(
        self,
        branch: Optional[Branch] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[CashSale]:
        return sale_repository.list_cash_sales(self._client, branch, start, end)

    def list_credit_sales(
        self,
        branch: Optional[Branch] = None,
        status: Optional[CreditStatus] = None,
    ) -> List[CreditSale]:
        return sale_repository.list_credit_sales(self._client, branch, status)

    def get_credit_sale(self, sale_id: UUID) -> Optional[CreditSale]:
        return sale_repository.get_credit_sale(self._client, sale_id)

    def transition_credit_status(
        self,
        sale_id: UUID,
        expected: CreditStatus,
        target: CreditStatus,
    ) -> Optional[CreditSale]:
        return sale_repository.transition_credit_status(self._client, sale_id, expected, target)


__all__ = ["SupabaseLedgerStore"]
