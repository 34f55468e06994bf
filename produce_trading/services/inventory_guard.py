"""
Inventory guard.

Enforces that committed sales never exceed the available tonnage of a lot,
whatever the number of concurrent callers.

Every reservation is a single conditional update evaluated by the store
("decrement by quantity only if the result stays >= 0"). The guard never reads
tonnage and then writes it back, so there is no window between the check and
the decrement. Concurrent reservations against one lot are linearized by the
store; which caller wins when stock is scarce is not specified.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
from uuid import UUID

from produce_trading.domain.errors import InvariantViolation
from produce_trading.domain.transaction import Transaction
from produce_trading.repositories.ledger_store import DecrementResult, LedgerStore

logger = logging.getLogger(__name__)


class ReserveStatus(str, Enum):
    RESERVED = "Reserved"
    INSUFFICIENT_STOCK = "InsufficientStock"
    LOT_NOT_FOUND = "LotNotFound"


@dataclass(frozen=True, slots=True)
class ReserveOutcome:
    """
    Outcome of one reservation.

    remaining_kg: tonnage left after a successful reservation, or the tonnage
        observed when an unsuccessful one was evaluated (None if the lot is missing)
    """
    status: ReserveStatus
    lot_id: UUID
    requested_kg: int
    remaining_kg: Optional[int]

    @property
    def reserved(self) -> bool:
        return self.status is ReserveStatus.RESERVED


class InventoryGuard:

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def reserve(self, lot_id: UUID, quantity_kg: int) -> ReserveOutcome:
        """
        Atomically take ``quantity_kg`` from a lot.

        Raises:
            ValueError: quantity_kg is less than 1
            InvariantViolation: the store reported a negative remaining tonnage
            StoreUnavailableError: the store could not be reached
        """

        _require_positive(quantity_kg)
        result = self._store.conditional_decrement(lot_id, quantity_kg)
        return self._interpret(lot_id, quantity_kg, result)

    def reserve_and_record(
        self,
        lot_id: UUID,
        transaction: Transaction,
    ) -> Tuple[ReserveOutcome, Optional[Transaction]]:
        """
        Reserve the transaction's quantity and persist the transaction as one unit.

        Returns:
            (outcome, stored transaction); the transaction is None unless reserved
        """

        _require_positive(transaction.quantity_kg)
        commit = self._store.commit_transaction(lot_id, transaction)
        outcome = self._interpret(lot_id, transaction.quantity_kg, commit.decrement)

        if outcome.reserved and commit.transaction is None:
            raise InvariantViolation(
                f"Stock reserved on lot {lot_id} without a transaction record"
            )
        if not outcome.reserved and commit.transaction is not None:
            raise InvariantViolation(
                f"Transaction {commit.transaction.sale_id} persisted without a reservation on lot {lot_id}"
            )
        return outcome, commit.transaction

    def _interpret(self, lot_id: UUID, quantity_kg: int, result: DecrementResult) -> ReserveOutcome:
        log_extra = {
            "lot_id": str(lot_id),
            "requested_kg": quantity_kg,
            "remaining_kg": result.remaining_kg,
        }

        if not result.found:
            logger.info("Reservation rejected: lot not found", extra=log_extra)
            return ReserveOutcome(ReserveStatus.LOT_NOT_FOUND, lot_id, quantity_kg, None)

        if result.remaining_kg is None or result.remaining_kg < 0:
            logger.critical("Ledger store reported invalid remaining tonnage", extra=log_extra)
            raise InvariantViolation(
                f"Lot {lot_id} reported remaining tonnage {result.remaining_kg} "
                f"after a reservation of {quantity_kg}kg"
            )

        if result.applied:
            logger.info("Stock reserved", extra=log_extra)
            return ReserveOutcome(ReserveStatus.RESERVED, lot_id, quantity_kg, result.remaining_kg)

        logger.info("Reservation rejected: insufficient stock", extra=log_extra)
        return ReserveOutcome(ReserveStatus.INSUFFICIENT_STOCK, lot_id, quantity_kg, result.remaining_kg)


def _require_positive(quantity_kg: int) -> None:
    if quantity_kg < 1:
        raise ValueError("quantity_kg must be at least 1")


__all__ = ["InventoryGuard", "ReserveOutcome", "ReserveStatus"]
