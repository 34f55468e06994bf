"""
Transaction coordinator.

Records cash and credit sales through one entry point:

1. Check the caller may record this kind of sale
2. Validate the payload (every bad field is reported)
3. Resolve the lot: the most recent lot of that produce at the caller's branch
4. Reserve the quantity and persist the sale as one atomic unit
5. Report InsufficientStock (with the tonnage seen) when the lot cannot cover it

The coordinator holds no state between calls and is safe to share between
threads. It makes at most one attempt per call; retrying is the caller's
decision.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from produce_trading.domain.errors import (
    CreditSaleNotFound,
    FieldError,
    InsufficientStock,
    InvalidStatusTransition,
    LotNotFound,
    PermissionDenied,
    StoreUnavailable,
    ValidationFailed,
)
from produce_trading.domain.principal import Operation, Principal
from produce_trading.domain.produce import Branch, ProduceLot
from produce_trading.domain.time import as_utc
from produce_trading.domain.transaction import (
    CashSale,
    CreditSale,
    CreditStatus,
    Transaction,
    TransactionKind,
    can_transition,
)
from produce_trading.repositories.ledger_store import LedgerStore, StoreUnavailableError
from produce_trading.services.inventory_guard import InventoryGuard, ReserveStatus
from produce_trading.services.payloads import CashSalePayload, CreditSalePayload, CreditStatusUpdate
from produce_trading.services.results import ServiceResult, authorize, validation_failed

logger = logging.getLogger(__name__)

TransactionResult = ServiceResult[Transaction]

_RECORD_OPERATIONS = {
    TransactionKind.CASH: Operation.RECORD_CASH_SALE,
    TransactionKind.CREDIT: Operation.RECORD_CREDIT_SALE,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransactionCoordinator:

    def __init__(self, store: LedgerStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self._store = store
        self._guard = InventoryGuard(store)
        self._clock = clock

    def record_transaction(
        self,
        principal: Principal,
        kind: Union[TransactionKind, str],
        payload: Mapping[str, Any],
    ) -> TransactionResult:
        """
        Record a sale of ``kind`` (Cash or Credit) for ``principal``.

        Either exactly one lot is decremented and exactly one sale is created,
        or nothing is written at all.

        Example:
            result = coordinator.record_transaction(
                principal, TransactionKind.CASH,
                {"produce_name": "Maize", "quantity_kg": 300, "amount_paid": "450000", "buyer_name": "Okello"},
            )
            if not result.success:
                print(result.message)
        """

        try:
            kind = TransactionKind(kind)
        except ValueError:
            allowed = " or ".join(f"'{k.value}'" for k in TransactionKind)
            return TransactionResult.fail(
                ValidationFailed(fields=[FieldError(field="kind", message=f"Input should be {allowed}")])
            )

        denied = authorize(principal, _RECORD_OPERATIONS[kind])
        if denied is not None:
            return TransactionResult.fail(denied)

        try:
            if kind is TransactionKind.CASH:
                parsed: Union[CashSalePayload, CreditSalePayload] = CashSalePayload.model_validate(payload)
            else:
                parsed = CreditSalePayload.model_validate(payload)
        except PydanticValidationError as e:
            return TransactionResult.fail(validation_failed(e))

        branch = principal.trading_branch
        if branch is None:
            # Head Office holds no stock.
            return TransactionResult.fail(PermissionDenied(role=principal.role.value, operation=kind.value))

        try:
            lot = self._store.find_latest_lot(parsed.produce_name, branch)
            if lot is None:
                return TransactionResult.fail(LotNotFound(produce=parsed.produce_name.value, branch=branch.value))

            transaction = self._build_transaction(principal, branch, lot, parsed)
            outcome, stored = self._guard.reserve_and_record(lot.lot_id, transaction)
        except StoreUnavailableError as e:
            logger.error("Failed to record transaction", extra={"kind": kind.value, "error": str(e)})
            return TransactionResult.fail(StoreUnavailable(detail=str(e)))

        if outcome.status is ReserveStatus.LOT_NOT_FOUND:
            # The lot was removed between resolution and reservation.
            return TransactionResult.fail(LotNotFound(produce=parsed.produce_name.value, branch=branch.value))
        if outcome.status is ReserveStatus.INSUFFICIENT_STOCK:
            return TransactionResult.fail(
                InsufficientStock(available=outcome.remaining_kg or 0, requested=parsed.quantity_kg)
            )

        logger.info(
            "Transaction recorded",
            extra={
                "kind": kind.value,
                "sale_id": str(transaction.sale_id),
                "lot_id": str(lot.lot_id),
                "quantity_kg": parsed.quantity_kg,
                "remaining_kg": outcome.remaining_kg,
                "branch": branch.value,
            },
        )
        return TransactionResult.ok(stored)

    def record_cash_sale(self, principal: Principal, payload: Mapping[str, Any]) -> TransactionResult:
        return self.record_transaction(principal, TransactionKind.CASH, payload)

    def record_credit_sale(self, principal: Principal, payload: Mapping[str, Any]) -> TransactionResult:
        return self.record_transaction(principal, TransactionKind.CREDIT, payload)

    def mark_credit_paid(
        self,
        principal: Principal,
        sale_id: UUID,
        status: Optional[str] = None,
    ) -> ServiceResult[CreditSale]:
        """
        Settle a credit sale.

        ``status`` defaults to Paid and must be one of Pending/Paid. Only the
        Pending -> Paid transition exists; anything else is rejected.
        """

        denied = authorize(principal, Operation.MARK_CREDIT_PAID)
        if denied is not None:
            return ServiceResult.fail(denied)

        try:
            update = CreditStatusUpdate.model_validate({} if status is None else {"status": status})
        except PydanticValidationError as e:
            return ServiceResult.fail(validation_failed(e))

        try:
            sale = self._store.get_credit_sale(sale_id)
            if sale is None:
                return ServiceResult.fail(CreditSaleNotFound(sale_id=str(sale_id)))
            if not principal.can_access_branch(sale.branch):
                return ServiceResult.fail(
                    PermissionDenied(role=principal.role.value, operation=Operation.MARK_CREDIT_PAID.value)
                )
            if not can_transition(sale.status, update.status):
                return ServiceResult.fail(
                    InvalidStatusTransition(current=sale.status.value, requested=update.status.value)
                )

            updated = self._store.transition_credit_status(sale_id, sale.status, update.status)
        except StoreUnavailableError as e:
            logger.error("Failed to update credit sale", extra={"sale_id": str(sale_id), "error": str(e)})
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        if updated is None:
            # Another manager settled it first.
            return ServiceResult.fail(
                InvalidStatusTransition(current=CreditStatus.PAID.value, requested=update.status.value)
            )

        logger.info(
            "Credit sale status updated",
            extra={"sale_id": str(sale_id), "status": updated.status.value, "actor": principal.user_id},
        )
        return ServiceResult.ok(updated)

    def list_cash_sales(
        self,
        principal: Principal,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ServiceResult[List[CashSale]]:
        denied = authorize(principal, Operation.VIEW_SALES)
        if denied is not None:
            return ServiceResult.fail(denied)
        try:
            return ServiceResult.ok(
                self._store.list_cash_sales(principal.branch_scope(), as_utc(start), as_utc(end))
            )
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

    def list_credit_sales(
        self,
        principal: Principal,
        status: Optional[CreditStatus] = None,
    ) -> ServiceResult[List[CreditSale]]:
        denied = authorize(principal, Operation.VIEW_CREDIT_SALES)
        if denied is not None:
            return ServiceResult.fail(denied)
        try:
            return ServiceResult.ok(self._store.list_credit_sales(principal.branch_scope(), status))
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

    def _build_transaction(
        self,
        principal: Principal,
        branch: Branch,
        lot: ProduceLot,
        parsed: Union[CashSalePayload, CreditSalePayload],
    ) -> Transaction:
        now = self._clock()
        if isinstance(parsed, CashSalePayload):
            return CashSale(
                sale_id=uuid4(),
                lot_id=lot.lot_id,
                produce=parsed.produce_name,
                quantity_kg=parsed.quantity_kg,
                amount_paid=parsed.amount_paid,
                buyer_name=parsed.buyer_name,
                sales_agent=principal.display_name,
                branch=branch,
                sold_at=now,
                created_at=now,
            )
        return CreditSale(
            sale_id=uuid4(),
            lot_id=lot.lot_id,
            produce=parsed.produce_name,
            quantity_kg=parsed.quantity_kg,
            amount_due=parsed.amount_due,
            buyer_name=parsed.buyer_name,
            national_id=parsed.national_id,
            location=parsed.location,
            contact=parsed.contact,
            sales_agent=principal.display_name,
            branch=branch,
            due_date=parsed.due_date,
            dispatch_date=parsed.dispatch_date,
            status=CreditStatus.PENDING,
            created_at=now,
        )


__all__ = ["TransactionCoordinator", "TransactionResult"]
