"""
Procurement service.

Creates produce lots, adjusts selling prices and removes lots. Tonnage is only
set here at creation; afterwards it changes exclusively through reservations.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from produce_trading.domain.errors import FieldError, LotNotFound, PermissionDenied, StoreUnavailable, ValidationFailed
from produce_trading.domain.principal import Operation, Principal
from produce_trading.domain.produce import Branch, ProduceLot
from produce_trading.repositories.ledger_store import LedgerStore, StoreUnavailableError
from produce_trading.services.payloads import ProcurementPayload, SellingPriceUpdate
from produce_trading.services.results import ServiceResult, authorize, validation_failed

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProcurementService:

    def __init__(self, store: LedgerStore, clock: Callable[[], datetime] = _utc_now) -> None:
        self._store = store
        self._clock = clock

    def procure(self, principal: Principal, payload: Mapping[str, Any]) -> ServiceResult[ProduceLot]:
        """
        Record a procurement as a new produce lot.

        The lot's branch defaults to the manager's own branch; a branch-scoped
        manager cannot procure into another branch.
        """

        denied = authorize(principal, Operation.PROCURE)
        if denied is not None:
            return ServiceResult.fail(denied)

        try:
            parsed = ProcurementPayload.model_validate(payload)
        except PydanticValidationError as e:
            return ServiceResult.fail(validation_failed(e))

        branch = parsed.branch or principal.trading_branch
        if branch is None:
            return ServiceResult.fail(
                ValidationFailed(fields=[FieldError(field="branch", message="Field required")])
            )
        if not principal.can_access_branch(branch):
            return ServiceResult.fail(PermissionDenied(role=principal.role.value, operation=Operation.PROCURE.value))

        procured_at = datetime.combine(parsed.procured_on, parsed.procured_time)
        if procured_at.tzinfo is None:
            procured_at = procured_at.replace(tzinfo=timezone.utc)

        lot = ProduceLot(
            lot_id=uuid4(),
            produce=parsed.produce_name,
            produce_type=parsed.produce_type,
            tonnage_kg=parsed.tonnage_kg,
            unit_cost=parsed.unit_cost,
            selling_price=parsed.selling_price,
            dealer_name=parsed.dealer_name,
            dealer_contact=parsed.dealer_contact,
            branch=branch,
            procured_at=procured_at.astimezone(timezone.utc),
            created_at=self._clock(),
        )

        try:
            stored = self._store.insert_lot(lot)
        except StoreUnavailableError as e:
            logger.error("Failed to record procurement", extra={"error": str(e)})
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        logger.info(
            "Procurement recorded",
            extra={
                "lot_id": str(stored.lot_id),
                "produce": stored.produce.value,
                "tonnage_kg": stored.tonnage_kg,
                "branch": stored.branch.value,
            },
        )
        return ServiceResult.ok(stored)

    def update_selling_price(
        self,
        principal: Principal,
        lot_id: UUID,
        payload: Mapping[str, Any],
    ) -> ServiceResult[ProduceLot]:
        denied = authorize(principal, Operation.UPDATE_LOT)
        if denied is not None:
            return ServiceResult.fail(denied)

        try:
            parsed = SellingPriceUpdate.model_validate(payload)
        except PydanticValidationError as e:
            return ServiceResult.fail(validation_failed(e))

        try:
            lot = self._store.get_lot(lot_id)
            if lot is None:
                return ServiceResult.fail(LotNotFound(lot_id=str(lot_id)))
            if not principal.can_access_branch(lot.branch):
                return ServiceResult.fail(
                    PermissionDenied(role=principal.role.value, operation=Operation.UPDATE_LOT.value)
                )
            updated = self._store.update_selling_price(lot_id, parsed.selling_price)
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        if updated is None:
            return ServiceResult.fail(LotNotFound(lot_id=str(lot_id)))
        return ServiceResult.ok(updated)

    def remove_lot(self, principal: Principal, lot_id: UUID) -> ServiceResult[ProduceLot]:
        """Delete a lot; returns the lot as it was just before removal."""

        denied = authorize(principal, Operation.REMOVE_LOT)
        if denied is not None:
            return ServiceResult.fail(denied)

        try:
            lot = self._store.get_lot(lot_id)
            if lot is None:
                return ServiceResult.fail(LotNotFound(lot_id=str(lot_id)))
            if not principal.can_access_branch(lot.branch):
                return ServiceResult.fail(
                    PermissionDenied(role=principal.role.value, operation=Operation.REMOVE_LOT.value)
                )
            if not self._store.delete_lot(lot_id):
                return ServiceResult.fail(LotNotFound(lot_id=str(lot_id)))
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        logger.info("Produce lot removed", extra={"lot_id": str(lot_id), "actor": principal.user_id})
        return ServiceResult.ok(lot)

    def list_lots(self, principal: Principal, branch: Optional[Branch] = None) -> ServiceResult[List[ProduceLot]]:
        """
        List lots, newest first.

        Branch-scoped callers always see their own branch; ``branch`` only
        narrows the view of organisation-wide callers.
        """

        denied = authorize(principal, Operation.VIEW_STOCK)
        if denied is not None:
            return ServiceResult.fail(denied)

        scope = principal.branch_scope() if principal.is_branch_scoped else branch
        try:
            return ServiceResult.ok(self._store.list_lots(scope))
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))


__all__ = ["ProcurementService"]
