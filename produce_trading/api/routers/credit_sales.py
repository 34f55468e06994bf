"""
Credit Sales API Endpoints.

Credit sales reserve stock exactly like cash sales and start out Pending.
Managers settle them (Pending -> Paid).
"""

from datetime import date
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from produce_trading.api.dependencies import get_coordinator, get_principal, get_projector
from produce_trading.api.models import error_response, serialize_transaction, serialize_view, success_response
from produce_trading.domain.principal import Principal
from produce_trading.domain.transaction import CreditStatus
from produce_trading.services.summary_service import SummaryProjector
from produce_trading.services.transaction_service import TransactionCoordinator

router = APIRouter()


@router.get(
    "/credit-sales",
    summary="List Credit Sales",
)
def list_credit_sales(
    status: Optional[CreditStatus] = Query(None, description="Filter by status ('Pending' or 'Paid')"),
    principal: Principal = Depends(get_principal),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
):
    result = coordinator.list_credit_sales(principal, status)
    if not result.success:
        return error_response(result.error)
    return success_response(credit_sales=[serialize_transaction(sale) for sale in result.value])


@router.get(
    "/credit-sales/summary",
    summary="Credit Summary",
    description="Pending vs paid credit totals (Managers and Directors).",
)
def credit_summary(
    as_of: Optional[date] = Query(None, description="Date used for overdue detection (default: today)"),
    principal: Principal = Depends(get_principal),
    projector: SummaryProjector = Depends(get_projector),
):
    result = projector.credit_summary(principal, as_of)
    if not result.success:
        return error_response(result.error)
    summary = result.value
    return success_response(
        summary={
            "pending": serialize_view(summary.pending),
            "paid": serialize_view(summary.paid),
            "overall": serialize_view(summary.overall),
        }
    )


@router.post(
    "/credit-sales",
    summary="Record Credit Sale",
)
def create_credit_sale(
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
):
    """
    Record a credit sale.

    **Example request:**
    ```json
    {
      "produce_name": "Beans",
      "quantity_kg": 200,
      "amount_due": "600000",
      "buyer_name": "Namuli Grace",
      "national_id": "CM12345678ABCD",
      "location": "Wakiso",
      "contact": "0701234567",
      "dispatch_date": "2025-01-02",
      "due_date": "2025-02-02"
    }
    ```
    """
    result = coordinator.record_credit_sale(principal, payload)
    if not result.success:
        return error_response(result.error)
    return success_response(
        status_code=201,
        message="Credit sale recorded successfully",
        credit_sale=serialize_transaction(result.value),
    )


@router.put(
    "/credit-sales/{sale_id}",
    summary="Settle Credit Sale",
    description="Mark a credit sale as Paid (Managers only). Paid sales cannot be reopened.",
)
def update_credit_status(
    sale_id: UUID,
    payload: Optional[Dict[str, Any]] = Body(None),
    principal: Principal = Depends(get_principal),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
):
    status = (payload or {}).get("status")
    result = coordinator.mark_credit_paid(principal, sale_id, status)
    if not result.success:
        return error_response(result.error)
    return success_response(
        message=f"Credit sale marked as {result.value.status.value}",
        credit_sale=serialize_transaction(result.value),
    )
