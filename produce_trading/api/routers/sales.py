"""
Cash Sales API Endpoints.

Recording a sale decrements the lot's stock and stores the sale as one atomic
unit; a sale that would oversell is rejected with the tonnage still available.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from produce_trading.api.dependencies import get_coordinator, get_principal
from produce_trading.api.models import error_response, serialize_transaction, success_response
from produce_trading.domain.principal import Principal
from produce_trading.services.transaction_service import TransactionCoordinator

router = APIRouter()


@router.get(
    "/sales",
    summary="List Cash Sales",
    description="Cash sales, newest first. Managers and sales agents only see their branch.",
)
def list_sales(
    start: Optional[datetime] = Query(None, description="Inclusive start (ISO-8601, UTC)"),
    end: Optional[datetime] = Query(None, description="Inclusive end (ISO-8601, UTC)"),
    principal: Principal = Depends(get_principal),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
):
    result = coordinator.list_cash_sales(principal, start, end)
    if not result.success:
        return error_response(result.error)
    return success_response(sales=[serialize_transaction(sale) for sale in result.value])


@router.post(
    "/sales",
    summary="Record Cash Sale",
    description="Record a cash sale against the newest lot of the produce at the caller's branch.",
)
def create_sale(
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
):
    """
    Record a cash sale.

    **Example request:**
    ```json
    {
      "produce_name": "Maize",
      "quantity_kg": 300,
      "amount_paid": "450000",
      "buyer_name": "Okello John"
    }
    ```

    **Failure response (insufficient stock):**
    ```json
    {
      "success": false,
      "message": "Insufficient stock. Only 150kg available",
      "available": 150,
      "requested": 300
    }
    ```
    """
    result = coordinator.record_cash_sale(principal, payload)
    if not result.success:
        return error_response(result.error)
    return success_response(
        status_code=201,
        message="Sale recorded successfully",
        sale=serialize_transaction(result.value),
    )
