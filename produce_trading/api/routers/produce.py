"""
Produce (stock) API Endpoints.

Browse stock and record procurements. Procurement, price changes and removal
are manager operations; everyone may view stock.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from produce_trading.api.dependencies import get_principal, get_procurement
from produce_trading.api.models import ProduceLotResponse, error_response, serialize, success_response
from produce_trading.domain.principal import Principal
from produce_trading.domain.produce import Branch
from produce_trading.services.procurement_service import ProcurementService

router = APIRouter()


@router.get(
    "/produce",
    summary="List Stock",
    description="List produce lots, newest first. Managers and sales agents only see their branch.",
)
def list_produce(
    branch: Optional[Branch] = Query(None, description="Filter by branch (Director only)"),
    principal: Principal = Depends(get_principal),
    service: ProcurementService = Depends(get_procurement),
):
    result = service.list_lots(principal, branch)
    if not result.success:
        return error_response(result.error)
    return success_response(produce=[serialize(ProduceLotResponse, lot) for lot in result.value])


@router.post(
    "/produce",
    summary="Record Procurement",
    description="Record a new produce lot. Minimum procurement is 1000kg.",
)
def create_produce(
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    service: ProcurementService = Depends(get_procurement),
):
    """
    Record a procurement.

    **Example request:**
    ```json
    {
      "produce_name": "Maize",
      "produce_type": "Grade A",
      "tonnage_kg": 1500,
      "unit_cost": "1200",
      "selling_price": "1500",
      "dealer_name": "Kato Traders",
      "dealer_contact": "0772123456",
      "procured_on": "2025-01-01",
      "procured_time": "08:30"
    }
    ```
    """
    result = service.procure(principal, payload)
    if not result.success:
        return error_response(result.error)
    return success_response(
        status_code=201,
        message="Procurement recorded successfully",
        produce=serialize(ProduceLotResponse, result.value),
    )


@router.put(
    "/produce/{lot_id}",
    summary="Update Selling Price",
    description="Adjust a lot's selling price. Tonnage cannot be edited.",
)
def update_produce(
    lot_id: UUID,
    payload: Dict[str, Any] = Body(...),
    principal: Principal = Depends(get_principal),
    service: ProcurementService = Depends(get_procurement),
):
    result = service.update_selling_price(principal, lot_id, payload)
    if not result.success:
        return error_response(result.error)
    return success_response(
        message="Produce updated successfully",
        produce=serialize(ProduceLotResponse, result.value),
    )


@router.delete(
    "/produce/{lot_id}",
    summary="Remove Lot",
)
def delete_produce(
    lot_id: UUID,
    principal: Principal = Depends(get_principal),
    service: ProcurementService = Depends(get_procurement),
):
    result = service.remove_lot(principal, lot_id)
    if not result.success:
        return error_response(result.error)
    return success_response(message="Produce deleted successfully")
