"""
API response models and envelope helpers.

Every response is a JSON envelope ``{"success": bool, "message": str, ...}``.
Entities are serialized through the pydantic models below; report views are
dataclasses serialized field-by-field with a TypeAdapter.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, TypeAdapter

from produce_trading.domain.errors import (
    CreditSaleNotFound,
    InsufficientStock,
    InvalidStatusTransition,
    LotNotFound,
    PermissionDenied,
    ServiceError,
    StoreUnavailable,
    ValidationFailed,
)
from produce_trading.domain.produce import Branch, ProduceKind
from produce_trading.domain.transaction import CashSale, CreditStatus, Transaction, TransactionKind


# ============================================================================
# Entity Models
# ============================================================================

class _Response(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ProduceLotResponse(_Response):
    """Produce lot (stock) in API responses."""
    lot_id: UUID
    produce: ProduceKind
    produce_type: str
    tonnage_kg: int
    unit_cost: Decimal
    selling_price: Decimal
    dealer_name: str
    dealer_contact: str
    branch: Branch
    procured_at: datetime
    created_at: datetime
    is_low_stock: bool

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "lot_id": "123e4567-e89b-12d3-a456-426614174000",
                "produce": "Maize",
                "produce_type": "Grade A",
                "tonnage_kg": 1500,
                "unit_cost": "1200.00",
                "selling_price": "1500.00",
                "dealer_name": "Kato Traders",
                "dealer_contact": "0772123456",
                "branch": "MAGANJO",
                "procured_at": "2025-01-01T08:30:00Z",
                "created_at": "2025-01-01T08:31:12Z",
                "is_low_stock": False,
            }
        },
    )


class CashSaleResponse(_Response):
    sale_id: UUID
    lot_id: UUID
    kind: TransactionKind
    produce: ProduceKind
    quantity_kg: int
    amount_paid: Decimal
    buyer_name: str
    sales_agent: str
    branch: Branch
    sold_at: datetime
    created_at: Optional[datetime] = None


class CreditSaleResponse(_Response):
    sale_id: UUID
    lot_id: UUID
    kind: TransactionKind
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
    status: CreditStatus
    created_at: Optional[datetime] = None


def serialize(model: type[_Response], obj: Any) -> Dict[str, Any]:
    return model.model_validate(obj).model_dump(mode="json")


def serialize_transaction(transaction: Transaction) -> Dict[str, Any]:
    if isinstance(transaction, CashSale):
        return serialize(CashSaleResponse, transaction)
    return serialize(CreditSaleResponse, transaction)


@lru_cache(maxsize=None)
def _adapter(kind: type) -> TypeAdapter:
    return TypeAdapter(kind)


def serialize_view(view: Any) -> Dict[str, Any]:
    """Serialize a report dataclass (nested dataclasses included) to JSON-safe data."""
    return _adapter(type(view)).dump_python(view, mode="json")


# ============================================================================
# Envelopes
# ============================================================================

_ERROR_STATUS: Dict[type, int] = {
    ValidationFailed: 400,
    InsufficientStock: 400,
    PermissionDenied: 403,
    LotNotFound: 404,
    CreditSaleNotFound: 404,
    InvalidStatusTransition: 409,
    StoreUnavailable: 503,
}


def success_response(status_code: int = 200, message: Optional[str] = None, **payload: Any) -> JSONResponse:
    content: Dict[str, Any] = {"success": True}
    if message is not None:
        content["message"] = message
    content.update(payload)
    return JSONResponse(status_code=status_code, content=content)


def error_response(error: ServiceError) -> JSONResponse:
    """Translate a typed service error into its HTTP status and envelope."""

    content: Dict[str, Any] = {"success": False, "message": error.message}
    if isinstance(error, ValidationFailed):
        content["errors"] = [{"field": f.field, "message": f.message} for f in error.fields]
    elif isinstance(error, InsufficientStock):
        content["available"] = error.available
        content["requested"] = error.requested
    return JSONResponse(status_code=_ERROR_STATUS.get(type(error), 500), content=content)


__all__ = [
    "CashSaleResponse",
    "CreditSaleResponse",
    "ProduceLotResponse",
    "error_response",
    "serialize",
    "serialize_transaction",
    "serialize_view",
    "success_response",
]
