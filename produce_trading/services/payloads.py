"""
Input payload models.

Raw request bodies are validated here before any store access. A failed
validation reports every missing or invalid field at once.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StringConstraints, ValidationInfo, field_validator

from produce_trading.domain.produce import MIN_PROCUREMENT_KG, Branch, ProduceKind
from produce_trading.domain.transaction import CreditStatus

NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Ugandan phone number: +256 or 0 followed by nine digits.
UGANDAN_PHONE_PATTERN: str = r"^(?:\+256|0)[0-9]{9}$"

# National identification number: 14 upper-case alphanumerics.
NIN_PATTERN: str = r"^[A-Z0-9]{14}$"

PhoneNumber = Annotated[str, StringConstraints(strip_whitespace=True, pattern=UGANDAN_PHONE_PATTERN)]

# Column limits in sql/ledger_schema.sql: kilograms are `integer`, money is `numeric(14, 2)`.
MAX_KG: int = 2_147_483_647

Money = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class CashSalePayload(_Payload):
    produce_name: ProduceKind
    quantity_kg: StrictInt = Field(..., ge=1, le=MAX_KG, description="Kilograms sold (at least 1)")
    amount_paid: Money
    buyer_name: NonBlank


class CreditSalePayload(_Payload):
    produce_name: ProduceKind
    quantity_kg: StrictInt = Field(..., ge=1, le=MAX_KG, description="Kilograms sold (at least 1)")
    amount_due: Money
    buyer_name: NonBlank
    national_id: Annotated[str, StringConstraints(strip_whitespace=True, pattern=NIN_PATTERN)]
    location: NonBlank
    contact: PhoneNumber
    dispatch_date: date
    due_date: date

    @field_validator("due_date")
    @classmethod
    def _due_not_before_dispatch(cls, value: date, info: ValidationInfo) -> date:
        dispatch = info.data.get("dispatch_date")
        if dispatch is not None and value < dispatch:
            raise ValueError("due_date cannot be before dispatch_date")
        return value


class ProcurementPayload(_Payload):
    produce_name: ProduceKind
    produce_type: NonBlank
    tonnage_kg: StrictInt = Field(
        ...,
        ge=MIN_PROCUREMENT_KG,
        le=MAX_KG,
        description=f"Kilograms procured (at least {MIN_PROCUREMENT_KG})",
    )
    unit_cost: Money
    selling_price: Money
    dealer_name: NonBlank
    dealer_contact: PhoneNumber
    branch: Optional[Branch] = None
    procured_on: date
    procured_time: time


class SellingPriceUpdate(_Payload):
    selling_price: Money


class CreditStatusUpdate(_Payload):
    # Absent status means "mark as paid".
    status: CreditStatus = CreditStatus.PAID


__all__ = [
    "CashSalePayload",
    "CreditSalePayload",
    "CreditStatusUpdate",
    "MAX_KG",
    "NIN_PATTERN",
    "ProcurementPayload",
    "SellingPriceUpdate",
    "UGANDAN_PHONE_PATTERN",
]
