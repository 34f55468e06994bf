"""
Domain: Produce lots.

A lot is one procurement batch of a produce kind at a branch. Its remaining
tonnage (kilograms, despite the name) is the only shared mutable value in the
ledger and must never be observably negative.

This module contains only pure domain entities: no I/O, no database.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from .time import require_utc_timestamp

# Procurement must bring in at least this much stock.
MIN_PROCUREMENT_KG: int = 1000

# Lots holding less than this are flagged as low stock.
LOW_STOCK_THRESHOLD_KG: int = 1000


class ProduceKind(str, Enum):
    BEANS = "Beans"
    MAIZE = "Maize"
    COW_PEAS = "Cow Peas"
    GROUNDNUTS = "Groundnuts"
    SOYBEANS = "Soybeans"


class Branch(str, Enum):
    """Trading branches that hold stock."""

    MAGANJO = "MAGANJO"
    MATUGGA = "MATUGGA"


@dataclass(frozen=True, slots=True)
class ProduceLot:
    """
    Immutable snapshot of a produce lot.

    Snapshots are never mutated in place; the store returns a fresh snapshot
    after every reservation.
    """

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

    def __post_init__(self) -> None:
        require_utc_timestamp("procured_at", self.procured_at)
        require_utc_timestamp("created_at", self.created_at)
        if self.tonnage_kg < 0:
            raise ValueError("tonnage_kg cannot be negative")
        if self.unit_cost < 0:
            raise ValueError("unit_cost cannot be negative")
        if self.selling_price < 0:
            raise ValueError("selling_price cannot be negative")

    @property
    def is_low_stock(self) -> bool:
        return self.tonnage_kg < LOW_STOCK_THRESHOLD_KG

    @property
    def stock_value(self) -> Decimal:
        """Value of the remaining stock at the current selling price."""
        return self.selling_price * self.tonnage_kg

    @property
    def stock_cost(self) -> Decimal:
        return self.unit_cost * self.tonnage_kg

    def with_tonnage(self, tonnage_kg: int) -> "ProduceLot":
        return replace(self, tonnage_kg=tonnage_kg)

    def with_selling_price(self, selling_price: Decimal) -> "ProduceLot":
        return replace(self, selling_price=selling_price)
