"""
Domain: Typed error results.

Services report expected failures as values rather than raising them, so
callers (the HTTP layer, scripts) decide how to present each one. Only
``InvariantViolation`` is raised: it signals a defect, not a business outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True, slots=True)
class FieldError:
    """One missing or invalid input field."""
    field: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationFailed:
    fields: List[FieldError] = field(default_factory=list)

    @property
    def message(self) -> str:
        names = ", ".join(sorted({f.field for f in self.fields}))
        return f"Invalid or missing fields: {names}" if names else "Invalid request"


@dataclass(frozen=True, slots=True)
class LotNotFound:
    produce: Optional[str] = None
    branch: Optional[str] = None
    lot_id: Optional[str] = None

    @property
    def message(self) -> str:
        if self.lot_id is not None:
            return f"Produce lot not found: {self.lot_id}"
        return f"{self.produce} not found in {self.branch} branch"


@dataclass(frozen=True, slots=True)
class InsufficientStock:
    available: int
    requested: int

    @property
    def message(self) -> str:
        return f"Insufficient stock. Only {self.available}kg available"


@dataclass(frozen=True, slots=True)
class StoreUnavailable:
    detail: str

    @property
    def message(self) -> str:
        return "Ledger store unavailable, try again later"


@dataclass(frozen=True, slots=True)
class PermissionDenied:
    role: str
    operation: str

    @property
    def message(self) -> str:
        return f"Access denied. {self.role} cannot perform {self.operation}"


@dataclass(frozen=True, slots=True)
class CreditSaleNotFound:
    sale_id: str

    @property
    def message(self) -> str:
        return f"Credit sale not found: {self.sale_id}"


@dataclass(frozen=True, slots=True)
class InvalidStatusTransition:
    current: str
    requested: str

    @property
    def message(self) -> str:
        return f"Credit sale cannot move from {self.current} to {self.requested}"


ServiceError = Union[
    ValidationFailed,
    LotNotFound,
    InsufficientStock,
    StoreUnavailable,
    PermissionDenied,
    CreditSaleNotFound,
    InvalidStatusTransition,
]


class InvariantViolation(Exception):
    """Raised when the store reports a state that must be unreachable."""


__all__ = [
    "CreditSaleNotFound",
    "FieldError",
    "InsufficientStock",
    "InvalidStatusTransition",
    "InvariantViolation",
    "LotNotFound",
    "PermissionDenied",
    "ServiceError",
    "StoreUnavailable",
    "ValidationFailed",
]
