"""
Domain: Authenticated principals and the permission table.

Every service entry point consults ``PERMISSIONS`` instead of repeating role
checks. Principals arrive already authenticated; nothing here re-verifies
credentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .produce import Branch

HEAD_OFFICE: str = "Head Office"


class Role(str, Enum):
    DIRECTOR = "Director"
    MANAGER = "Manager"
    SALES = "Sales"


class Operation(str, Enum):
    VIEW_STOCK = "view_stock"
    PROCURE = "procure"
    UPDATE_LOT = "update_lot"
    REMOVE_LOT = "remove_lot"
    RECORD_CASH_SALE = "record_cash_sale"
    RECORD_CREDIT_SALE = "record_credit_sale"
    VIEW_SALES = "view_sales"
    VIEW_CREDIT_SALES = "view_credit_sales"
    MARK_CREDIT_PAID = "mark_credit_paid"
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_STOCK_REPORT = "view_stock_report"
    VIEW_SALES_REPORT = "view_sales_report"
    VIEW_CREDIT_REPORT = "view_credit_report"


_ALL_ROLES = frozenset(Role)
_SELLERS = frozenset({Role.MANAGER, Role.SALES})
_MANAGERS = frozenset({Role.MANAGER})
_REPORT_READERS = frozenset({Role.DIRECTOR, Role.MANAGER})

PERMISSIONS: Mapping[Operation, frozenset[Role]] = {
    Operation.VIEW_STOCK: _ALL_ROLES,
    Operation.PROCURE: _MANAGERS,
    Operation.UPDATE_LOT: _MANAGERS,
    Operation.REMOVE_LOT: _MANAGERS,
    Operation.RECORD_CASH_SALE: _SELLERS,
    Operation.RECORD_CREDIT_SALE: _SELLERS,
    Operation.VIEW_SALES: _ALL_ROLES,
    Operation.VIEW_CREDIT_SALES: _ALL_ROLES,
    Operation.MARK_CREDIT_PAID: _MANAGERS,
    Operation.VIEW_DASHBOARD: _ALL_ROLES,
    Operation.VIEW_STOCK_REPORT: _ALL_ROLES,
    Operation.VIEW_SALES_REPORT: _REPORT_READERS,
    Operation.VIEW_CREDIT_REPORT: _REPORT_READERS,
}


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller.

    ``branch`` is one of the trading branches or ``HEAD_OFFICE``.
    """

    user_id: str
    role: Role
    branch: str
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.role is not Role.DIRECTOR and self.trading_branch is None:
            raise ValueError(f"{self.role.value} must belong to a trading branch, got '{self.branch}'")

    @property
    def display_name(self) -> str:
        return self.name or self.user_id

    @property
    def is_branch_scoped(self) -> bool:
        """Managers and sales agents only ever see their own branch."""
        return self.role is not Role.DIRECTOR

    @property
    def trading_branch(self) -> Optional[Branch]:
        """The stock-holding branch of this principal, if it has one."""
        try:
            return Branch(self.branch)
        except ValueError:
            return None

    def branch_scope(self) -> Optional[Branch]:
        """Branch filter to apply to reads; None for organisation-wide callers."""
        if not self.is_branch_scoped:
            return None
        return self.trading_branch

    def can_access_branch(self, branch: Branch) -> bool:
        return not self.is_branch_scoped or self.trading_branch is branch


def is_permitted(principal: Principal, operation: Operation) -> bool:
    return principal.role in PERMISSIONS.get(operation, frozenset())


__all__ = [
    "HEAD_OFFICE",
    "Operation",
    "PERMISSIONS",
    "Principal",
    "Role",
    "is_permitted",
]
