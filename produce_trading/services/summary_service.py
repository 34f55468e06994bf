"""
Summary projector.

Read-only aggregate views over the ledger: stock totals and low-stock lots,
cash sales by branch and produce, pending/paid/overdue credit, and the
dashboard KPIs. Branch-scoped callers see their own branch; Directors see the
whole organisation.

Nothing here writes to the store. An empty store yields zero totals, and
repeated calls with no intervening writes (and a fixed clock) return equal
results.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from produce_trading.domain.errors import StoreUnavailable
from produce_trading.domain.principal import Operation, Principal
from produce_trading.domain.produce import LOW_STOCK_THRESHOLD_KG, Branch, ProduceKind, ProduceLot
from produce_trading.domain.time import as_utc
from produce_trading.domain.transaction import CashSale, CreditSale, CreditStatus
from produce_trading.repositories.ledger_store import LedgerStore, StoreUnavailableError
from produce_trading.services.results import ServiceResult, authorize

ALL_BRANCHES_LABEL: str = "All Branches"

# Row limits for the detail lists carried by reports.
STOCK_REPORT_LIMIT: int = 100
SALES_REPORT_LIMIT: int = 50
CREDIT_REPORT_LIMIT: int = 30


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class LowStockItem:
    lot_id: str
    produce: ProduceKind
    branch: Branch
    tonnage_kg: int


@dataclass(frozen=True, slots=True)
class BranchStock:
    lot_count: int = 0
    total_kg: int = 0
    total_value: Decimal = Decimal("0")
    low_stock_count: int = 0


@dataclass(frozen=True)
class StockSummary:
    """
    Stock position.

    total_value: remaining kilograms priced at each lot's selling price
    total_cost: remaining kilograms priced at each lot's unit cost
    """
    lot_count: int
    total_kg: int
    total_value: Decimal
    total_cost: Decimal
    low_stock: List[LowStockItem]
    by_branch: Dict[str, BranchStock]
    lots: List[ProduceLot] = field(default_factory=list)

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock)


@dataclass(frozen=True, slots=True)
class CreditBucket:
    count: int = 0
    total: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class BranchCredit:
    pending: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    total: Decimal = Decimal("0")


@dataclass(frozen=True)
class CreditSummary:
    as_of: date
    pending: CreditBucket
    paid: CreditBucket
    overall: CreditBucket
    overdue: CreditBucket
    by_branch: Dict[str, BranchCredit]
    recent: List[CreditSale] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SalesGroup:
    count: int = 0
    total: Decimal = Decimal("0")
    quantity_kg: int = 0


@dataclass(frozen=True)
class SalesReport:
    start: Optional[datetime]
    end: Optional[datetime]
    totals: SalesGroup
    by_branch: Dict[str, SalesGroup]
    by_produce: Dict[str, SalesGroup]
    sales: List[CashSale] = field(default_factory=list)


@dataclass(frozen=True)
class Dashboard:
    total_stock_value: Decimal
    total_stock_kg: int
    today_sales_amount: Decimal
    today_sales_count: int
    pending_credit: Decimal
    low_stock_items: List[LowStockItem]
    branch: str

    @property
    def low_stock_count(self) -> int:
        return len(self.low_stock_items)


def _add_sale(group: SalesGroup, sale: CashSale) -> SalesGroup:
    return SalesGroup(
        count=group.count + 1,
        total=group.total + sale.amount_paid,
        quantity_kg=group.quantity_kg + sale.quantity_kg,
    )


def _bucket(sales: List[CreditSale]) -> CreditBucket:
    return CreditBucket(count=len(sales), total=sum((s.amount_due for s in sales), Decimal("0")))


class SummaryProjector:

    def __init__(
        self,
        store: LedgerStore,
        low_stock_threshold_kg: int = LOW_STOCK_THRESHOLD_KG,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._threshold = low_stock_threshold_kg
        self._clock = clock

    def stock_summary(self, principal: Principal) -> ServiceResult[StockSummary]:
        denied = authorize(principal, Operation.VIEW_STOCK_REPORT)
        if denied is not None:
            return ServiceResult.fail(denied)
        try:
            lots = self._store.list_lots(principal.branch_scope())
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))
        return ServiceResult.ok(self._project_stock(lots))

    def credit_summary(
        self,
        principal: Principal,
        as_of: Optional[date] = None,
    ) -> ServiceResult[CreditSummary]:
        """
        Pending, paid and overdue credit.

        A credit sale is overdue when its due date is before ``as_of`` (default:
        today) and it is still Pending.
        """

        denied = authorize(principal, Operation.VIEW_CREDIT_REPORT)
        if denied is not None:
            return ServiceResult.fail(denied)
        try:
            credit_sales = self._store.list_credit_sales(principal.branch_scope())
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        as_of = as_of or self._clock().date()
        pending = [c for c in credit_sales if c.status is CreditStatus.PENDING]
        paid = [c for c in credit_sales if c.status is CreditStatus.PAID]
        overdue = [c for c in pending if c.is_overdue(as_of)]

        by_branch: Dict[str, BranchCredit] = {}
        for sale in credit_sales:
            current = by_branch.get(sale.branch.value, BranchCredit())
            if sale.status is CreditStatus.PENDING:
                current = BranchCredit(current.pending + sale.amount_due, current.paid, current.total + sale.amount_due)
            else:
                current = BranchCredit(current.pending, current.paid + sale.amount_due, current.total + sale.amount_due)
            by_branch[sale.branch.value] = current

        recent = sorted(credit_sales, key=lambda c: (c.due_date, str(c.sale_id)))[:CREDIT_REPORT_LIMIT]
        return ServiceResult.ok(
            CreditSummary(
                as_of=as_of,
                pending=_bucket(pending),
                paid=_bucket(paid),
                overall=_bucket(credit_sales),
                overdue=_bucket(overdue),
                by_branch=OrderedDict(sorted(by_branch.items())),
                recent=recent,
            )
        )

    def sales_report(
        self,
        principal: Principal,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> ServiceResult[SalesReport]:
        """Cash sales between ``start`` and ``end`` (inclusive), grouped by branch and produce."""

        denied = authorize(principal, Operation.VIEW_SALES_REPORT)
        if denied is not None:
            return ServiceResult.fail(denied)

        start, end = as_utc(start), as_utc(end)
        try:
            sales = self._store.list_cash_sales(principal.branch_scope(), start, end)
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        totals = SalesGroup()
        by_branch: Dict[str, SalesGroup] = {}
        by_produce: Dict[str, SalesGroup] = {}
        for sale in sales:
            totals = _add_sale(totals, sale)
            by_branch[sale.branch.value] = _add_sale(by_branch.get(sale.branch.value, SalesGroup()), sale)
            by_produce[sale.produce.value] = _add_sale(by_produce.get(sale.produce.value, SalesGroup()), sale)

        return ServiceResult.ok(
            SalesReport(
                start=start,
                end=end,
                totals=totals,
                by_branch=OrderedDict(sorted(by_branch.items())),
                by_produce=OrderedDict(sorted(by_produce.items())),
                sales=sales[:SALES_REPORT_LIMIT],
            )
        )

    def dashboard(self, principal: Principal) -> ServiceResult[Dashboard]:
        """KPI cards: stock position, today's cash sales, pending credit, low stock."""

        denied = authorize(principal, Operation.VIEW_DASHBOARD)
        if denied is not None:
            return ServiceResult.fail(denied)

        now = self._clock()
        day_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
        day_end = day_start + timedelta(days=1) - timedelta(microseconds=1)
        scope = principal.branch_scope()

        try:
            lots = self._store.list_lots(scope)
            today_sales = self._store.list_cash_sales(scope, day_start, day_end)
            pending = self._store.list_credit_sales(scope, CreditStatus.PENDING)
        except StoreUnavailableError as e:
            return ServiceResult.fail(StoreUnavailable(detail=str(e)))

        stock = self._project_stock(lots)
        return ServiceResult.ok(
            Dashboard(
                # Selling-price valuation, same as the stock report (not procurement cost).
                total_stock_value=stock.total_value,
                total_stock_kg=stock.total_kg,
                today_sales_amount=sum((s.amount_paid for s in today_sales), Decimal("0")),
                today_sales_count=len(today_sales),
                pending_credit=sum((c.amount_due for c in pending), Decimal("0")),
                low_stock_items=stock.low_stock,
                branch=principal.branch if principal.is_branch_scoped else ALL_BRANCHES_LABEL,
            )
        )

    def _project_stock(self, lots: List[ProduceLot]) -> StockSummary:
        ordered = sorted(lots, key=lambda lot: (lot.branch.value, lot.produce.value, str(lot.lot_id)))

        by_branch: Dict[str, BranchStock] = OrderedDict()
        low_stock: List[LowStockItem] = []
        for lot in ordered:
            is_low = lot.tonnage_kg < self._threshold
            current = by_branch.get(lot.branch.value, BranchStock())
            by_branch[lot.branch.value] = BranchStock(
                lot_count=current.lot_count + 1,
                total_kg=current.total_kg + lot.tonnage_kg,
                total_value=current.total_value + lot.stock_value,
                low_stock_count=current.low_stock_count + (1 if is_low else 0),
            )
            if is_low:
                low_stock.append(LowStockItem(str(lot.lot_id), lot.produce, lot.branch, lot.tonnage_kg))

        return StockSummary(
            lot_count=len(ordered),
            total_kg=sum(lot.tonnage_kg for lot in ordered),
            total_value=sum((lot.stock_value for lot in ordered), Decimal("0")),
            total_cost=sum((lot.stock_cost for lot in ordered), Decimal("0")),
            low_stock=low_stock,
            by_branch=by_branch,
            lots=ordered[:STOCK_REPORT_LIMIT],
        )


__all__ = [
    "BranchCredit",
    "BranchStock",
    "CreditBucket",
    "CreditSummary",
    "Dashboard",
    "LowStockItem",
    "SalesGroup",
    "SalesReport",
    "StockSummary",
    "SummaryProjector",
]
