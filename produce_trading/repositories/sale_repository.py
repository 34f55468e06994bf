"""
Sale repository (persistence).

Read and status-update operations for cash and credit sales. Sales are only
ever *created* through reservation_repository.record_transaction_atomic, so
that no sale exists without its stock decrement.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from produce_trading.domain.produce import Branch
from produce_trading.domain.transaction import CashSale, CreditSale, CreditStatus
from produce_trading.repositories.rows import (
    CASH_SALES_TABLE,
    CREDIT_SALES_TABLE,
    execute,
    row_to_cash_sale,
    row_to_credit_sale,
    to_iso_utc,
)


def list_cash_sales(
    client: Client,
    branch: Optional[Branch] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[CashSale]:
    """
    Retrieve cash sales, newest first.

    Args:
        branch: limit to one branch (None for all)
        start: inclusive lower bound on sold_at (UTC)
        end: inclusive upper bound on sold_at (UTC)
    """

    query: Any = client.table(CASH_SALES_TABLE).select("*")
    if branch is not None:
        query = query.eq("branch", branch.value)
    if start is not None:
        query = query.gte("sold_at_utc", to_iso_utc(start, name="start"))
    if end is not None:
        query = query.lte("sold_at_utc", to_iso_utc(end, name="end"))

    rows = execute(query.order("sold_at_utc", desc=True), "list cash sales")
    return [row_to_cash_sale(row) for row in rows]


def list_credit_sales(
    client: Client,
    branch: Optional[Branch] = None,
    status: Optional[CreditStatus] = None,
) -> List[CreditSale]:
    query: Any = client.table(CREDIT_SALES_TABLE).select("*")
    if branch is not None:
        query = query.eq("branch", branch.value)
    if status is not None:
        query = query.eq("status", status.value)

    rows = execute(query.order("created_at_utc", desc=True), "list credit sales")
    return [row_to_credit_sale(row) for row in rows]


def get_credit_sale(client: Client, sale_id: UUID) -> Optional[CreditSale]:
    rows = execute(
        client.table(CREDIT_SALES_TABLE).select("*").eq("sale_id", str(sale_id)).limit(1),
        "fetch credit sale",
    )
    return row_to_credit_sale(rows[0]) if rows else None


def transition_credit_status(
    client: Client,
    sale_id: UUID,
    expected: CreditStatus,
    target: CreditStatus,
) -> Optional[CreditSale]:
    """
    Move a credit sale from ``expected`` to ``target`` status.

    Requirements:
    - Must only update if status currently equals ``expected``.

    Returns:
        The updated CreditSale, or None if no row matched (missing or already moved)
    """

    rows = execute(
        client.table(CREDIT_SALES_TABLE)
        .update({"status": target.value})
        .eq("sale_id", str(sale_id))
        .eq("status", expected.value),
        "update credit sale status",
    )
    return row_to_credit_sale(rows[0]) if rows else None


__all__ = [
    "get_credit_sale",
    "list_cash_sales",
    "list_credit_sales",
    "transition_credit_status",
]
