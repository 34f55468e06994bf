"""
Produce lot repository (persistence).

This module provides *only* persistence operations for ProduceLot. It contains
no business rules about procurement minimums or permissions. Tonnage is never
written here: reservations go through reservation_repository.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Optional
from uuid import UUID

from supabase import Client  # type: ignore[import-not-found]

from produce_trading.domain.produce import Branch, ProduceKind, ProduceLot
from produce_trading.repositories.rows import LOTS_TABLE, execute, lot_to_row, row_to_lot


def insert_lot(client: Client, lot: ProduceLot) -> ProduceLot:
    """Insert a new produce lot and return it as stored."""

    rows = execute(client.table(LOTS_TABLE).insert(lot_to_row(lot)), "create produce lot")
    return row_to_lot(rows[0]) if rows else lot


def get_lot(client: Client, lot_id: UUID) -> Optional[ProduceLot]:
    rows = execute(
        client.table(LOTS_TABLE).select("*").eq("lot_id", str(lot_id)).limit(1),
        "fetch produce lot",
    )
    return row_to_lot(rows[0]) if rows else None


def find_latest_lot(client: Client, produce: ProduceKind, branch: Branch) -> Optional[ProduceLot]:
    """
    Fetch the most recently created lot for (produce, branch).

    Sales never split across lots, so this is the single lot a sale draws from.
    """

    rows = execute(
        client.table(LOTS_TABLE)
        .select("*")
        .eq("produce_name", produce.value)
        .eq("branch", branch.value)
        .order("created_at_utc", desc=True)
        .limit(1),
        "resolve produce lot",
    )
    return row_to_lot(rows[0]) if rows else None


def list_lots(client: Client, branch: Optional[Branch] = None) -> List[ProduceLot]:
    query: Any = client.table(LOTS_TABLE).select("*")
    if branch is not None:
        query = query.eq("branch", branch.value)
    rows = execute(query.order("created_at_utc", desc=True), "list produce lots")
    return [row_to_lot(row) for row in rows]


def update_selling_price(client: Client, lot_id: UUID, selling_price: Decimal) -> Optional[ProduceLot]:
    """Set a lot's selling price; returns None if the lot does not exist."""

    rows = execute(
        client.table(LOTS_TABLE)
        .update({"selling_price": str(selling_price)})
        .eq("lot_id", str(lot_id)),
        "update selling price",
    )
    return row_to_lot(rows[0]) if rows else None


def delete_lot(client: Client, lot_id: UUID) -> bool:
    rows = execute(
        client.table(LOTS_TABLE).delete().eq("lot_id", str(lot_id)),
        "delete produce lot",
    )
    return bool(rows)


__all__ = [
    "delete_lot",
    "find_latest_lot",
    "get_lot",
    "insert_lot",
    "list_lots",
    "update_selling_price",
]
