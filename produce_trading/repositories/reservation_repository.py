"""
Reservation repository (persistence).

Calls the PostgreSQL functions defined in sql/ledger_schema.sql:

- reserve_stock(p_lot_id, p_quantity_kg)
    UPDATE produce_lots SET tonnage_kg = tonnage_kg - p_quantity_kg
    WHERE lot_id = p_lot_id AND tonnage_kg >= p_quantity_kg

- record_transaction_atomic(p_lot_id, p_kind, p_record)
    The same conditional UPDATE followed by an INSERT into cash_sales or
    credit_sales, in one database transaction.

Both return JSON of the form
    {"found": bool, "reserved": bool, "remaining_kg": int | null, "record": {...} | null}

The conditional UPDATE takes the row lock, so concurrent reservations against
one lot are serialized by Postgres regardless of how many API processes run.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client  # type: ignore[import-not-found]

from produce_trading.domain.transaction import CashSale, Transaction, TransactionKind
from produce_trading.repositories.ledger_store import CommitResult, DecrementResult, StoreUnavailableError
from produce_trading.repositories.rows import (
    cash_sale_to_row,
    credit_sale_to_row,
    execute,
    row_to_cash_sale,
    row_to_credit_sale,
)

logger = logging.getLogger(__name__)

RESERVE_FUNCTION: str = "reserve_stock"
RECORD_FUNCTION: str = "record_transaction_atomic"


def _call(client: Client, function: str, params: Mapping[str, Any], action: str) -> Mapping[str, Any]:
    """
    Invoke an RPC function returning a JSON object.

    Older supabase-py releases raise APIError when a function returns a bare
    JSON object, for success and failure alike; such payloads are unwrapped
    here instead of being reported as store failures.
    """

    try:
        rows = execute(client.rpc(function, dict(params)), action)
    except StoreUnavailableError as e:
        cause = e.__cause__
        if isinstance(cause, APIError):
            payload = _api_error_payload(cause)
            if payload is not None and "found" in payload:
                return payload
        raise

    if not rows:
        raise StoreUnavailableError(f"Failed to {action}: empty response from {function}")
    return rows[0]


def _api_error_payload(error: APIError) -> Optional[Mapping[str, Any]]:
    json_method = getattr(error, "json", None)
    if not callable(json_method):
        return None
    try:
        payload = json_method()
    except ValueError:
        return None
    return payload if isinstance(payload, Mapping) else None


def _to_decrement(payload: Mapping[str, Any]) -> DecrementResult:
    remaining = payload.get("remaining_kg")
    return DecrementResult(
        found=bool(payload.get("found")),
        applied=bool(payload.get("reserved")),
        remaining_kg=int(remaining) if remaining is not None else None,
    )


def reserve_stock(client: Client, lot_id: UUID, quantity_kg: int) -> DecrementResult:
    """Conditionally decrement a lot's tonnage via reserve_stock()."""

    payload = _call(
        client,
        RESERVE_FUNCTION,
        {"p_lot_id": str(lot_id), "p_quantity_kg": quantity_kg},
        "reserve stock",
    )
    return _to_decrement(payload)


def record_transaction_atomic(client: Client, lot_id: UUID, transaction: Transaction) -> CommitResult:
    """
    Reserve stock and insert the transaction record in one database transaction.

    Returns:
        CommitResult whose ``transaction`` is the stored record when the
        reservation was applied, otherwise None.
    """

    if isinstance(transaction, CashSale):
        record = cash_sale_to_row(transaction)
    else:
        record = credit_sale_to_row(transaction)

    payload = _call(
        client,
        RECORD_FUNCTION,
        {
            "p_lot_id": str(lot_id),
            "p_kind": transaction.kind.value,
            "p_record": record,
        },
        "record transaction",
    )
    decrement = _to_decrement(payload)
    if not decrement.applied:
        return CommitResult(decrement=decrement)

    stored_row = payload.get("record")
    if not stored_row:
        # The function committed; fall back to what we sent.
        logger.warning(
            "record_transaction_atomic returned no record",
            extra={"lot_id": str(lot_id), "sale_id": str(transaction.sale_id)},
        )
        return CommitResult(decrement=decrement, transaction=transaction)

    stored: Transaction
    if transaction.kind is TransactionKind.CASH:
        stored = row_to_cash_sale(stored_row)
    else:
        stored = row_to_credit_sale(stored_row)
    return CommitResult(decrement=decrement, transaction=stored)


__all__ = [
    "RECORD_FUNCTION",
    "RESERVE_FUNCTION",
    "record_transaction_atomic",
    "reserve_stock",
]
