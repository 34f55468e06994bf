"""
Tests for the Supabase-backed ledger store.

The Supabase client is replaced by a small recording fake so row mapping,
query filters and RPC payloads can be checked without a database.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from uuid import UUID

import httpx
import pytest
from postgrest.exceptions import APIError

from produce_trading.domain.produce import Branch, ProduceKind
from produce_trading.domain.transaction import CashSale, CreditStatus
from produce_trading.repositories.ledger_store import StoreUnavailableError
from produce_trading.repositories.rows import parse_utc_datetime, row_to_credit_sale
from produce_trading.repositories.supabase_store import SupabaseLedgerStore
from tests.fakes import make_cash_sale, make_credit_sale, make_lot

LOT_ID = "11111111-1111-1111-1111-111111111111"
SALE_ID = "22222222-2222-2222-2222-222222222222"


class _Query:
    """Query builder stand-in: records every call and returns canned rows."""

    def __init__(self, data: Any = None, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []
        self._data = data
        self._error = error

    def __getattr__(self, name: str):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(data=self._data)

    def called(self, name: str) -> list[tuple]:
        return [args for call, args, _ in self.calls if call == name]


class _Client:

    def __init__(self, query: _Query) -> None:
        self.query = query
        self.tables: list[str] = []
        self.rpcs: list[tuple[str, dict]] = []

    def table(self, name: str) -> _Query:
        self.tables.append(name)
        return self.query

    def rpc(self, name: str, params: dict) -> _Query:
        self.rpcs.append((name, params))
        return self.query


def _lot_row(**overrides) -> dict:
    row = {
        "lot_id": LOT_ID,
        "produce_name": "Maize",
        "produce_type": "Grade A",
        "tonnage_kg": 1500,
        "unit_cost": "1200.00",
        "selling_price": 1500,
        "dealer_name": "Kato Traders",
        "dealer_contact": "0772123456",
        "branch": "MAGANJO",
        "procured_at_utc": "2025-03-09T08:30:00Z",
        "created_at_utc": "2025-03-09T08:31:00+00:00",
    }
    row.update(overrides)
    return row


def _credit_row(**overrides) -> dict:
    row = {
        "sale_id": SALE_ID,
        "lot_id": LOT_ID,
        "produce_name": "Beans",
        "quantity_kg": 200,
        "amount_due": "600000",
        "buyer_name": "Namuli Grace",
        "national_id": "CM12345678ABCD",
        "location": "Wakiso",
        "contact": "0701234567",
        "sales_agent": "Sam Agent",
        "branch": "MATUGGA",
        "due_date": "2025-04-10",
        "dispatch_date": "2025-03-10",
        "status": "Pending",
        "created_at_utc": "2025-03-10T09:30:00Z",
    }
    row.update(overrides)
    return row


def test_row_to_lot_mapping() -> None:
    store = SupabaseLedgerStore(_Client(_Query(data=[_lot_row()])))

    lot = store.get_lot(UUID(LOT_ID))

    assert lot.lot_id == UUID(LOT_ID)
    assert lot.produce is ProduceKind.MAIZE
    assert lot.branch is Branch.MAGANJO
    assert lot.unit_cost == Decimal("1200.00")
    assert lot.selling_price == Decimal("1500")
    assert lot.procured_at == datetime(2025, 3, 9, 8, 30, tzinfo=timezone.utc)


def test_get_lot_missing_returns_none() -> None:
    assert SupabaseLedgerStore(_Client(_Query(data=[]))).get_lot(UUID(LOT_ID)) is None


def test_find_latest_lot_orders_newest_first() -> None:
    query = _Query(data=[_lot_row()])
    client = _Client(query)

    SupabaseLedgerStore(client).find_latest_lot(ProduceKind.MAIZE, Branch.MAGANJO)

    assert client.tables == ["produce_lots"]
    assert ("produce_name", "Maize") in query.called("eq")
    assert ("branch", "MAGANJO") in query.called("eq")
    assert query.called("limit") == [(1,)]
    order = [kwargs for name, _, kwargs in query.calls if name == "order"]
    assert order == [{"desc": True}]


def test_insert_lot_sends_iso_utc_timestamps() -> None:
    lot = make_lot()
    query = _Query(data=[])
    store = SupabaseLedgerStore(_Client(query))

    assert store.insert_lot(lot) == lot

    (row,) = query.called("insert")[0]
    assert row["lot_id"] == str(lot.lot_id)
    assert row["produce_name"] == "Maize"
    assert row["unit_cost"] == "1200"
    assert parse_utc_datetime(row["created_at_utc"]) == lot.created_at


def test_list_cash_sales_applies_window() -> None:
    query = _Query(data=[])
    start = datetime(2025, 3, 1, tzinfo=timezone.utc)
    end = datetime(2025, 3, 31, tzinfo=timezone.utc)

    SupabaseLedgerStore(_Client(query)).list_cash_sales(Branch.MATUGGA, start, end)

    assert query.called("gte") == [("sold_at_utc", start.isoformat())]
    assert query.called("lte") == [("sold_at_utc", end.isoformat())]
    assert ("branch", "MATUGGA") in query.called("eq")


def test_credit_row_mapping() -> None:
    sale = row_to_credit_sale(_credit_row())

    assert sale.sale_id == UUID(SALE_ID)
    assert sale.status is CreditStatus.PENDING
    assert sale.due_date == date(2025, 4, 10)
    assert sale.branch is Branch.MATUGGA


def test_transition_is_conditional_on_expected_status() -> None:
    query = _Query(data=[_credit_row(status="Paid")])

    updated = SupabaseLedgerStore(_Client(query)).transition_credit_status(
        UUID(SALE_ID), CreditStatus.PENDING, CreditStatus.PAID
    )

    assert updated.status is CreditStatus.PAID
    assert query.called("update") == [({"status": "Paid"},)]
    assert ("status", "Pending") in query.called("eq")


def test_transition_with_no_matching_row_returns_none() -> None:
    store = SupabaseLedgerStore(_Client(_Query(data=[])))

    assert store.transition_credit_status(UUID(SALE_ID), CreditStatus.PENDING, CreditStatus.PAID) is None


def test_conditional_decrement_calls_reserve_stock() -> None:
    client = _Client(_Query(data={"found": True, "reserved": True, "remaining_kg": 700}))

    result = SupabaseLedgerStore(client).conditional_decrement(UUID(LOT_ID), 300)

    assert client.rpcs == [("reserve_stock", {"p_lot_id": LOT_ID, "p_quantity_kg": 300})]
    assert result.found and result.applied
    assert result.remaining_kg == 700


def test_commit_transaction_sends_record_and_maps_stored_row() -> None:
    lot = make_lot()
    sale = make_credit_sale(lot, quantity_kg=200)
    stored_row = _credit_row(sale_id=str(sale.sale_id), lot_id=str(lot.lot_id))
    client = _Client(_Query(data={"found": True, "reserved": True, "remaining_kg": 800, "record": stored_row}))

    commit = SupabaseLedgerStore(client).commit_transaction(lot.lot_id, sale)

    name, params = client.rpcs[0]
    assert name == "record_transaction_atomic"
    assert params["p_lot_id"] == str(lot.lot_id)
    assert params["p_kind"] == "Credit"
    assert params["p_record"]["national_id"] == "CM12345678ABCD"
    assert params["p_record"]["status"] == "Pending"
    assert commit.decrement.remaining_kg == 800
    assert commit.transaction.sale_id == sale.sale_id


def test_commit_transaction_insufficient_stock_has_no_record() -> None:
    lot = make_lot()
    client = _Client(_Query(data={"found": True, "reserved": False, "remaining_kg": 150, "record": None}))

    commit = SupabaseLedgerStore(client).commit_transaction(lot.lot_id, make_cash_sale(lot, quantity_kg=200))

    assert not commit.decrement.applied
    assert commit.decrement.remaining_kg == 150
    assert commit.transaction is None


def test_commit_transaction_without_returned_record_falls_back_to_sent_sale() -> None:
    lot = make_lot()
    sale = make_cash_sale(lot, quantity_kg=200)
    client = _Client(_Query(data={"found": True, "reserved": True, "remaining_kg": 800}))

    commit = SupabaseLedgerStore(client).commit_transaction(lot.lot_id, sale)

    assert isinstance(commit.transaction, CashSale)
    assert commit.transaction == sale


def test_rpc_payload_wrapped_in_api_error_is_unwrapped() -> None:
    payload = {"found": True, "reserved": False, "remaining_kg": 150}
    client = _Client(_Query(error=APIError(payload)))

    result = SupabaseLedgerStore(client).conditional_decrement(UUID(LOT_ID), 200)

    assert result.found
    assert not result.applied
    assert result.remaining_kg == 150


def test_api_error_becomes_store_unavailable() -> None:
    client = _Client(_Query(error=APIError({"message": "permission denied", "code": "42501"})))

    with pytest.raises(StoreUnavailableError):
        SupabaseLedgerStore(client).list_lots()


def test_transport_error_becomes_store_unavailable() -> None:
    client = _Client(_Query(error=httpx.ConnectError("connection refused")))

    with pytest.raises(StoreUnavailableError):
        SupabaseLedgerStore(client).list_credit_sales()
