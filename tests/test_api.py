"""
HTTP tests for the FastAPI application.

Runs the real app against the in-memory store with signed bearer tokens.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from produce_trading.api.auth import create_access_token
from produce_trading.api.main import create_app
from produce_trading.config import Settings
from produce_trading.domain.principal import Principal
from produce_trading.domain.produce import Branch, ProduceKind
from produce_trading.domain.transaction import CreditStatus
from tests.fakes import InMemoryLedgerStore, make_credit_sale, make_lot

SECRET = "test-secret"


@pytest.fixture
def settings() -> Settings:
    return Settings(supabase_url=None, supabase_key=None, jwt_secret=SECRET)


@pytest.fixture
def api_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore([make_lot(ProduceKind.MAIZE, Branch.MAGANJO, tonnage_kg=1000)])


@pytest.fixture
def client(api_store, settings) -> TestClient:
    return TestClient(create_app(store=api_store, settings=settings), raise_server_exceptions=False)


def _auth(principal: Principal, **kwargs) -> dict:
    return {"Authorization": f"Bearer {create_access_token(principal, SECRET, **kwargs)}"}


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_token_is_401(client) -> None:
    response = client.get("/api/v1/produce")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "No token, authorization denied"}


def test_bad_token_is_401(client, sales_agent) -> None:
    expired = _auth(sales_agent, expires_in=timedelta(seconds=-10))
    forged = {"Authorization": f"Bearer {create_access_token(sales_agent, 'other-secret')}"}

    assert client.get("/api/v1/produce", headers=expired).status_code == 401
    assert client.get("/api/v1/produce", headers=forged).status_code == 401


def test_record_cash_sale(client, api_store, sales_agent) -> None:
    response = client.post(
        "/api/v1/sales",
        json={"produce_name": "Maize", "quantity_kg": 300, "amount_paid": "450000", "buyer_name": "Okello"},
        headers=_auth(sales_agent),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Sale recorded successfully"
    assert body["sale"]["quantity_kg"] == 300
    assert body["sale"]["kind"] == "Cash"
    assert body["sale"]["branch"] == "MAGANJO"
    assert api_store.list_lots()[0].tonnage_kg == 700


def test_oversell_is_400_with_available(client, api_store, sales_agent) -> None:
    response = client.post(
        "/api/v1/sales",
        json={"produce_name": "Maize", "quantity_kg": 1500, "amount_paid": "1", "buyer_name": "Okello"},
        headers=_auth(sales_agent),
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Insufficient stock. Only 1000kg available",
        "available": 1000,
        "requested": 1500,
    }
    assert api_store.list_cash_sales() == []


def test_invalid_payload_lists_fields(client, sales_agent) -> None:
    response = client.post("/api/v1/sales", json={"produce_name": "Maize"}, headers=_auth(sales_agent))

    assert response.status_code == 400
    fields = {e["field"] for e in response.json()["errors"]}
    assert fields == {"quantity_kg", "amount_paid", "buyer_name"}


def test_oversized_or_boolean_quantity_is_400(client, api_store, sales_agent) -> None:
    for quantity in (3_000_000_000, True):
        response = client.post(
            "/api/v1/sales",
            json={"produce_name": "Maize", "quantity_kg": quantity, "amount_paid": "1", "buyer_name": "Okello"},
            headers=_auth(sales_agent),
        )

        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["quantity_kg"]

    assert api_store.list_lots()[0].tonnage_kg == 1000


def test_unknown_produce_at_branch_is_404(client, sales_agent) -> None:
    response = client.post(
        "/api/v1/sales",
        json={"produce_name": "Beans", "quantity_kg": 10, "amount_paid": "1", "buyer_name": "Okello"},
        headers=_auth(sales_agent),
    )

    assert response.status_code == 404


def test_director_cannot_sell(client, director) -> None:
    response = client.post(
        "/api/v1/sales",
        json={"produce_name": "Maize", "quantity_kg": 10, "amount_paid": "1", "buyer_name": "Okello"},
        headers=_auth(director),
    )

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_credit_sale_and_settlement(client, manager) -> None:
    created = client.post(
        "/api/v1/credit-sales",
        json={
            "produce_name": "Maize",
            "quantity_kg": 200,
            "amount_due": "300000",
            "buyer_name": "Namuli Grace",
            "national_id": "CM12345678ABCD",
            "location": "Wakiso",
            "contact": "0701234567",
            "dispatch_date": "2025-03-10",
            "due_date": "2025-04-10",
        },
        headers=_auth(manager),
    )
    assert created.status_code == 201
    sale = created.json()["credit_sale"]
    assert sale["status"] == "Pending"

    summary = client.get("/api/v1/credit-sales/summary", headers=_auth(manager)).json()["summary"]
    assert summary["pending"]["count"] == 1

    paid = client.put(f"/api/v1/credit-sales/{sale['sale_id']}", json={"status": "Paid"}, headers=_auth(manager))
    assert paid.status_code == 200
    assert paid.json()["credit_sale"]["status"] == "Paid"

    again = client.put(f"/api/v1/credit-sales/{sale['sale_id']}", headers=_auth(manager))
    assert again.status_code == 409

    summary = client.get("/api/v1/credit-sales/summary", headers=_auth(manager)).json()["summary"]
    assert summary["pending"]["count"] == 0
    assert summary["paid"]["count"] == 1


def test_settling_unknown_credit_sale_is_404(client, manager) -> None:
    response = client.put(f"/api/v1/credit-sales/{uuid4()}", json={}, headers=_auth(manager))

    assert response.status_code == 404


def test_list_credit_sales_filters_status(client, api_store, director) -> None:
    lot = api_store.list_lots()[0]
    api_store.commit_transaction(lot.lot_id, make_credit_sale(lot, status=CreditStatus.PAID))

    pending = client.get("/api/v1/credit-sales", params={"status": "Pending"}, headers=_auth(director))
    paid = client.get("/api/v1/credit-sales", params={"status": "Paid"}, headers=_auth(director))

    assert pending.json()["credit_sales"] == []
    assert len(paid.json()["credit_sales"]) == 1


def test_procure_update_and_delete(client, manager) -> None:
    created = client.post(
        "/api/v1/produce",
        json={
            "produce_name": "Soybeans",
            "produce_type": "Grade B",
            "tonnage_kg": 2000,
            "unit_cost": "1800",
            "selling_price": "2200",
            "dealer_name": "Wakiso Farmers",
            "dealer_contact": "0772000111",
            "procured_on": "2025-03-09",
            "procured_time": "10:00",
        },
        headers=_auth(manager),
    )
    assert created.status_code == 201
    lot = created.json()["produce"]
    assert lot["branch"] == "MAGANJO"
    assert lot["is_low_stock"] is False

    updated = client.put(f"/api/v1/produce/{lot['lot_id']}", json={"selling_price": "2300"}, headers=_auth(manager))
    assert updated.status_code == 200
    assert updated.json()["produce"]["selling_price"] == "2300"
    assert updated.json()["produce"]["tonnage_kg"] == 2000

    deleted = client.delete(f"/api/v1/produce/{lot['lot_id']}", headers=_auth(manager))
    assert deleted.status_code == 200

    missing = client.delete(f"/api/v1/produce/{lot['lot_id']}", headers=_auth(manager))
    assert missing.status_code == 404


def test_reports(client, manager, sales_agent) -> None:
    dashboard = client.get("/api/v1/reports/dashboard", headers=_auth(sales_agent))
    assert dashboard.status_code == 200
    assert dashboard.json()["summary"]["branch"] == "MAGANJO"
    assert dashboard.json()["summary"]["total_stock_kg"] == 1000

    stock = client.get("/api/v1/reports/stock", headers=_auth(sales_agent))
    assert stock.json()["report"]["lot_count"] == 1
    assert stock.json()["report"]["low_stock_count"] == 0

    assert client.get("/api/v1/reports/sales", headers=_auth(sales_agent)).status_code == 403
    assert client.get("/api/v1/reports/sales", headers=_auth(manager)).status_code == 200
    assert client.get("/api/v1/reports/credit", headers=_auth(manager)).status_code == 200


def test_store_outage_is_503(client, api_store, sales_agent) -> None:
    api_store.unavailable = True

    response = client.get("/api/v1/produce", headers=_auth(sales_agent))

    assert response.status_code == 503
    assert response.json()["success"] is False


def test_unexpected_error_is_500(api_store, settings, sales_agent) -> None:
    class _Exploding(InMemoryLedgerStore):
        def list_lots(self, branch=None):
            raise KeyError("boom")

    client = TestClient(create_app(store=_Exploding(), settings=settings), raise_server_exceptions=False)

    response = client.get("/api/v1/produce", headers=_auth(sales_agent))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error"}


def test_app_requires_jwt_secret() -> None:
    with pytest.raises(RuntimeError):
        create_app(store=InMemoryLedgerStore(), settings=Settings(supabase_url=None, supabase_key=None, jwt_secret=None))
