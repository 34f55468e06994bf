"""
Row mapping helpers shared by the Supabase repositories.

Converts between Supabase (PostgREST) rows and domain entities, and wraps
query execution so that transport and API failures surface uniformly as
StoreUnavailableError.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Mapping, Optional
from uuid import UUID

import httpx
from postgrest.exceptions import APIError

from produce_trading.domain.produce import Branch, ProduceKind, ProduceLot
from produce_trading.domain.time import require_utc_timestamp
from produce_trading.domain.transaction import CashSale, CreditSale, CreditStatus
from produce_trading.repositories.ledger_store import StoreUnavailableError

logger = logging.getLogger(__name__)

# Supabase table names. Keep these aligned with sql/ledger_schema.sql.
LOTS_TABLE: str = "produce_lots"
CASH_SALES_TABLE: str = "cash_sales"
CREDIT_SALES_TABLE: str = "credit_sales"


def execute(query: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Execute a PostgREST query builder and return its rows.

    Raises:
        StoreUnavailableError: the request failed or the API returned an error
    """

    try:
        response = query.execute()
    except APIError as e:
        logger.error(f"Supabase API error while trying to {action}", extra={"action": action, "error": str(e)})
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e
    except httpx.HTTPError as e:
        logger.error(f"Supabase transport error while trying to {action}", extra={"action": action, "error": str(e)})
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e

    error = getattr(response, "error", None)
    if error:
        raise StoreUnavailableError(f"Failed to {action}: {error}")

    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [data]
    return list(data)


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (timezone-aware, offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Unsupported date type: {type(value)!r}")


def _optional_timestamp(row: Mapping[str, Any], key: str) -> Optional[datetime]:
    value = row.get(key)
    return parse_utc_datetime(value) if value is not None else None


def row_to_lot(row: Mapping[str, Any]) -> ProduceLot:
    """Convert a produce_lots row into a ProduceLot."""

    return ProduceLot(
        lot_id=UUID(str(row["lot_id"])),
        produce=ProduceKind(str(row["produce_name"])),
        produce_type=str(row["produce_type"]),
        tonnage_kg=int(row["tonnage_kg"]),
        unit_cost=Decimal(str(row["unit_cost"])),
        selling_price=Decimal(str(row["selling_price"])),
        dealer_name=str(row["dealer_name"]),
        dealer_contact=str(row["dealer_contact"]),
        branch=Branch(str(row["branch"])),
        procured_at=parse_utc_datetime(row["procured_at_utc"]),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


def lot_to_row(lot: ProduceLot) -> dict[str, Any]:
    return {
        "lot_id": str(lot.lot_id),
        "produce_name": lot.produce.value,
        "produce_type": lot.produce_type,
        "tonnage_kg": lot.tonnage_kg,
        "unit_cost": str(lot.unit_cost),
        "selling_price": str(lot.selling_price),
        "dealer_name": lot.dealer_name,
        "dealer_contact": lot.dealer_contact,
        "branch": lot.branch.value,
        "procured_at_utc": to_iso_utc(lot.procured_at, name="procured_at"),
        "created_at_utc": to_iso_utc(lot.created_at, name="created_at"),
    }


def row_to_cash_sale(row: Mapping[str, Any]) -> CashSale:
    """Convert a cash_sales row into a CashSale."""

    return CashSale(
        sale_id=UUID(str(row["sale_id"])),
        lot_id=UUID(str(row["lot_id"])),
        produce=ProduceKind(str(row["produce_name"])),
        quantity_kg=int(row["quantity_kg"]),
        amount_paid=Decimal(str(row["amount_paid"])),
        buyer_name=str(row["buyer_name"]),
        sales_agent=str(row["sales_agent"]),
        branch=Branch(str(row["branch"])),
        sold_at=parse_utc_datetime(row["sold_at_utc"]),
        created_at=_optional_timestamp(row, "created_at_utc"),
    )


def cash_sale_to_row(sale: CashSale) -> dict[str, Any]:
    return {
        "sale_id": str(sale.sale_id),
        "lot_id": str(sale.lot_id),
        "produce_name": sale.produce.value,
        "quantity_kg": sale.quantity_kg,
        "amount_paid": str(sale.amount_paid),
        "buyer_name": sale.buyer_name,
        "sales_agent": sale.sales_agent,
        "branch": sale.branch.value,
        "sold_at_utc": to_iso_utc(sale.sold_at, name="sold_at"),
        "created_at_utc": to_iso_utc(sale.created_at, name="created_at") if sale.created_at else None,
    }


def row_to_credit_sale(row: Mapping[str, Any]) -> CreditSale:
    """Convert a credit_sales row into a CreditSale."""

    return CreditSale(
        sale_id=UUID(str(row["sale_id"])),
        lot_id=UUID(str(row["lot_id"])),
        produce=ProduceKind(str(row["produce_name"])),
        quantity_kg=int(row["quantity_kg"]),
        amount_due=Decimal(str(row["amount_due"])),
        buyer_name=str(row["buyer_name"]),
        national_id=str(row["national_id"]),
        location=str(row["location"]),
        contact=str(row["contact"]),
        sales_agent=str(row["sales_agent"]),
        branch=Branch(str(row["branch"])),
        due_date=parse_date(row["due_date"]),
        dispatch_date=parse_date(row["dispatch_date"]),
        status=CreditStatus(str(row.get("status", CreditStatus.PENDING.value))),
        created_at=_optional_timestamp(row, "created_at_utc"),
    )


def credit_sale_to_row(sale: CreditSale) -> dict[str, Any]:
    return {
        "sale_id": str(sale.sale_id),
        "lot_id": str(sale.lot_id),
        "produce_name": sale.produce.value,
        "quantity_kg": sale.quantity_kg,
        "amount_due": str(sale.amount_due),
        "buyer_name": sale.buyer_name,
        "national_id": sale.national_id,
        "location": sale.location,
        "contact": sale.contact,
        "sales_agent": sale.sales_agent,
        "branch": sale.branch.value,
        "due_date": sale.due_date.isoformat(),
        "dispatch_date": sale.dispatch_date.isoformat(),
        "status": sale.status.value,
        "created_at_utc": to_iso_utc(sale.created_at, name="created_at") if sale.created_at else None,
    }
