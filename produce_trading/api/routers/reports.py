"""
Reports API Endpoints.

Read-only views computed by the summary projector. Sales agents may see the
dashboard and stock report; sales and credit reports need a Manager or
Director.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from produce_trading.api.dependencies import get_principal, get_projector
from produce_trading.api.models import error_response, serialize_view, success_response
from produce_trading.domain.principal import Principal
from produce_trading.services.summary_service import SummaryProjector

router = APIRouter()


@router.get("/reports/dashboard", summary="Dashboard KPIs")
def dashboard(
    principal: Principal = Depends(get_principal),
    projector: SummaryProjector = Depends(get_projector),
):
    result = projector.dashboard(principal)
    if not result.success:
        return error_response(result.error)
    summary = serialize_view(result.value)
    summary["low_stock_count"] = result.value.low_stock_count
    return success_response(summary=summary)


@router.get("/reports/sales", summary="Sales Report")
def sales_report(
    start: Optional[datetime] = Query(None, description="Inclusive start (ISO-8601, UTC)"),
    end: Optional[datetime] = Query(None, description="Inclusive end (ISO-8601, UTC)"),
    principal: Principal = Depends(get_principal),
    projector: SummaryProjector = Depends(get_projector),
):
    result = projector.sales_report(principal, start, end)
    if not result.success:
        return error_response(result.error)
    return success_response(report=serialize_view(result.value))


@router.get("/reports/credit", summary="Credit Report")
def credit_report(
    as_of: Optional[date] = Query(None, description="Date used for overdue detection (default: today)"),
    principal: Principal = Depends(get_principal),
    projector: SummaryProjector = Depends(get_projector),
):
    result = projector.credit_summary(principal, as_of)
    if not result.success:
        return error_response(result.error)
    return success_response(report=serialize_view(result.value))


@router.get("/reports/stock", summary="Stock Report")
def stock_report(
    principal: Principal = Depends(get_principal),
    projector: SummaryProjector = Depends(get_projector),
):
    result = projector.stock_summary(principal)
    if not result.success:
        return error_response(result.error)
    report = serialize_view(result.value)
    report["low_stock_count"] = result.value.low_stock_count
    return success_response(report=report)
