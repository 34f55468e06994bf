"""
FastAPI dependencies.

The store handle and settings live on ``app.state``; services are cheap,
stateless wrappers built per request around that handle.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from produce_trading.api.auth import AuthenticationError, decode_principal
from produce_trading.config import Settings
from produce_trading.domain.principal import Principal
from produce_trading.repositories.ledger_store import LedgerStore
from produce_trading.services.procurement_service import ProcurementService
from produce_trading.services.summary_service import SummaryProjector
from produce_trading.services.transaction_service import TransactionCoordinator

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> LedgerStore:
    return request.app.state.store


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    try:
        return decode_principal(
            credentials.credentials,
            settings.require_jwt_secret(),
            settings.jwt_algorithm,
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))


def get_coordinator(store: LedgerStore = Depends(get_store)) -> TransactionCoordinator:
    return TransactionCoordinator(store)


def get_procurement(store: LedgerStore = Depends(get_store)) -> ProcurementService:
    return ProcurementService(store)


def get_projector(
    store: LedgerStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> SummaryProjector:
    return SummaryProjector(store, low_stock_threshold_kg=settings.low_stock_threshold_kg)
