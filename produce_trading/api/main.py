"""
Produce Trading Platform API - Main Application.

FastAPI application factory. Run with:

    uvicorn --factory produce_trading.api.main:create_app
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from produce_trading.api import __version__
from produce_trading.api.routers import credit_sales, produce, reports, sales
from produce_trading.config import Settings, configure_logging, load_settings
from produce_trading.repositories.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


def create_app(store: Optional[LedgerStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        store: Ledger store to serve from (default: Supabase store built from settings)
        settings: Configuration (default: read from the environment)
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    settings.require_jwt_secret()

    if store is None:
        from produce_trading.repositories.supabase_store import SupabaseLedgerStore

        store = SupabaseLedgerStore.from_settings(settings)

    app = FastAPI(
        title="Produce Trading Platform API",
        description="REST API for branch stock, cash sales and credit sales",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body",
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        fields = ", ".join(e["field"] for e in errors)
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": f"Invalid or missing fields: {fields}", "errors": errors},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error",
            extra={"method": request.method, "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"success": False, "message": "Server error"})

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "produce-trading-api",
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Produce Trading Platform API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(produce.router, prefix="/api/v1", tags=["Produce"])
    app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
    app.include_router(credit_sales.router, prefix="/api/v1", tags=["Credit Sales"])
    app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])

    logger.info("API application created", extra={"store": type(store).__name__})
    return app
