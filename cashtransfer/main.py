"""
GIC CashTransfer — FastAPI application entry point.

Configures the app, middleware, and registers all API routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cashtransfer.config import settings
from cashtransfer.api import (
    admin_config,
    admin_rates,
    admin_transactions,
    admin_wallets,
    transfer,
    transfers,
)
from cashtransfer.services.config_service import init_config_service, shutdown_config_service

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    from cashtransfer.database import engine
    from cashtransfer.redis_client import redis

    init_config_service()

    yield

    # Shutdown: close connections
    shutdown_config_service()
    await engine.dispose()
    await redis.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Cross-border money transfer: pricing, payment-method availability and wallet settlement.",
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(transfer.router, prefix="/api/v1/transfer", tags=["Pricing"])
app.include_router(transfers.router, prefix="/api/v1/transfers", tags=["Transfers"])
app.include_router(admin_rates.router, prefix="/api/v1/admin/transfer-rates", tags=["Admin: Rates"])
app.include_router(admin_wallets.router, prefix="/api/v1/admin/wallets", tags=["Admin: Wallets"])
app.include_router(
    admin_transactions.router, prefix="/api/v1/admin/transactions", tags=["Admin: Transactions"],
)
app.include_router(admin_config.router, prefix="/api/v1/admin/config", tags=["Admin: Config"])


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "0.1.0",
    }
