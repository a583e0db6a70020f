"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import accounts, lots, transactions
from config import settings
from database import init_db
from logging_config import setup_logging
from services.transaction_cache import TransactionListCache

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    try:
        init_db()
    except Exception:
        logger.warning("Database initialization failed on startup", exc_info=True)
    yield
    app.state.transaction_cache.clear()


app = FastAPI(
    title="Trade Ledger",
    description="Stock transaction tracking with FIFO cost basis",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.transaction_cache = TransactionListCache(
    ttl_seconds=settings.TRANSACTION_CACHE_TTL_SECONDS,
    max_entries=settings.TRANSACTION_CACHE_MAX_ENTRIES,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(accounts.router)
app.include_router(lots.router)
app.include_router(transactions.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
