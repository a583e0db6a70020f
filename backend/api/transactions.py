"""Transaction API endpoints."""

import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.dependencies import get_current_user_id, get_transaction_cache
from api.helpers import raise_ledger_http_error
from database import get_db
from models import PurchaseLot, SaleConsumption, Transaction, TransactionType
from schemas.transaction import (
    SaleAuditResponse,
    TransactionCreate,
    TransactionDetailResponse,
    TransactionListResponse,
    TransactionResponse,
)
from services.cost_basis_service import CostBasisService
from services.exceptions import LedgerError, PersistenceError
from services.lot_ledger_service import LotLedgerService
from services.transaction_cache import TransactionListCache
from services.transaction_service import TransactionFilters, TransactionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def consumption_response_dict(consumption: SaleConsumption) -> dict:
    """Build a SaleConsumptionResponse-compatible dict."""
    lot = consumption.purchase_lot
    return {
        "id": consumption.id,
        "sale_transaction_id": consumption.sale_transaction_id,
        "purchase_lot_id": consumption.purchase_lot_id,
        "sequence": consumption.sequence,
        "quantity": consumption.quantity,
        "unit_cost": consumption.unit_cost,
        "fee_portion": consumption.fee_portion,
        "cost_basis_portion": consumption.cost_basis_portion,
        "lot_acquisition_date": lot.acquisition_date if lot else None,
        "created_at": consumption.created_at,
    }


def lot_response_dict(lot: PurchaseLot) -> dict:
    """Enrich a PurchaseLot with computed fields for the API response."""
    return {
        "id": lot.id,
        "stock_account_id": lot.stock_account_id,
        "ticker": lot.ticker,
        "acquisition_date": lot.acquisition_date,
        "unit_cost": lot.unit_cost,
        "fee": lot.fee,
        "quantity_original": lot.quantity_original,
        "quantity_remaining": lot.quantity_remaining,
        "status": lot.status,
        "transaction_id": lot.transaction_id,
        "created_at": lot.created_at,
        "updated_at": lot.updated_at,
        "remaining_cost_basis": lot.quantity_remaining * lot.unit_cost,
        "consumptions": [consumption_response_dict(c) for c in lot.consumptions],
    }


def _get_owned_transaction_or_404(db: Session, user_id: str, transaction_id: str) -> Transaction:
    transaction = TransactionService.get_transaction(db, user_id, transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    ticker: str | None = Query(default=None),
    type_: TransactionType | None = Query(default=None, alias="type"),
    stock_account_id: str | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    min_amount: Decimal | None = Query(default=None),
    max_amount: Decimal | None = Query(default=None),
    sort_by: str = Query(default="transaction_date"),
    sort_order: str = Query(default="desc"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cache: TransactionListCache = Depends(get_transaction_cache),
):
    """List the caller's transactions with filters, pagination and P/L stats."""
    filters = TransactionFilters(
        ticker=ticker,
        type=type_.value if type_ else None,
        stock_account_id=stock_account_id,
        date_from=date_from,
        date_to=date_to,
        min_amount=min_amount,
        max_amount=max_amount,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    cache_key = filters.cache_key()
    cached = cache.get(user_id, cache_key)
    if cached is not None:
        logger.debug("Transaction listing cache hit for user %s", user_id)
        return cached

    result = TransactionService.list_transactions(db, user_id, filters)
    response = TransactionListResponse.model_validate(result, from_attributes=True)
    cache.set(user_id, cache_key, response)
    return response


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    data: TransactionCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cache: TransactionListCache = Depends(get_transaction_cache),
):
    """Record a BUY or SELL and apply it to the lot ledger."""
    try:
        transaction = TransactionService.record_transaction(db, user_id, data)
        db.commit()
    except LedgerError as e:
        raise_ledger_http_error(db, e)
    except SQLAlchemyError as e:
        raise_ledger_http_error(db, PersistenceError(str(e)))

    cache.invalidate_user(user_id)
    db.refresh(transaction)
    return TransactionResponse.model_validate(transaction)


@router.get("/{transaction_id}", response_model=TransactionDetailResponse)
def get_transaction(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get a transaction with the lot it opened or the lots it consumed."""
    transaction = _get_owned_transaction_or_404(db, user_id, transaction_id)
    result = TransactionResponse.model_validate(transaction).model_dump()
    result["purchase_lot"] = (
        lot_response_dict(transaction.purchase_lot) if transaction.purchase_lot else None
    )
    result["consumptions"] = [
        consumption_response_dict(c)
        for c in LotLedgerService.get_consumptions_for_sale(db, transaction.id)
    ]
    return result


@router.get("/{transaction_id}/consumptions", response_model=SaleAuditResponse)
def get_sale_consumptions(
    transaction_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Audit trail of a SELL with its P/L re-derived from the trail."""
    transaction = _get_owned_transaction_or_404(db, user_id, transaction_id)
    if transaction.type != TransactionType.SELL.value:
        raise HTTPException(status_code=400, detail="Transaction is not a SELL")

    consumptions = LotLedgerService.get_consumptions_for_sale(db, transaction.id)
    return {
        "transaction_id": transaction.id,
        "ticker": transaction.ticker,
        "quantity": transaction.quantity,
        "calculated_pl": transaction.calculated_pl,
        "recomputed_pl": CostBasisService.recompute_sale_pl(db, transaction),
        "cost_basis": sum((c.cost_basis_portion for c in consumptions), Decimal("0")),
        "consumptions": [consumption_response_dict(c) for c in consumptions],
    }
