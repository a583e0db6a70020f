"""Stock account and account fee API endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_current_user_id, get_transaction_cache
from api.helpers import get_owned_account_or_404
from database import get_db
from schemas.account import (
    AccountFeeCreate,
    AccountFeeResponse,
    StockAccountCreate,
    StockAccountResponse,
)
from services.account_fee_service import AccountFeeService
from services.account_service import AccountService
from services.transaction_cache import TransactionListCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


@router.get("", response_model=list[StockAccountResponse])
def list_accounts(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List the caller's stock accounts."""
    return AccountService.list_accounts(db, user_id)


@router.post("", response_model=StockAccountResponse, status_code=201)
def create_account(
    account_data: StockAccountCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a stock account."""
    account = AccountService.create_account(db, user_id, **account_data.model_dump())
    db.commit()
    db.refresh(account)
    return account


@router.get("/{account_id}", response_model=StockAccountResponse)
def get_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get one of the caller's stock accounts."""
    return get_owned_account_or_404(db, user_id, account_id)


@router.get("/{account_id}/fees", response_model=list[AccountFeeResponse])
def list_account_fees(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """List fees recorded against an account."""
    get_owned_account_or_404(db, user_id, account_id)
    return AccountFeeService.list_fees(db, user_id, account_id)


@router.post("/{account_id}/fees", response_model=AccountFeeResponse, status_code=201)
def create_account_fee(
    account_id: str,
    fee_data: AccountFeeCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    cache: TransactionListCache = Depends(get_transaction_cache),
):
    """Record an account-level fee. Fees reduce net P/L in the listing stats."""
    get_owned_account_or_404(db, user_id, account_id)
    fee = AccountFeeService.create_fee(db, user_id, account_id, **fee_data.model_dump())
    db.commit()
    db.refresh(fee)
    cache.invalidate_user(user_id)
    return fee
