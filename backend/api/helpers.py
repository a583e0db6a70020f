"""Shared API helpers for route handlers.

Common query patterns and error mapping used across multiple route files.
"""

import logging
from typing import NoReturn

from fastapi import HTTPException
from sqlalchemy.orm import Session

from models import StockAccount
from services.account_service import AccountService
from services.exceptions import AccountNotFoundError, LedgerError, PersistenceError

logger = logging.getLogger(__name__)


def get_owned_account_or_404(db: Session, user_id: str, account_id: str) -> StockAccount:
    """Fetch one of the user's stock accounts or raise 404.

    Args:
        db: Database session.
        user_id: The caller.
        account_id: Primary key of the account.

    Returns:
        The StockAccount instance.

    Raises:
        HTTPException: 404 if the account doesn't exist or isn't the user's.
    """
    account = AccountService.get_account(db, user_id, account_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


def raise_ledger_http_error(db: Session, error: LedgerError) -> NoReturn:
    """Roll back the unit of work and convert a ledger error to HTTP 400.

    Storage failures get a generic message; everything else passes the
    error text through.
    """
    db.rollback()
    if isinstance(error, PersistenceError):
        logger.error("Ledger persistence failure: %s", error, exc_info=error)
        raise HTTPException(
            status_code=400,
            detail="Error processing cost basis: the transaction could not be saved",
        ) from error
    if isinstance(error, AccountNotFoundError):
        raise HTTPException(status_code=400, detail=str(error)) from error
    raise HTTPException(
        status_code=400,
        detail=f"Error processing cost basis: {error}",
    ) from error
