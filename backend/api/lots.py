"""Purchase lot API endpoints (read-only; lots change only through trades)."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.dependencies import get_current_user_id
from api.helpers import get_owned_account_or_404
from api.transactions import lot_response_dict
from database import get_db
from schemas.lot import LotSummaryResponse, PurchaseLotResponse
from services.lot_ledger_service import LotLedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/accounts", tags=["lots"])


@router.get("/{account_id}/lots", response_model=list[PurchaseLotResponse])
def get_account_lots(
    account_id: str,
    ticker: str | None = Query(default=None),
    include_exhausted: bool = Query(default=False),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Get lots for an account in FIFO order per ticker."""
    get_owned_account_or_404(db, user_id, account_id)
    lots = LotLedgerService.get_lots_for_account(
        db, user_id, account_id, ticker=ticker, include_exhausted=include_exhausted
    )
    return [lot_response_dict(lot) for lot in lots]


@router.get("/{account_id}/lots/summary", response_model=list[LotSummaryResponse])
def get_account_lot_summaries(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Per-ticker open quantity, weighted average cost and realized P/L."""
    get_owned_account_or_404(db, user_id, account_id)
    return LotLedgerService.get_lot_summaries(db, user_id, account_id)
