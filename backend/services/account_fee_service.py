"""Account fee service - records and totals account-level fees."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from models import AccountFee

logger = logging.getLogger(__name__)


class AccountFeeService:
    """Service for account-level fees (custody, data, maintenance)."""

    @staticmethod
    def create_fee(
        db: Session,
        user_id: str,
        account_id: str,
        *,
        amount: Decimal,
        fee_date: date,
        description: str | None = None,
    ) -> AccountFee:
        """Record a fee against an account."""
        fee = AccountFee(
            user_id=user_id,
            stock_account_id=account_id,
            amount=amount,
            fee_date=fee_date,
            description=description,
            is_active=True,
        )
        db.add(fee)
        db.flush()
        logger.info("Recorded account fee %s on account %s", amount, account_id[:8])
        return fee

    @staticmethod
    def list_fees(db: Session, user_id: str, account_id: str) -> list[AccountFee]:
        """Fees for an account, newest first."""
        return (
            db.query(AccountFee)
            .filter(AccountFee.user_id == user_id, AccountFee.stock_account_id == account_id)
            .order_by(AccountFee.fee_date.desc())
            .all()
        )

    @staticmethod
    def get_fees_total(
        db: Session,
        user_id: str,
        account_id: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> tuple[Decimal, int]:
        """Sum and count of active fees matching the filters.

        Returns:
            ``(total_amount, count)``
        """
        query = db.query(func.sum(AccountFee.amount), func.count(AccountFee.id)).filter(
            AccountFee.user_id == user_id,
            AccountFee.is_active.is_(True),
        )
        if account_id:
            query = query.filter(AccountFee.stock_account_id == account_id)
        if date_from:
            query = query.filter(AccountFee.fee_date >= date_from)
        if date_to:
            query = query.filter(AccountFee.fee_date <= date_to)

        total, count = query.one()
        return (Decimal(str(total)) if total is not None else Decimal("0")), count or 0
