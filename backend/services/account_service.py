"""Stock account management service."""

import logging

from sqlalchemy.orm import Session

from config import settings
from models import StockAccount, User
from services.exceptions import AccountNotFoundError

logger = logging.getLogger(__name__)


class AccountService:
    """Service for stock account lookup and CRUD operations."""

    @staticmethod
    def get_user(db: Session, user_id: str) -> User | None:
        """Get a user by ID."""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def list_accounts(db: Session, user_id: str) -> list[StockAccount]:
        """List a user's accounts, oldest first."""
        return (
            db.query(StockAccount)
            .filter(StockAccount.user_id == user_id)
            .order_by(StockAccount.created_at.asc())
            .all()
        )

    @staticmethod
    def get_account(db: Session, user_id: str, account_id: str) -> StockAccount | None:
        """Get an account by ID, only if it belongs to the user."""
        return (
            db.query(StockAccount)
            .filter(StockAccount.id == account_id, StockAccount.user_id == user_id)
            .first()
        )

    @staticmethod
    def create_account(
        db: Session,
        user_id: str,
        *,
        name: str,
        broker_name: str | None = None,
        account_number: str | None = None,
        description: str | None = None,
        is_default: bool = False,
    ) -> StockAccount:
        """Create a stock account for a user."""
        account = StockAccount(
            user_id=user_id,
            name=name,
            broker_name=broker_name,
            account_number=account_number,
            description=description,
            is_default=is_default,
        )
        db.add(account)
        db.flush()
        logger.info("Stock account created: %s (id=%s)", name, account.id)
        return account

    @staticmethod
    def resolve_account(db: Session, user_id: str, account_id: str | None) -> StockAccount:
        """Find the account a transaction should be booked against.

        An explicit ``account_id`` must belong to the user. Without one the
        user's default account is used: the one flagged ``is_default``,
        else the oldest, else a new default account is created.

        Raises:
            AccountNotFoundError: ``account_id`` is unknown or not the user's.
        """
        if account_id:
            account = AccountService.get_account(db, user_id, account_id)
            if account is None:
                raise AccountNotFoundError(
                    "Invalid stock account or account does not belong to user"
                )
            return account

        accounts = AccountService.list_accounts(db, user_id)
        if accounts:
            return next((a for a in accounts if a.is_default), accounts[0])

        logger.info("Creating default account for user %s", user_id)
        return AccountService.create_account(
            db,
            user_id,
            name=settings.DEFAULT_ACCOUNT_NAME,
            description="Created automatically with the first transaction",
            is_default=True,
        )
