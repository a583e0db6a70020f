"""Transaction service - records trades and serves the transaction listing.

Recording runs the cost-basis engine and persists the resulting
Transaction row in the same unit of work, then links the created lot or
the sale's consumptions to it. The API layer commits.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from models import Transaction, TransactionType
from schemas.transaction import TransactionCreate
from services.account_fee_service import AccountFeeService
from services.account_service import AccountService
from services.cost_basis_service import CostBasisService, round_pl
from services.exceptions import PersistenceError

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "transaction_date": Transaction.transaction_date,
    "ticker": Transaction.ticker,
    "type": Transaction.type,
    "quantity": Transaction.quantity,
    "price": Transaction.price,
    "calculated_pl": Transaction.calculated_pl,
    "fee": Transaction.fee,
    "tax_rate": Transaction.tax_rate,
}
DEFAULT_SORT_FIELD = "transaction_date"


@dataclass
class TransactionFilters:
    """Filters, sorting and pagination for the transaction listing."""

    ticker: str | None = None
    type: str | None = None
    stock_account_id: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = "desc"
    page: int = 1
    page_size: int = 10

    def cache_key(self) -> str:
        """Stable string identifying this listing request."""
        return json.dumps(asdict(self), default=str, sort_keys=True)


class TransactionService:
    """Service for recording and listing BUY/SELL transactions."""

    @staticmethod
    def record_transaction(db: Session, user_id: str, data: TransactionCreate) -> Transaction:
        """Apply a trade to the lot ledger and persist its Transaction row.

        Raises:
            AccountNotFoundError: the requested account is not the user's.
            ValidationError / InsufficientInventoryError: from the engine.
            PersistenceError: the transaction row could not be written.
        """
        account = AccountService.resolve_account(db, user_id, data.stock_account_id)

        lot = None
        consumptions = []
        tax_basis = None
        if data.type == TransactionType.BUY:
            lot = CostBasisService.process_buy_transaction(
                db,
                user_id,
                account.id,
                data.ticker,
                data.quantity,
                data.price,
                data.fee,
                data.transaction_date,
            )
            calculated_pl = Decimal("0")
        else:
            result = CostBasisService.process_sell_transaction(
                db,
                user_id,
                account.id,
                data.ticker,
                data.quantity,
                data.price,
                data.fee,
                data.tax_rate,
                data.transaction_date,
            )
            calculated_pl = result.profit_or_loss
            consumptions = result.consumptions
            tax_basis = result.tax_basis

        transaction = Transaction(
            user_id=user_id,
            stock_account_id=account.id,
            ticker=data.ticker,
            type=data.type.value,
            quantity=data.quantity,
            price=data.price,
            fee=data.fee,
            tax_rate=data.tax_rate,
            tax_basis=tax_basis,
            transaction_date=data.transaction_date,
            calculated_pl=calculated_pl,
            notes=data.notes,
        )
        try:
            db.add(transaction)
            db.flush()
            if lot is not None:
                lot.transaction_id = transaction.id
            for consumption in consumptions:
                consumption.sale_transaction_id = transaction.id
            db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to persist %s transaction for %s: %s", data.type.value, data.ticker, e)
            raise PersistenceError("Failed to record transaction") from e

        logger.info(
            "Recorded %s %s x %s @ %s (P/L %s) as transaction %s",
            data.type.value, data.ticker, data.quantity, data.price, calculated_pl, transaction.id[:8],
        )
        return transaction

    @staticmethod
    def get_transaction(db: Session, user_id: str, transaction_id: str) -> Transaction | None:
        """Get a transaction by ID, only if it belongs to the user."""
        return (
            db.query(Transaction)
            .options(joinedload(Transaction.stock_account))
            .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_transactions(db: Session, user_id: str, filters: TransactionFilters) -> dict:
        """Filtered, sorted, paginated listing with profit statistics.

        Returns:
            Dict matching TransactionListResponse fields.
        """
        query = db.query(Transaction).filter(Transaction.user_id == user_id)

        if filters.type:
            query = query.filter(Transaction.type == filters.type.upper())
        if filters.stock_account_id:
            query = query.filter(Transaction.stock_account_id == filters.stock_account_id)
        if filters.ticker:
            ticker = filters.ticker.strip().upper()
            if len(ticker) >= 2:
                query = query.filter(Transaction.ticker.contains(ticker, autoescape=True))
            else:
                query = query.filter(Transaction.ticker.startswith(ticker, autoescape=True))
        if filters.date_from:
            query = query.filter(Transaction.transaction_date >= filters.date_from)
        if filters.date_to:
            query = query.filter(Transaction.transaction_date <= filters.date_to)
        if filters.min_amount is not None:
            query = query.filter(Transaction.price >= filters.min_amount)
        if filters.max_amount is not None:
            query = query.filter(Transaction.price <= filters.max_amount)

        total_count = query.count()

        sort_column = SORT_FIELDS.get(filters.sort_by, SORT_FIELDS[DEFAULT_SORT_FIELD])
        if filters.sort_by in SORT_FIELDS and filters.sort_order.lower() == "asc":
            primary = sort_column.asc()
        else:
            primary = sort_column.desc()

        transactions = (
            query.options(joinedload(Transaction.stock_account))
            .order_by(primary, Transaction.id.desc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
            .all()
        )

        fees_total, _ = AccountFeeService.get_fees_total(
            db,
            user_id,
            account_id=filters.stock_account_id,
            date_from=filters.date_from,
            date_to=filters.date_to,
        )

        return {
            "transactions": transactions,
            "total_count": total_count,
            "page": filters.page,
            "page_size": filters.page_size,
            "total_pages": math.ceil(total_count / filters.page_size) if filters.page_size else 0,
            "profit_stats": compute_profit_stats(transactions, fees_total),
        }


def compute_profit_stats(transactions: list[Transaction], account_fees_total: Decimal) -> dict:
    """Realized P/L statistics over the SELLs in ``transactions``.

    Account fees are subtracted from the gross realized P/L.
    """
    sells = [tx for tx in transactions if tx.type == TransactionType.SELL.value]
    zero = Decimal("0")

    if not sells:
        return {
            "total_profit_loss": round_pl(zero - account_fees_total),
            "gross_profit_loss": zero,
            "account_fees_total": round_pl(account_fees_total),
            "profitable_transactions": 0,
            "unprofitable_transactions": 0,
            "break_even_transactions": 0,
            "total_transactions": 0,
            "success_rate": zero,
            "average_profit": zero,
            "total_profit": zero,
            "total_loss": zero,
        }

    pls = [tx.calculated_pl or zero for tx in sells]
    gross = sum(pls, zero)
    total = gross - account_fees_total
    profitable = sum(1 for pl in pls if pl > 0)
    unprofitable = sum(1 for pl in pls if pl < 0)

    success_rate = (Decimal(profitable) / Decimal(len(sells)) * 100).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )

    return {
        "total_profit_loss": round_pl(total),
        "gross_profit_loss": round_pl(gross),
        "account_fees_total": round_pl(account_fees_total),
        "profitable_transactions": profitable,
        "unprofitable_transactions": unprofitable,
        "break_even_transactions": len(sells) - profitable - unprofitable,
        "total_transactions": len(sells),
        "success_rate": success_rate,
        "average_profit": round_pl(total / len(sells)),
        "total_profit": round_pl(sum((pl for pl in pls if pl > 0), zero)),
        "total_loss": round_pl(sum((pl for pl in pls if pl < 0), zero)),
    }
