"""Service for the purchase-lot ledger.

Pure data layer for PurchaseLot and SaleConsumption records: FIFO-ordered
queries, write locking, aggregation. Every read or write of lot rows goes
through here; the cost-basis engine decides *what* to write.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import asc, func, text
from sqlalchemy.orm import Session, joinedload

from models import PurchaseLot, SaleConsumption, Transaction, TransactionType
from services.exceptions import InsufficientInventoryError, ValidationError

logger = logging.getLogger(__name__)

# Scale of the Numeric(18, 6) money columns.
MONEY_QUANTUM = Decimal("0.000001")


class LotLedgerService:
    """Manages lot queries, locking, aggregation and audit rows."""

    # --- Locking ---

    @staticmethod
    def acquire_write_lock(db: Session, user_id: str, account_id: str, ticker: str) -> None:
        """Serialize read-modify-write cycles on a (user, account, ticker) key.

        On SQLite this takes the database write lock up front with
        ``BEGIN IMMEDIATE`` so a concurrent writer cannot read the same
        open lots between our read and our decrement. Other dialects rely
        on the ``FOR UPDATE`` row locks taken by :meth:`get_open_lots`.
        """
        if db.get_bind().dialect.name != "sqlite":
            return

        raw_conn = db.connection().connection.dbapi_connection
        if raw_conn.in_transaction:
            # A write already happened in this unit of work, so this
            # connection holds the RESERVED lock.
            return

        db.execute(text("BEGIN IMMEDIATE"))
        logger.debug("Acquired ledger write lock for %s/%s/%s", user_id, account_id[:8], ticker)

    # --- Writes ---

    @staticmethod
    def add_lot(
        db: Session,
        *,
        user_id: str,
        account_id: str,
        ticker: str,
        acquisition_date,
        quantity: Decimal,
        unit_cost: Decimal,
        fee: Decimal,
    ) -> PurchaseLot:
        """Insert a new open lot at the back of the key's FIFO queue."""
        sequence = LotLedgerService._next_sequence(db, user_id, account_id, ticker)
        lot = PurchaseLot(
            user_id=user_id,
            stock_account_id=account_id,
            ticker=ticker,
            acquisition_date=acquisition_date,
            sequence=sequence,
            unit_cost=unit_cost,
            fee=fee,
            quantity_original=quantity,
            quantity_remaining=quantity,
        )
        db.add(lot)
        db.flush()
        return lot

    @staticmethod
    def consume(
        db: Session,
        lot: PurchaseLot,
        quantity: Decimal,
        fee_portion: Decimal,
        sequence: int,
    ) -> SaleConsumption:
        """Decrement a lot and record the audit row for the draw."""
        if quantity <= 0:
            raise ValidationError(f"Cannot consume {quantity} shares from lot {lot.id}")
        if quantity > lot.quantity_remaining:
            raise InsufficientInventoryError(lot.ticker, quantity, lot.quantity_remaining)

        consumption = SaleConsumption(
            purchase_lot_id=lot.id,
            sequence=sequence,
            quantity=quantity,
            unit_cost=lot.unit_cost,
            fee_portion=fee_portion,
            cost_basis_portion=(quantity * lot.unit_cost + fee_portion).quantize(
                MONEY_QUANTUM, rounding=ROUND_HALF_UP
            ),
        )
        db.add(consumption)
        lot.consumptions.append(consumption)
        lot.quantity_remaining -= quantity
        return consumption

    # --- Queries ---

    @staticmethod
    def get_open_lots(
        db: Session, user_id: str, account_id: str, ticker: str, for_update: bool = False
    ) -> list[PurchaseLot]:
        """Open lots for a key in FIFO order.

        Ordered by acquisition_date, then creation sequence, then id.
        """
        query = (
            db.query(PurchaseLot)
            .filter(
                PurchaseLot.user_id == user_id,
                PurchaseLot.stock_account_id == account_id,
                PurchaseLot.ticker == ticker,
                PurchaseLot.quantity_remaining > 0,
            )
            .order_by(
                asc(PurchaseLot.acquisition_date),
                asc(PurchaseLot.sequence),
                asc(PurchaseLot.id),
            )
        )
        if for_update:
            query = query.with_for_update()
        return query.all()

    @staticmethod
    def get_lots_for_account(
        db: Session,
        user_id: str,
        account_id: str,
        ticker: str | None = None,
        include_exhausted: bool = False,
    ) -> list[PurchaseLot]:
        """Lots for an account, optionally narrowed to one ticker."""
        query = (
            db.query(PurchaseLot)
            .options(joinedload(PurchaseLot.consumptions))
            .filter(
                PurchaseLot.user_id == user_id,
                PurchaseLot.stock_account_id == account_id,
            )
        )
        if ticker:
            query = query.filter(PurchaseLot.ticker == ticker.upper())
        if not include_exhausted:
            query = query.filter(PurchaseLot.quantity_remaining > 0)
        return (
            query.order_by(
                PurchaseLot.ticker.asc(),
                PurchaseLot.acquisition_date.asc(),
                PurchaseLot.sequence.asc(),
            )
            .all()
        )

    @staticmethod
    def get_consumptions_for_sale(db: Session, sale_transaction_id: str) -> list[SaleConsumption]:
        """Audit rows of one sale in FIFO order."""
        return (
            db.query(SaleConsumption)
            .options(joinedload(SaleConsumption.purchase_lot))
            .filter(SaleConsumption.sale_transaction_id == sale_transaction_id)
            .order_by(SaleConsumption.sequence.asc())
            .all()
        )

    # --- Aggregation ---

    @staticmethod
    def weighted_average_cost(lots: list[PurchaseLot]) -> Decimal | None:
        """Average unit cost of the shares still held, weighted by remaining quantity."""
        remaining = sum((lot.quantity_remaining for lot in lots), Decimal("0"))
        if remaining <= 0:
            return None
        cost = sum((lot.quantity_remaining * lot.unit_cost for lot in lots), Decimal("0"))
        return cost / remaining

    @staticmethod
    def get_lot_summaries(db: Session, user_id: str, account_id: str) -> list[dict]:
        """Per-ticker summary of an account's lots.

        Returns:
            List of dicts matching LotSummaryResponse fields, sorted by ticker.
        """
        lots = LotLedgerService.get_lots_for_account(
            db, user_id, account_id, include_exhausted=True
        )

        lots_by_ticker: dict[str, list[PurchaseLot]] = {}
        for lot in lots:
            lots_by_ticker.setdefault(lot.ticker, []).append(lot)

        realized_rows = (
            db.query(Transaction.ticker, func.sum(Transaction.calculated_pl))
            .filter(
                Transaction.user_id == user_id,
                Transaction.stock_account_id == account_id,
                Transaction.type == TransactionType.SELL.value,
            )
            .group_by(Transaction.ticker)
            .all()
        )
        realized_by_ticker = {
            ticker: Decimal(str(total)) if total is not None else Decimal("0")
            for ticker, total in realized_rows
        }

        result = []
        for ticker in sorted(lots_by_ticker):
            ticker_lots = lots_by_ticker[ticker]
            open_lots = [lot for lot in ticker_lots if lot.quantity_remaining > 0]
            open_quantity = sum((lot.quantity_remaining for lot in open_lots), Decimal("0"))
            open_cost_basis = sum(
                (lot.quantity_remaining * lot.unit_cost for lot in open_lots), Decimal("0")
            )
            result.append({
                "ticker": ticker,
                "open_quantity": open_quantity,
                "open_lot_count": len(open_lots),
                "total_lot_count": len(ticker_lots),
                "weighted_average_cost": LotLedgerService.weighted_average_cost(open_lots),
                "open_cost_basis": open_cost_basis,
                "realized_profit_loss": realized_by_ticker.get(ticker, Decimal("0")),
            })
        return result

    # --- Internal ---

    @staticmethod
    def _next_sequence(db: Session, user_id: str, account_id: str, ticker: str) -> int:
        current = (
            db.query(func.max(PurchaseLot.sequence))
            .filter(
                PurchaseLot.user_id == user_id,
                PurchaseLot.stock_account_id == account_id,
                PurchaseLot.ticker == ticker,
            )
            .scalar()
        )
        return (current or 0) + 1
