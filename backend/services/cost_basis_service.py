"""Cost-basis engine: FIFO lot matching and realized P/L.

BUYs open a purchase lot; SELLs drain the oldest open lots first and
produce realized profit/loss. This module is the single place P/L is
computed. Lot rows are read and written through LotLedgerService.

Realized P/L of a sale::

    gross       = price * quantity
    cost_basis  = sum(consumed * lot.unit_cost + fee_portion)
    tax         = gross * tax_rate / 100                      (TAX_BASIS=proceeds)
                = max(gross - fee - cost_basis, 0) * rate/100 (TAX_BASIS=gain)
    pl          = gross - fee - tax - cost_basis

``fee_portion`` is the consumed share of the lot's purchase fee (zero
when BUY_FEE_IN_COST_BASIS is off). The sale's own fee only reduces
proceeds. ``tax_rate`` is a percentage.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from models import PurchaseLot, SaleConsumption, TaxBasis, Transaction, TransactionType
from services.exceptions import InsufficientInventoryError, PersistenceError, ValidationError
from services.lot_ledger_service import MONEY_QUANTUM, LotLedgerService

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


@dataclass
class SaleResult:
    """Outcome of a processed SELL."""

    profit_or_loss: Decimal
    proceeds: Decimal
    cost_basis: Decimal
    tax_amount: Decimal
    tax_basis: str
    consumptions: list[SaleConsumption] = field(default_factory=list)


def round_pl(value: Decimal) -> Decimal:
    """Round a P/L figure to the configured number of decimal places."""
    quantum = Decimal(1).scaleb(-settings.PL_DECIMAL_PLACES)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def compute_tax(
    gross: Decimal, fee: Decimal, cost_basis: Decimal, tax_rate: Decimal, tax_basis: str
) -> Decimal:
    """Tax owed on a sale under the given basis."""
    if tax_rate == 0:
        return Decimal("0")
    if tax_basis == TaxBasis.GAIN.value:
        gain = gross - fee - cost_basis
        return max(gain, Decimal("0")) * tax_rate / HUNDRED
    return gross * tax_rate / HUNDRED


def realized_pl(
    price: Decimal,
    quantity: Decimal,
    fee: Decimal,
    tax_rate: Decimal,
    tax_basis: str,
    cost_basis: Decimal,
) -> tuple[Decimal, Decimal]:
    """Return ``(rounded_pl, tax_amount)`` for a sale."""
    gross = price * quantity
    tax = compute_tax(gross, fee, cost_basis, tax_rate, tax_basis)
    return round_pl(gross - fee - tax - cost_basis), tax


def _to_decimal(value, name: str) -> Decimal:
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (ArithmeticError, ValueError, TypeError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{name} must be a finite number, got {value!r}")
    return result


def _validate_common(ticker: str, quantity, price, fee, transaction_date) -> tuple[str, Decimal, Decimal, Decimal]:
    if not ticker or not str(ticker).strip():
        raise ValidationError("ticker is required")
    if not isinstance(transaction_date, date):
        raise ValidationError(f"transaction_date must be a date, got {transaction_date!r}")

    quantity = _to_decimal(quantity, "quantity")
    price = _to_decimal(price, "price")
    fee = _to_decimal(fee, "fee")

    if quantity <= 0:
        raise ValidationError(f"quantity must be greater than 0, got {quantity}")
    if price < 0:
        raise ValidationError(f"price must not be negative, got {price}")
    if fee < 0:
        raise ValidationError(f"fee must not be negative, got {fee}")
    return str(ticker).strip().upper(), quantity, price, fee


class CostBasisService:
    """Applies BUY and SELL transactions to the lot ledger."""

    @staticmethod
    def process_buy_transaction(
        db: Session,
        user_id: str,
        account_id: str,
        ticker: str,
        quantity,
        price,
        fee,
        transaction_date: date,
    ) -> PurchaseLot:
        """Create a lot for a BUY. BUYs never realize P/L.

        Raises:
            ValidationError: quantity <= 0, negative price/fee, bad ticker/date.
            PersistenceError: the lot could not be written.
        """
        ticker, quantity, price, fee = _validate_common(ticker, quantity, price, fee, transaction_date)

        try:
            LotLedgerService.acquire_write_lock(db, user_id, account_id, ticker)
            lot = LotLedgerService.add_lot(
                db,
                user_id=user_id,
                account_id=account_id,
                ticker=ticker,
                acquisition_date=transaction_date,
                quantity=quantity,
                unit_cost=price,
                fee=fee,
            )
        except SQLAlchemyError as e:
            logger.error("Failed to create lot for %s: %s", ticker, e)
            raise PersistenceError("Failed to record purchase lot") from e

        logger.info(
            "Created lot %s: %s shares of %s @ %s (fee %s) in account %s",
            lot.id[:8], quantity, ticker, price, fee, account_id[:8],
        )
        return lot

    @staticmethod
    def process_sell_transaction(
        db: Session,
        user_id: str,
        account_id: str,
        ticker: str,
        quantity,
        price,
        fee,
        tax_rate,
        transaction_date: date,
    ) -> SaleResult:
        """Consume open lots FIFO for a SELL and compute realized P/L.

        All-or-nothing: if the open lots cannot cover ``quantity`` nothing
        is mutated. The caller owns the session and must roll back on any
        exception raised here.

        Raises:
            ValidationError: bad input, rejected before the ledger is read.
            InsufficientInventoryError: open lots hold fewer shares than asked.
            PersistenceError: the ledger could not be read or written.
        """
        ticker, quantity, price, fee = _validate_common(ticker, quantity, price, fee, transaction_date)
        tax_rate = _to_decimal(tax_rate, "tax_rate")
        if tax_rate < 0 or tax_rate > HUNDRED:
            raise ValidationError(f"tax_rate must be between 0 and 100, got {tax_rate}")

        tax_basis = settings.TAX_BASIS
        include_fee = settings.BUY_FEE_IN_COST_BASIS

        try:
            LotLedgerService.acquire_write_lock(db, user_id, account_id, ticker)
            open_lots = LotLedgerService.get_open_lots(
                db, user_id, account_id, ticker, for_update=True
            )
        except SQLAlchemyError as e:
            logger.error("Failed to load lots for %s: %s", ticker, e)
            raise PersistenceError("Failed to read lot ledger") from e

        available = sum((lot.quantity_remaining for lot in open_lots), Decimal("0"))
        if available < quantity:
            logger.warning(
                "Rejected sell of %s %s in account %s: only %s available",
                quantity, ticker, account_id[:8], available,
            )
            raise InsufficientInventoryError(ticker, quantity, available)

        remaining = quantity
        cost_basis = Decimal("0")
        consumptions: list[SaleConsumption] = []

        try:
            for lot in open_lots:
                if remaining <= 0:
                    break

                take = min(lot.quantity_remaining, remaining)
                fee_portion = (
                    CostBasisService._allocate_lot_fee(lot, take) if include_fee else Decimal("0")
                )
                consumption = LotLedgerService.consume(
                    db, lot, take, fee_portion, sequence=len(consumptions) + 1
                )
                cost_basis += consumption.cost_basis_portion
                consumptions.append(consumption)
                remaining -= take

                logger.info(
                    "FIFO consumption: %s shares from lot %s @ %s (remaining: %s)",
                    take, lot.id[:8], lot.unit_cost, lot.quantity_remaining,
                )

            if remaining > 0:
                # Only reachable if the lots changed under us.
                raise InsufficientInventoryError(ticker, quantity, quantity - remaining)

            db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to consume lots for %s: %s", ticker, e)
            raise PersistenceError("Failed to update lot ledger") from e

        profit_or_loss, tax = realized_pl(price, quantity, fee, tax_rate, tax_basis, cost_basis)
        logger.info(
            "Sold %s %s @ %s in account %s: cost basis %s, tax %s, P/L %s",
            quantity, ticker, price, account_id[:8], cost_basis, tax, profit_or_loss,
        )
        return SaleResult(
            profit_or_loss=profit_or_loss,
            proceeds=price * quantity - fee - tax,
            cost_basis=cost_basis,
            tax_amount=tax,
            tax_basis=tax_basis,
            consumptions=consumptions,
        )

    @staticmethod
    def recompute_sale_pl(db: Session, sale: Transaction) -> Decimal:
        """Re-derive a SELL's P/L from its recorded consumptions.

        Read-only. Reproduces ``sale.calculated_pl`` as long as the audit
        rows are intact.
        """
        if sale.type != TransactionType.SELL.value:
            raise ValidationError(f"Transaction {sale.id} is not a SELL")

        consumptions = LotLedgerService.get_consumptions_for_sale(db, sale.id)
        cost_basis = sum((c.cost_basis_portion for c in consumptions), Decimal("0"))
        tax_basis = sale.tax_basis or TaxBasis.PROCEEDS.value
        profit_or_loss, _ = realized_pl(
            sale.price, sale.quantity, sale.fee, sale.tax_rate, tax_basis, cost_basis
        )
        return profit_or_loss

    @staticmethod
    def _allocate_lot_fee(lot: PurchaseLot, take: Decimal) -> Decimal:
        """Share of the lot's purchase fee carried by ``take`` shares.

        Allocation is cumulative: the fee owed by everything consumed so far
        (this draw included) is rounded once, and the draw gets that target
        minus what earlier draws already carry. Portions therefore never go
        negative, never exceed the fee in total, and the draw that exhausts
        the lot brings the sum to exactly ``lot.fee``.
        """
        if lot.fee == 0:
            return Decimal("0")
        allocated = sum((c.fee_portion for c in lot.consumptions), Decimal("0"))
        if take == lot.quantity_remaining:
            target = lot.fee
        else:
            consumed = lot.quantity_original - lot.quantity_remaining + take
            target = (lot.fee * consumed / lot.quantity_original).quantize(
                MONEY_QUANTUM, rounding=ROUND_HALF_UP
            )
        return min(max(target - allocated, Decimal("0")), lot.fee - allocated)
