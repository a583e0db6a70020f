"""Tests for the LotLedgerService."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from models import PurchaseLot, StockAccount, Transaction
from services.exceptions import InsufficientInventoryError, LedgerError, ValidationError
from services.lot_ledger_service import LotLedgerService
from tests.fixtures import buy, sell


@pytest.fixture
def sample_lot(db: Session, stock_account: StockAccount) -> PurchaseLot:
    """Create a sample open lot."""
    lot = LotLedgerService.add_lot(
        db,
        user_id=stock_account.user_id,
        account_id=stock_account.id,
        ticker="AAPL",
        acquisition_date=date(2024, 1, 15),
        quantity=Decimal("10"),
        unit_cost=Decimal("150.00"),
        fee=Decimal("0"),
    )
    db.commit()
    return lot


class TestAddLot:
    def test_add_lot_success(self, db: Session, sample_lot: PurchaseLot):
        db.refresh(sample_lot)
        assert sample_lot.quantity_original == Decimal("10")
        assert sample_lot.quantity_remaining == Decimal("10")
        assert sample_lot.sequence == 1
        assert sample_lot.transaction_id is None
        assert sample_lot.consumptions == []


class TestConsume:
    def test_consume_decrements_and_records(self, db: Session, sample_lot: PurchaseLot):
        consumption = LotLedgerService.consume(
            db, sample_lot, Decimal("4"), Decimal("0.5"), sequence=1
        )

        assert sample_lot.quantity_remaining == Decimal("6")
        assert consumption.purchase_lot_id == sample_lot.id
        assert consumption.unit_cost == Decimal("150.00")
        assert consumption.cost_basis_portion == Decimal("600.500000")
        assert consumption in sample_lot.consumptions

    def test_consume_more_than_remaining_raises(self, db: Session, sample_lot: PurchaseLot):
        with pytest.raises(InsufficientInventoryError) as exc_info:
            LotLedgerService.consume(db, sample_lot, Decimal("11"), Decimal("0"), sequence=1)
        assert exc_info.value.available == Decimal("10")
        assert isinstance(exc_info.value, LedgerError)
        assert sample_lot.quantity_remaining == Decimal("10")
        assert sample_lot.consumptions == []

    def test_consume_zero_raises(self, db: Session, sample_lot: PurchaseLot):
        with pytest.raises(ValidationError, match="Cannot consume"):
            LotLedgerService.consume(db, sample_lot, Decimal("0"), Decimal("0"), sequence=1)


class TestQueries:
    def test_open_lots_fifo_order(self, db: Session, stock_account: StockAccount):
        c = buy(db, stock_account, "AAPL", 1, 30, on=date(2025, 3, 1))
        a = buy(db, stock_account, "AAPL", 1, 10, on=date(2025, 1, 1))
        b = buy(db, stock_account, "AAPL", 1, 20, on=date(2025, 1, 1))

        lots = LotLedgerService.get_open_lots(db, stock_account.user_id, stock_account.id, "AAPL")

        assert [lot.id for lot in lots] == [a.id, b.id, c.id]

    def test_open_lots_excludes_exhausted(self, db: Session, stock_account: StockAccount):
        exhausted = buy(db, stock_account, "AAPL", 5, 10, on=date(2025, 1, 1))
        kept = buy(db, stock_account, "AAPL", 5, 10, on=date(2025, 1, 2))
        sell(db, stock_account, "AAPL", 5, 12)

        lots = LotLedgerService.get_open_lots(db, stock_account.user_id, stock_account.id, "AAPL")

        assert exhausted not in lots
        assert lots == [kept]

    def test_lots_scoped_to_user(
        self, db: Session, stock_account: StockAccount, other_user
    ):
        buy(db, stock_account, "AAPL", 5, 10)

        assert LotLedgerService.get_open_lots(db, other_user.id, stock_account.id, "AAPL") == []
        assert LotLedgerService.get_lots_for_account(db, other_user.id, stock_account.id) == []

    def test_lots_for_account_filters(self, db: Session, stock_account: StockAccount):
        buy(db, stock_account, "MSFT", 2, 300)
        buy(db, stock_account, "AAPL", 5, 10)
        sell(db, stock_account, "AAPL", 5, 12)
        db.commit()

        open_only = LotLedgerService.get_lots_for_account(db, stock_account.user_id, stock_account.id)
        everything = LotLedgerService.get_lots_for_account(
            db, stock_account.user_id, stock_account.id, include_exhausted=True
        )
        aapl = LotLedgerService.get_lots_for_account(
            db, stock_account.user_id, stock_account.id, ticker="aapl", include_exhausted=True
        )

        assert [lot.ticker for lot in open_only] == ["MSFT"]
        assert [lot.ticker for lot in everything] == ["AAPL", "MSFT"]
        assert len(aapl) == 1
        assert len(aapl[0].consumptions) == 1

    def test_open_lots_after_partial_sell(self, db: Session, stock_account: StockAccount):
        buy(db, stock_account, "AAPL", "2.5", 10)
        buy(db, stock_account, "AAPL", 3, 10)
        sell(db, stock_account, "AAPL", 1, 12)
        db.commit()

        lots = LotLedgerService.get_open_lots(db, stock_account.user_id, stock_account.id, "AAPL")

        assert [lot.quantity_remaining for lot in lots] == [Decimal("1.5"), Decimal("3")]


class TestAggregation:
    def test_weighted_average_cost(self, db: Session, stock_account: StockAccount):
        lots = [
            buy(db, stock_account, "AAPL", 10, 10),
            buy(db, stock_account, "AAPL", 30, 20),
        ]
        assert LotLedgerService.weighted_average_cost(lots) == Decimal("17.5")

    def test_weighted_average_cost_no_shares(self):
        assert LotLedgerService.weighted_average_cost([]) is None

    def test_lot_summaries(self, db: Session, stock_account: StockAccount):
        buy(db, stock_account, "AAPL", 100, 10, on=date(2025, 1, 2))
        buy(db, stock_account, "AAPL", 50, 12, on=date(2025, 1, 3))
        buy(db, stock_account, "MSFT", 2, 300)
        result = sell(db, stock_account, "AAPL", 120, 15)
        db.add(
            Transaction(
                user_id=stock_account.user_id,
                stock_account_id=stock_account.id,
                ticker="AAPL",
                type="SELL",
                quantity=Decimal("120"),
                price=Decimal("15"),
                fee=Decimal("0"),
                tax_rate=Decimal("0"),
                transaction_date=date(2025, 6, 2),
                calculated_pl=result.profit_or_loss,
            )
        )
        db.commit()

        summaries = LotLedgerService.get_lot_summaries(db, stock_account.user_id, stock_account.id)

        assert [s["ticker"] for s in summaries] == ["AAPL", "MSFT"]
        aapl = summaries[0]
        assert aapl["open_quantity"] == Decimal("30")
        assert aapl["open_lot_count"] == 1
        assert aapl["total_lot_count"] == 2
        assert aapl["weighted_average_cost"] == Decimal("12")
        assert aapl["open_cost_basis"] == Decimal("360")
        assert aapl["realized_profit_loss"] == Decimal("560")
        assert summaries[1]["realized_profit_loss"] == Decimal("0")
