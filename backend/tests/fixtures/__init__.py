"""Test fixtures and sample data."""
import pytest
from datetime import date
from decimal import Decimal

from models import AccountFee, PurchaseLot, StockAccount, User
from services.cost_basis_service import CostBasisService, SaleResult
from sqlalchemy.orm import Session


def buy(
    db: Session,
    account: StockAccount,
    ticker: str,
    quantity,
    price,
    fee="0",
    on: date = date(2025, 1, 2),
) -> PurchaseLot:
    """Run a BUY through the engine for ``account``'s owner.

    This is a helper function (not a fixture) so tests can build up a
    lot queue in a few lines.
    """
    return CostBasisService.process_buy_transaction(
        db,
        account.user_id,
        account.id,
        ticker,
        Decimal(str(quantity)),
        Decimal(str(price)),
        Decimal(str(fee)),
        on,
    )


def sell(
    db: Session,
    account: StockAccount,
    ticker: str,
    quantity,
    price,
    fee="0",
    tax_rate="0",
    on: date = date(2025, 6, 2),
) -> SaleResult:
    """Run a SELL through the engine for ``account``'s owner."""
    return CostBasisService.process_sell_transaction(
        db,
        account.user_id,
        account.id,
        ticker,
        Decimal(str(quantity)),
        Decimal(str(price)),
        Decimal(str(fee)),
        Decimal(str(tax_rate)),
        on,
    )


def transaction_payload(**overrides) -> dict:
    """JSON body for POST /api/transactions."""
    payload = {
        "ticker": "AAPL",
        "type": "BUY",
        "quantity": "100",
        "price": "10",
        "fee": "0",
        "tax_rate": "0",
        "transaction_date": "2025-01-02",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    u = User(email="trader@example.com", name="Test Trader")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def other_user(db: Session) -> User:
    """Create a second user for isolation tests."""
    u = User(email="other@example.com", name="Other Trader")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def stock_account(db: Session, user: User) -> StockAccount:
    """Create the test user's default brokerage account."""
    acc = StockAccount(
        user_id=user.id,
        name="Main Brokerage",
        broker_name="Test Broker",
        is_default=True,
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def second_account(db: Session, user: User, stock_account: StockAccount) -> StockAccount:
    """Create a second, non-default account for the test user."""
    acc = StockAccount(
        user_id=user.id,
        name="Retirement",
        broker_name="Other Broker",
        is_default=False,
    )
    db.add(acc)
    db.commit()
    db.refresh(acc)
    return acc


@pytest.fixture
def account_fee(db: Session, stock_account: StockAccount) -> AccountFee:
    """Create a custody fee on the default account."""
    fee = AccountFee(
        user_id=stock_account.user_id,
        stock_account_id=stock_account.id,
        amount=Decimal("5.00"),
        fee_date=date(2025, 3, 1),
        description="Custody fee",
        is_active=True,
    )
    db.add(fee)
    db.commit()
    db.refresh(fee)
    return fee
