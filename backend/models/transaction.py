"""Transaction model - a recorded BUY or SELL."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import ProfitLoss, generate_uuid, utcnow


class Transaction(Base):
    """A BUY or SELL booked by a user against one of their accounts.

    ``calculated_pl`` is written once by the cost-basis engine: 0 for a
    BUY, realized profit/loss for a SELL.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transaction_quantity_positive"),
        CheckConstraint("price >= 0", name="ck_transaction_price_non_negative"),
        CheckConstraint("fee >= 0", name="ck_transaction_fee_non_negative"),
        CheckConstraint("tax_rate >= 0", name="ck_transaction_tax_rate_non_negative"),
        Index("ix_transactions_user_date", "user_id", "transaction_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    stock_account_id = Column(String(36), ForeignKey("stock_accounts.id"), nullable=False, index=True)
    ticker = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)  # "BUY" / "SELL"
    quantity = Column(Numeric(18, 8), nullable=False)
    price = Column(Numeric(18, 6), nullable=False)
    fee = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    tax_rate = Column(Numeric(9, 6), nullable=False, default=Decimal("0"))
    tax_basis = Column(String, nullable=True)  # "proceeds" / "gain", SELL only
    transaction_date = Column(Date, nullable=False)
    calculated_pl = Column(ProfitLoss(18, 6), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    stock_account = relationship("StockAccount", back_populates="transactions")
    purchase_lot = relationship("PurchaseLot", back_populates="transaction", uselist=False)
    consumptions = relationship(
        "SaleConsumption",
        back_populates="sale_transaction",
        order_by="SaleConsumption.sequence",
    )
