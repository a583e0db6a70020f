"""PurchaseLot model - inventory created by a BUY and drawn down by SELLs."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.enums import LotStatus
from models.utils import generate_uuid, utcnow


class PurchaseLot(Base):
    """Shares acquired in a single BUY, consumed oldest-first on sale.

    Exhausted lots (``quantity_remaining == 0``) are kept so historical
    sales can be audited and their P/L recomputed.
    """

    __tablename__ = "purchase_lots"
    __table_args__ = (
        CheckConstraint("unit_cost >= 0", name="ck_purchase_lot_unit_cost_non_negative"),
        CheckConstraint("fee >= 0", name="ck_purchase_lot_fee_non_negative"),
        CheckConstraint("quantity_original > 0", name="ck_purchase_lot_original_quantity_positive"),
        CheckConstraint("quantity_remaining >= 0", name="ck_purchase_lot_remaining_non_negative"),
        CheckConstraint(
            "quantity_remaining <= quantity_original",
            name="ck_purchase_lot_remaining_within_original",
        ),
        Index("ix_purchase_lots_owner", "user_id", "stock_account_id", "ticker"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    stock_account_id = Column(String(36), ForeignKey("stock_accounts.id"), nullable=False)
    ticker = Column(String, nullable=False)
    acquisition_date = Column(Date, nullable=False)
    # Creation order within (user, account, ticker); breaks same-day ties.
    sequence = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    fee = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    quantity_original = Column(Numeric(18, 8), nullable=False)
    quantity_remaining = Column(Numeric(18, 8), nullable=False)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    stock_account = relationship("StockAccount", back_populates="purchase_lots")
    transaction = relationship("Transaction", back_populates="purchase_lot")
    consumptions = relationship(
        "SaleConsumption",
        back_populates="purchase_lot",
        order_by="SaleConsumption.created_at",
    )

    @property
    def status(self) -> LotStatus:
        if self.quantity_remaining == 0:
            return LotStatus.EXHAUSTED
        if self.quantity_remaining < self.quantity_original:
            return LotStatus.PARTIALLY_CONSUMED
        return LotStatus.OPEN
