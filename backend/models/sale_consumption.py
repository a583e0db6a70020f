"""SaleConsumption model - audit row linking a SELL to a lot it drew from."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class SaleConsumption(Base):
    """Quantity a sale consumed from one purchase lot, with its cost basis.

    A sale spanning several lots produces one row per lot, numbered by
    ``sequence`` in FIFO order. The quantities of a sale's rows always sum
    to the sale quantity.
    """

    __tablename__ = "sale_consumptions"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_consumption_quantity_positive"),
        CheckConstraint("fee_portion >= 0", name="ck_sale_consumption_fee_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Linked by the transaction recorder in the same unit of work.
    sale_transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=True, index=True)
    purchase_lot_id = Column(String(36), ForeignKey("purchase_lots.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=0)
    quantity = Column(Numeric(18, 8), nullable=False)
    unit_cost = Column(Numeric(18, 6), nullable=False)
    fee_portion = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    cost_basis_portion = Column(Numeric(18, 6), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    sale_transaction = relationship("Transaction", back_populates="consumptions")
    purchase_lot = relationship("PurchaseLot", back_populates="consumptions")
