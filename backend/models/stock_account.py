"""StockAccount model - a brokerage account owned by a user."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class StockAccount(Base):
    """A brokerage account that trades are booked against.

    Lots are tracked per (user, account, ticker), so the same ticker held
    in two accounts forms two independent FIFO queues.
    """

    __tablename__ = "stock_accounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    broker_name = Column(String, nullable=True)
    account_number = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    user = relationship("User", back_populates="stock_accounts")
    transactions = relationship("Transaction", back_populates="stock_account")
    purchase_lots = relationship("PurchaseLot", back_populates="stock_account")
