"""AccountFee model - account-level charges not tied to a single trade."""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utcnow


class AccountFee(Base):
    """A custody, data or maintenance fee charged to a stock account.

    Active fees are subtracted from realized P/L in profit statistics.
    """

    __tablename__ = "account_fees"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_account_fee_amount_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    stock_account_id = Column(String(36), ForeignKey("stock_accounts.id"), nullable=False, index=True)
    amount = Column(Numeric(18, 6), nullable=False)
    fee_date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    stock_account = relationship("StockAccount")
