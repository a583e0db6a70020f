"""SQLAlchemy ORM models."""

from .account_fee import AccountFee
from .enums import LotStatus, TaxBasis, TransactionType
from .purchase_lot import PurchaseLot
from .sale_consumption import SaleConsumption
from .stock_account import StockAccount
from .transaction import Transaction
from .user import User
from .utils import generate_uuid

__all__ = ["AccountFee", "LotStatus", "PurchaseLot", "SaleConsumption", "StockAccount", "TaxBasis", "Transaction", "TransactionType", "User", "generate_uuid"]
