"""Pydantic schemas for transactions."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.enums import TransactionType
from schemas.account import StockAccountSummary
from schemas.lot import PurchaseLotResponse, SaleConsumptionResponse


class TransactionCreate(BaseModel):
    """Validated input for recording a BUY or SELL.

    Accepts both snake_case and camelCase field names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ticker: str = Field(min_length=1, max_length=20)
    type: TransactionType
    quantity: Decimal = Field(gt=0, max_digits=18, decimal_places=8)
    price: Decimal = Field(ge=0, max_digits=18, decimal_places=6)
    fee: Decimal = Field(default=Decimal("0"), ge=0, max_digits=18, decimal_places=6)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, decimal_places=6)
    transaction_date: date
    stock_account_id: str | None = None
    notes: str | None = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        """Tickers are stored upper-cased without surrounding whitespace."""
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be blank")
        return v


class TransactionResponse(BaseModel):
    """Schema for Transaction API response."""

    id: str
    user_id: str
    stock_account_id: str
    ticker: str
    type: TransactionType
    quantity: Decimal
    price: Decimal
    fee: Decimal
    tax_rate: Decimal
    tax_basis: str | None = None
    transaction_date: date
    calculated_pl: Decimal | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    stock_account: StockAccountSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class TransactionDetailResponse(TransactionResponse):
    """A transaction with the lot it opened (BUY) or the lots it consumed (SELL)."""

    purchase_lot: PurchaseLotResponse | None = None
    consumptions: list[SaleConsumptionResponse] = []


class SaleAuditResponse(BaseModel):
    """Audit trail of a SELL with its P/L re-derived from the trail."""

    transaction_id: str
    ticker: str
    quantity: Decimal
    calculated_pl: Decimal | None
    recomputed_pl: Decimal
    cost_basis: Decimal
    consumptions: list[SaleConsumptionResponse]


class ProfitStats(BaseModel):
    """Realized P/L statistics over the SELLs of a listing."""

    total_profit_loss: Decimal
    gross_profit_loss: Decimal
    account_fees_total: Decimal
    profitable_transactions: int
    unprofitable_transactions: int
    break_even_transactions: int
    total_transactions: int
    success_rate: Decimal
    average_profit: Decimal
    total_profit: Decimal
    total_loss: Decimal


class TransactionListResponse(BaseModel):
    """Paginated transaction listing."""

    transactions: list[TransactionResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    profit_stats: ProfitStats
