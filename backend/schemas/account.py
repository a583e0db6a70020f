"""Pydantic schemas for stock accounts and account fees."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class StockAccountCreate(BaseModel):
    """Schema for creating a stock account."""

    name: str = Field(min_length=1)
    broker_name: str | None = None
    account_number: str | None = None
    description: str | None = None
    is_default: bool = False


class StockAccountSummary(BaseModel):
    """Compact account info embedded in transaction responses."""

    id: str
    name: str
    broker_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class StockAccountResponse(StockAccountSummary):
    """Schema for StockAccount API response."""

    user_id: str
    account_number: str | None = None
    description: str | None = None
    is_default: bool
    created_at: datetime
    updated_at: datetime


class AccountFeeCreate(BaseModel):
    """Schema for recording an account fee."""

    amount: Decimal = Field(ge=0, decimal_places=6)
    fee_date: date
    description: str | None = None


class AccountFeeResponse(BaseModel):
    """Schema for AccountFee API response."""

    id: str
    stock_account_id: str
    amount: Decimal
    fee_date: date
    description: str | None = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
