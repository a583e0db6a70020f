"""Pydantic schemas for the purchase-lot ledger."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from models.enums import LotStatus


class SaleConsumptionResponse(BaseModel):
    """Schema for a SaleConsumption audit row."""

    id: str
    sale_transaction_id: str | None = None
    purchase_lot_id: str
    sequence: int
    quantity: Decimal
    unit_cost: Decimal
    fee_portion: Decimal
    cost_basis_portion: Decimal
    lot_acquisition_date: date | None = None  # Populated from the lot
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PurchaseLotResponse(BaseModel):
    """Schema for PurchaseLot API response."""

    id: str
    stock_account_id: str
    ticker: str
    acquisition_date: date
    unit_cost: Decimal
    fee: Decimal
    quantity_original: Decimal
    quantity_remaining: Decimal
    status: LotStatus
    transaction_id: str | None = None
    created_at: datetime
    updated_at: datetime

    # Computed fields, populated by the API layer, not stored on the model
    remaining_cost_basis: Decimal | None = None
    consumptions: list[SaleConsumptionResponse] = []

    model_config = ConfigDict(from_attributes=True)


class LotSummaryResponse(BaseModel):
    """Aggregated lot summary for a ticker within an account."""

    ticker: str
    open_quantity: Decimal
    open_lot_count: int
    total_lot_count: int
    weighted_average_cost: Decimal | None = None
    open_cost_basis: Decimal
    realized_profit_loss: Decimal
