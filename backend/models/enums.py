"""Enumerations shared by models, schemas and services."""

from enum import Enum


class TransactionType(str, Enum):
    """Kind of trade recorded in the ledger."""

    BUY = "BUY"
    SELL = "SELL"


class LotStatus(str, Enum):
    """Lifecycle of a purchase lot. Transitions only move forward."""

    OPEN = "OPEN"
    PARTIALLY_CONSUMED = "PARTIALLY_CONSUMED"
    EXHAUSTED = "EXHAUSTED"


class TaxBasis(str, Enum):
    """What a sale's tax rate is applied to."""

    PROCEEDS = "proceeds"
    GAIN = "gain"
