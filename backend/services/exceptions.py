"""Typed exception hierarchy for ledger errors.

Lets the API layer tell rejected input apart from missing inventory and
from storage failures without parsing messages.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for all cost-basis and ledger errors."""

    pass


class ValidationError(LedgerError):
    """Bad quantity, price, fee, tax rate or ticker.

    Raised before the lot ledger is touched.
    """

    pass


class InsufficientInventoryError(LedgerError):
    """A sell asks for more shares than the open lots hold.

    Never a partial fill: nothing is mutated when this is raised.
    """

    def __init__(self, ticker: str, requested: Decimal, available: Decimal):
        self.ticker = ticker
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient inventory for {ticker}: requested {requested}, "
            f"available {available}"
        )


class AccountNotFoundError(LedgerError):
    """Stock account does not exist or belongs to another user."""

    pass


class PersistenceError(LedgerError):
    """Underlying storage failure. The unit of work has been rolled back."""

    pass
