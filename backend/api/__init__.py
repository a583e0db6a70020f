"""API route handlers."""
from . import accounts, lots, transactions

__all__ = ["accounts", "lots", "transactions"]
