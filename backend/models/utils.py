"""Shared helpers for ORM column defaults and types."""

import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Numeric
from sqlalchemy.types import TypeDecorator

from config import settings


def generate_uuid() -> str:
    """Primary keys are random UUID4 strings."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware current time for created_at/updated_at columns."""
    return datetime.now(timezone.utc)


class ProfitLoss(TypeDecorator):
    """Realized P/L column, read back at the configured P/L precision.

    SQLite keeps ``Numeric`` as REAL, so large amounts come back with
    float noise in the trailing digits. Values are written already rounded
    to ``PL_DECIMAL_PLACES``; re-rounding on read restores them exactly.
    """

    impl = Numeric
    cache_ok = True

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        quantum = Decimal(1).scaleb(-settings.PL_DECIMAL_PLACES)
        return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
