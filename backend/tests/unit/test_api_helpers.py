"""Tests for shared API helpers."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from api.helpers import get_owned_account_or_404, raise_ledger_http_error
from services.exceptions import (
    AccountNotFoundError,
    InsufficientInventoryError,
    PersistenceError,
    ValidationError,
)


class TestRaiseLedgerHttpError:
    def test_rolls_back_and_maps_to_400(self):
        db = MagicMock()
        error = InsufficientInventoryError("AAPL", Decimal("5"), Decimal("2"))

        with pytest.raises(HTTPException) as exc_info:
            raise_ledger_http_error(db, error)

        db.rollback.assert_called_once()
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == (
            "Error processing cost basis: Insufficient inventory for AAPL: requested 5, available 2"
        )

    def test_validation_error_message_passed_through(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_ledger_http_error(MagicMock(), ValidationError("quantity must be greater than 0, got 0"))

        assert exc_info.value.detail.endswith("quantity must be greater than 0, got 0")

    def test_persistence_error_hides_driver_text(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_ledger_http_error(MagicMock(), PersistenceError("(sqlite3.OperationalError) disk I/O error"))

        assert exc_info.value.status_code == 400
        assert "sqlite3" not in exc_info.value.detail
        assert exc_info.value.detail.startswith("Error processing cost basis")

    def test_account_error_not_prefixed(self):
        with pytest.raises(HTTPException) as exc_info:
            raise_ledger_http_error(MagicMock(), AccountNotFoundError("Invalid stock account"))

        assert exc_info.value.detail == "Invalid stock account"


class TestGetOwnedAccountOr404:
    def test_found(self, db, stock_account):
        assert get_owned_account_or_404(db, stock_account.user_id, stock_account.id) is stock_account

    def test_not_found(self, db, other_user, stock_account):
        with pytest.raises(HTTPException) as exc_info:
            get_owned_account_or_404(db, other_user.id, stock_account.id)
        assert exc_info.value.status_code == 404
