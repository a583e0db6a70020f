"""Request-scoped dependencies shared by the route handlers."""

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from services.account_service import AccountService
from services.transaction_cache import TransactionListCache


def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> str:
    """Identity of the caller.

    The session layer in front of this service authenticates the user
    and forwards the id; here we only check the user exists.
    """
    if AccountService.get_user(db, x_user_id) is None:
        raise HTTPException(
            status_code=404,
            detail="User not found in database. Please log out and log in again.",
        )
    return x_user_id


def get_transaction_cache(request: Request) -> TransactionListCache:
    """The application's transaction listing cache."""
    return request.app.state.transaction_cache
