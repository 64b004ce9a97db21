from __future__ import annotations
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .errors import DataRetrievalError
from .models import Account, Investment, LedgerTransaction


def _fetch(session: Session, stmt, what: str, owner_id: str) -> list:
    try:
        return list(session.exec(stmt).all())
    except SQLAlchemyError as e:
        raise DataRetrievalError(f"Could not load {what} for owner {owner_id}: {e}") from e


def load_accounts(session: Session, owner_id: str, active_only: bool = False) -> List[Account]:
    """All of the owner's accounts; closed ones still carry history."""
    stmt = select(Account).where(Account.owner_id == owner_id)
    if active_only:
        stmt = stmt.where(Account.is_active == True)  # noqa: E712
    stmt = stmt.order_by(Account.id)
    return _fetch(session, stmt, "accounts", owner_id)


def load_investments(session: Session, owner_id: str) -> List[Investment]:
    stmt = (select(Investment)
            .where(Investment.owner_id == owner_id, Investment.is_active == True)  # noqa: E712
            .order_by(Investment.id))
    return _fetch(session, stmt, "investments", owner_id)


def load_ledger(session: Session, owner_id: str) -> List[LedgerTransaction]:
    stmt = (select(LedgerTransaction)
            .where(LedgerTransaction.owner_id == owner_id)
            .order_by(LedgerTransaction.transaction_date, LedgerTransaction.id))
    return _fetch(session, stmt, "ledger", owner_id)


def list_owners(session: Session) -> List[str]:
    """Owners with at least one active account."""
    stmt = (select(Account.owner_id)
            .where(Account.is_active == True)  # noqa: E712
            .distinct()
            .order_by(Account.owner_id))
    return _fetch(session, stmt, "owners", "*")
