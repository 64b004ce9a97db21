from datetime import date
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request
from sqlmodel import Session, SQLModel, Field
from ..currency import to_decimal
from ..db import get_session
from ..models import Account, LedgerTransaction, TransactionType
from ..reconstruct import balance_effect
from ..triggers import transaction_changed
from .snapshots import run_recalculation

router = APIRouter(prefix="/owners/{owner_id}/transactions")


class TransactionIn(SQLModel):
    transaction_type: TransactionType
    amount: float = Field(ge=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    transaction_date: date
    account_id: int
    to_account_id: Optional[int] = None
    investment_id: Optional[int] = None
    note: Optional[str] = None


def _post(s: Session, tx: LedgerTransaction, sign: int, move_cash: bool) -> None:
    """Apply (sign=1) or revert (sign=-1) ``tx`` on the current account balances."""
    for account_id in {tx.account_id, tx.to_account_id} - {None}:
        acct = s.get(Account, account_id)
        if acct is None:
            continue
        delta = balance_effect(tx, acct.id, move_cash)
        if delta:
            acct.balance = float(to_decimal(acct.balance) + sign * delta)
            s.add(acct)


def _check(s: Session, owner_id: str, body: TransactionIn) -> None:
    if body.transaction_date > date.today():
        raise HTTPException(status_code=400, detail="Transaction is dated in the future")
    for account_id in (body.account_id, body.to_account_id):
        if account_id is None:
            continue
        acct = s.get(Account, account_id)
        if acct is None or acct.owner_id != owner_id:
            raise HTTPException(status_code=404, detail=f"Account {account_id} not found")
    if body.transaction_type == TransactionType.transfer and body.to_account_id is None:
        raise HTTPException(status_code=400, detail="A transfer needs a destination account")


def _schedule(request: Request, background: BackgroundTasks, owner_id: str,
              old_date: Optional[date], new_date: Optional[date]) -> date:
    state = request.app.state
    from_date = transaction_changed(state.queue, owner_id, old_date, new_date)
    background.add_task(state.queue.drain, lambda owner, d: run_recalculation(state, owner, d))
    return from_date


@router.post("/", status_code=201)
def create_transaction(request: Request, background: BackgroundTasks, owner_id: str, body: TransactionIn):
    move_cash = request.app.state.settings.investment_trades_move_cash
    with get_session() as s:
        _check(s, owner_id, body)
        tx = LedgerTransaction(owner_id=owner_id, **body.model_dump())
        if tx.transaction_type != TransactionType.transfer:
            tx.to_account_id = None
        s.add(tx)
        _post(s, tx, 1, move_cash)
        s.commit()
        s.refresh(tx)
        tx_id = tx.id
    from_date = _schedule(request, background, owner_id, None, body.transaction_date)
    return {"id": tx_id, "recalculate_from": from_date.isoformat()}


@router.put("/{tx_id}")
def update_transaction(request: Request, background: BackgroundTasks, owner_id: str, tx_id: int, body: TransactionIn):
    move_cash = request.app.state.settings.investment_trades_move_cash
    with get_session() as s:
        tx = s.get(LedgerTransaction, tx_id)
        if tx is None or tx.owner_id != owner_id:
            raise HTTPException(status_code=404, detail="Transaction not found")
        _check(s, owner_id, body)
        old_date = tx.transaction_date
        _post(s, tx, -1, move_cash)
        for k, v in body.model_dump().items():
            setattr(tx, k, v)
        if tx.transaction_type != TransactionType.transfer:
            tx.to_account_id = None
        _post(s, tx, 1, move_cash)
        s.add(tx)
        s.commit()
    from_date = _schedule(request, background, owner_id, old_date, body.transaction_date)
    return {"id": tx_id, "recalculate_from": from_date.isoformat()}


@router.delete("/{tx_id}")
def delete_transaction(request: Request, background: BackgroundTasks, owner_id: str, tx_id: int):
    move_cash = request.app.state.settings.investment_trades_move_cash
    with get_session() as s:
        tx = s.get(LedgerTransaction, tx_id)
        if tx is None or tx.owner_id != owner_id:
            raise HTTPException(status_code=404, detail="Transaction not found")
        old_date = tx.transaction_date
        _post(s, tx, -1, move_cash)
        s.delete(tx)
        s.commit()
    from_date = _schedule(request, background, owner_id, old_date, None)
    return {"id": tx_id, "recalculate_from": from_date.isoformat()}
