from datetime import date
from typing import Optional
from fastapi import APIRouter, HTTPException, Request
from ..db import get_session
from ..engine import create_today, recalculate, snapshot_all_owners
from ..errors import ConfigurationError, DataRetrievalError
from ..sources import load_accounts, load_investments, load_ledger

router = APIRouter()


def _snapshot_dict(snap) -> dict:
    return {
        "owner_id": snap.owner_id,
        "date": snap.snapshot_date.isoformat(),
        "account_balances": snap.account_balances,
        "total_accounts": snap.total_accounts,
        "total_investments": snap.total_investments,
        "net_worth": snap.net_worth,
        "income": snap.income,
        "expenses": snap.expenses,
        "exchange_rate": snap.exchange_rate,
    }


def run_recalculation(state, owner_id: str, from_date: date, today: Optional[date] = None):
    """Load the owner's current state and rebuild snapshots from ``from_date``."""
    settings = state.settings
    with get_session() as s:
        accounts = load_accounts(s, owner_id)
        investments = load_investments(s, owner_id)
        ledger = load_ledger(s, owner_id)
    return recalculate(
        owner_id, from_date, accounts, investments, ledger,
        settings.exchange_rate, state.store, today or date.today(),
        max_workers=settings.max_workers,
        reporting_currency=settings.reporting_currency,
        investment_trades_move_cash=settings.investment_trades_move_cash,
    )


def run_create_today(state, owner_id: str, today: Optional[date] = None):
    settings = state.settings
    with get_session() as s:
        accounts = load_accounts(s, owner_id)
        investments = load_investments(s, owner_id)
        ledger = load_ledger(s, owner_id)
    return create_today(
        owner_id, accounts, investments, ledger, settings.exchange_rate, state.store, today,
        reporting_currency=settings.reporting_currency,
        investment_trades_move_cash=settings.investment_trades_move_cash,
    )


@router.get("/owners/{owner_id}/snapshots")
def list_snapshots(request: Request, owner_id: str, start: Optional[date] = None, end: Optional[date] = None):
    snaps = request.app.state.store.range(owner_id, start, end)
    return [_snapshot_dict(s) for s in snaps]


@router.post("/owners/{owner_id}/snapshots/recalculate")
def recalculate_snapshots(request: Request, owner_id: str, from_date: date):
    try:
        result = run_recalculation(request.app.state, owner_id, from_date)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataRetrievalError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return result.to_dict()


@router.post("/owners/{owner_id}/snapshots/today")
def refresh_today(request: Request, owner_id: str):
    try:
        data = run_create_today(request.app.state, owner_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataRetrievalError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"owner_id": owner_id, "date": data.snapshot_date.isoformat(), "net_worth": float(data.net_worth)}


@router.post("/snapshots/daily")
def daily_capture(request: Request):
    settings = request.app.state.settings
    try:
        outcome = snapshot_all_owners(
            get_session, settings.exchange_rate, request.app.state.store,
            reporting_currency=settings.reporting_currency,
            investment_trades_move_cash=settings.investment_trades_move_cash,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataRetrievalError as e:
        raise HTTPException(status_code=503, detail=str(e))
    processed = sum(1 for err in outcome.values() if err is None)
    return {
        "success": processed == len(outcome),
        "message": f"Created/updated snapshots for {processed} owners",
        "failed": {owner: err for owner, err in outcome.items() if err},
        "date": date.today().isoformat(),
    }
