from fastapi import APIRouter, HTTPException, Request

from ..config import save_settings
from ..currency import validate_rate
from ..db import current_db_path
from ..errors import ConfigurationError

router = APIRouter(prefix="/settings")

@router.get("/")
def settings_page(request: Request):
    cur = current_db_path()
    settings = request.app.state.settings
    return {
        "data_folder": str(cur.parent) if cur else "—",
        "db_file": str(cur) if cur else "—",
        "exchange_rate": settings.exchange_rate,
        "reporting_currency": settings.reporting_currency,
        "max_workers": settings.max_workers,
        "investment_trades_move_cash": settings.investment_trades_move_cash,
    }

@router.post("/rate")
def set_exchange_rate(request: Request, rate: float):
    """Store a freshly fetched exchange rate; used by every later run."""
    try:
        validate_rate(rate)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    state = request.app.state
    # persist for next startup
    state.settings = save_settings(state.settings, state.config_file, exchange_rate=float(rate))
    return {"exchange_rate": state.settings.exchange_rate}
