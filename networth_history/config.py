from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".networth_history.json"

DEFAULT_EXCHANGE_RATE = 1.08
DEFAULT_REPORTING_CURRENCY = "EUR"
DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class EngineSettings:
    data_dir: Path
    exchange_rate: Optional[float] = DEFAULT_EXCHANGE_RATE
    reporting_currency: str = DEFAULT_REPORTING_CURRENCY
    max_workers: int = DEFAULT_MAX_WORKERS
    # buy debits / sell credits the paying account, like expense / income
    investment_trades_move_cash: bool = True


def _read_config_file(config_file: Path) -> Dict[str, Any]:
    if not config_file.exists():
        return {}
    try:
        data = json.loads(config_file.read_text())
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, e)
        return {}
    return data if isinstance(data, dict) else {}


def _resolve_data_dir(saved: Dict[str, Any]) -> Path:
    env_dir = os.getenv("NETWORTH_DATA_DIR")
    if env_dir:
        p = Path(env_dir).expanduser().resolve()
        if p.exists() and p.is_dir():
            return p
    if saved.get("data_dir"):
        p = Path(saved["data_dir"]).expanduser().resolve()
        if p.exists() and p.is_dir():
            return p
    return (Path.cwd() / "data").resolve()


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def load_settings(config_file: Optional[Path] = None) -> EngineSettings:
    """Build settings from env vars, then the JSON config file, then defaults.

    The exchange rate is passed through unvalidated; the engine rejects a bad
    rate when it is actually used.
    """
    saved = _read_config_file(config_file or CONFIG_FILE)

    rate: Any = os.getenv("NETWORTH_EXCHANGE_RATE")
    if rate is None:
        rate = saved.get("exchange_rate", DEFAULT_EXCHANGE_RATE)
    try:
        rate = float(rate) if rate is not None else None
    except (TypeError, ValueError):
        logger.warning("Exchange rate %r is not a number", rate)
        rate = None

    move_cash = os.getenv("NETWORTH_INVESTMENT_TRADES_MOVE_CASH")
    if move_cash is None:
        move_cash = saved.get("investment_trades_move_cash", True)

    return EngineSettings(
        data_dir=_resolve_data_dir(saved),
        exchange_rate=rate,
        reporting_currency=str(saved.get("reporting_currency", DEFAULT_REPORTING_CURRENCY)).upper(),
        max_workers=int(os.getenv("NETWORTH_MAX_WORKERS") or saved.get("max_workers", DEFAULT_MAX_WORKERS)),
        investment_trades_move_cash=_parse_bool(move_cash),
    )


def save_settings(settings: EngineSettings, config_file: Optional[Path] = None, **changes: Any) -> EngineSettings:
    """Apply ``changes`` and persist them for the next startup."""
    updated = replace(settings, **changes)
    target = config_file or CONFIG_FILE
    data = _read_config_file(target)
    data.update({
        "data_dir": str(updated.data_dir),
        "exchange_rate": updated.exchange_rate,
        "reporting_currency": updated.reporting_currency,
        "max_workers": updated.max_workers,
        "investment_trades_move_cash": updated.investment_trades_move_cash,
    })
    target.write_text(json.dumps(data, indent=2))
    return updated
