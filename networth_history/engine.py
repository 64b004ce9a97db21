"""Net-worth history reconstruction.

The store keeps only current balances and an editable ledger, so a day's
snapshot is rebuilt by walking back from "now": each account's balance on day
D is its current balance with every later transaction undone. ``recalculate``
rebuilds a whole range (oldest first) after a retroactive ledger edit;
``create_today`` refreshes just the latest snapshot.

Investments are valued at their *current* price on every reconstructed day.
There is no price history, so past net worth carries today's market value.
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Union

from .config import DEFAULT_MAX_WORKERS, DEFAULT_REPORTING_CURRENCY
from .currency import Number, validate_rate
from .errors import DataRetrievalError
from .ledger import on_day
from .reconstruct import DailySnapshotData, aggregate_day
from .sources import list_owners, load_accounts, load_investments, load_ledger

logger = logging.getLogger(__name__)

T_Source = Union[Sequence, Callable[[], Sequence]]


@dataclass
class RecalculationResult:
    owner_id: str
    from_date: date
    to_date: date
    written: List[date] = field(default_factory=list)
    failed: Dict[date, str] = field(default_factory=dict)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled

    def to_dict(self) -> dict:
        return {
            "owner_id": self.owner_id,
            "from_date": self.from_date.isoformat(),
            "to_date": self.to_date.isoformat(),
            "written": [d.isoformat() for d in self.written],
            "failed": {d.isoformat(): msg for d, msg in self.failed.items()},
            "cancelled": self.cancelled,
            "ok": self.ok,
        }


def date_range(start: date, end: date) -> List[date]:
    """Every calendar day from ``start`` to ``end`` inclusive; empty if start > end."""
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _load(source: T_Source, what: str) -> list:
    if callable(source):
        try:
            source = source()
        except DataRetrievalError:
            raise
        except Exception as e:
            raise DataRetrievalError(f"Could not load {what}: {e}") from e
    if source is None:
        raise DataRetrievalError(f"No {what} available")
    return list(source)


def recalculate(owner_id: str, from_date: date, accounts: T_Source, investments: T_Source,
                ledger: T_Source, rate: Number, store, today: date, *,
                max_workers: int = DEFAULT_MAX_WORKERS,
                cancel: Optional[threading.Event] = None,
                reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
                investment_trades_move_cash: bool = True) -> RecalculationResult:
    """Rebuild and upsert one snapshot per day from ``from_date`` to ``today``.

    ``accounts``, ``investments`` and ``ledger`` are sequences or zero-argument
    loaders. All three are loaded before anything is written. A failed upsert
    is recorded in ``result.failed`` and the run moves on to the next day.
    Setting ``cancel`` stops the run between days.
    """
    rate = validate_rate(rate)
    result = RecalculationResult(owner_id=owner_id, from_date=from_date, to_date=today)
    if from_date > today:
        logger.debug("Recalculation for %s starts in the future (%s); nothing to do", owner_id, from_date)
        return result

    accounts = _load(accounts, "accounts")
    investments = _load(investments, "investments")
    ledger = tuple(_load(ledger, "ledger"))

    days = date_range(from_date, today)
    logger.info("Recalculating %d snapshot(s) for %s from %s to %s", len(days), owner_id, from_date, today)

    def compute(day: date) -> DailySnapshotData:
        return aggregate_day(day, accounts, investments, ledger, rate,
                             reporting_currency=reporting_currency,
                             investment_trades_move_cash=investment_trades_move_cash)

    pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="snapshot")
    try:
        futures = [(day, pool.submit(compute, day)) for day in days]
        for day, fut in futures:
            if cancel is not None and cancel.is_set():
                result.cancelled = True
                logger.info("Recalculation for %s cancelled before %s (%d written)",
                            owner_id, day, len(result.written))
                break
            data = fut.result()
            try:
                store.upsert(owner_id, data)
            except Exception as e:
                logger.warning("Failed to write snapshot %s for %s: %s", day, owner_id, e)
                result.failed[day] = str(e)
            else:
                result.written.append(day)
    finally:
        pool.shutdown(wait=True, cancel_futures=True)

    if result.failed:
        logger.warning("Recalculation for %s finished with %d failed day(s)", owner_id, len(result.failed))
    return result


def create_today(owner_id: str, accounts: T_Source, investments: T_Source, todays_ledger: T_Source,
                 rate: Number, store, today: Optional[date] = None, *,
                 reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
                 investment_trades_move_cash: bool = True) -> DailySnapshotData:
    """Aggregate and upsert the snapshot for ``today`` only.

    Transactions dated after today cannot exist, so today's balances are the
    current balances; ``todays_ledger`` may still be the full ledger.
    """
    rate = validate_rate(rate)
    today = today or date.today()
    ledger = on_day(_load(todays_ledger, "ledger"), today)
    data = aggregate_day(today, _load(accounts, "accounts"), _load(investments, "investments"),
                         ledger, rate, reporting_currency=reporting_currency,
                         investment_trades_move_cash=investment_trades_move_cash)
    store.upsert(owner_id, data)
    return data


def snapshot_all_owners(session_factory, rate: Number, store, today: Optional[date] = None, *,
                        reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
                        investment_trades_move_cash: bool = True) -> Dict[str, Optional[str]]:
    """Scheduled daily capture: refresh today's snapshot for every owner.

    Returns owner -> None on success or the error message. One owner's failure
    does not stop the others.
    """
    rate = validate_rate(rate)
    today = today or date.today()
    with session_factory() as s:
        owners = list_owners(s)

    outcome: Dict[str, Optional[str]] = {}
    for owner_id in owners:
        try:
            with session_factory() as s:
                accounts = load_accounts(s, owner_id, active_only=True)
                investments = load_investments(s, owner_id)
                ledger = load_ledger(s, owner_id)
            create_today(owner_id, accounts, investments, ledger, rate, store, today,
                         reporting_currency=reporting_currency,
                         investment_trades_move_cash=investment_trades_move_cash)
        except Exception as e:
            logger.warning("Daily snapshot for %s failed: %s", owner_id, e)
            outcome[owner_id] = str(e)
        else:
            outcome[owner_id] = None
    logger.info("Daily snapshots for %s: %d owner(s), %d failed", today, len(owners),
                sum(1 for v in outcome.values() if v))
    return outcome
