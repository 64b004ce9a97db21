"""Date queries over an in-memory ledger.

Both helpers are pure: they never reorder or mutate the ledger they are given
and return a fresh tuple, so the same ledger can be queried once per day of a
reconstruction run.
"""
from __future__ import annotations
from datetime import date
from typing import Iterable, Tuple, Union

from .models import LedgerTransaction


def transaction_day(tx: LedgerTransaction) -> date:
    d: Union[date, str] = tx.transaction_date
    if isinstance(d, str):
        return date.fromisoformat(d[:10])
    return d


def on_day(ledger: Iterable[LedgerTransaction], day: date) -> Tuple[LedgerTransaction, ...]:
    """Transactions dated exactly ``day``."""
    return tuple(tx for tx in ledger if transaction_day(tx) == day)


def after(ledger: Iterable[LedgerTransaction], day: date) -> Tuple[LedgerTransaction, ...]:
    """Transactions dated strictly after ``day``."""
    return tuple(tx for tx in ledger if transaction_day(tx) > day)
