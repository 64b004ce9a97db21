from __future__ import annotations
import logging
import threading
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class RecalculationQueue:
    """Pending "recalculate owner X from day D" commands.

    Requests for the same owner coalesce to the earliest day, so a burst of
    edits produces one run covering all of them.
    """

    def __init__(self):
        self._pending: Dict[str, date] = {}
        self._lock = threading.Lock()

    def request(self, owner_id: str, from_date: date) -> date:
        with self._lock:
            current = self._pending.get(owner_id)
            if current is None or from_date < current:
                self._pending[owner_id] = from_date
            return self._pending[owner_id]

    def pending(self) -> Dict[str, date]:
        with self._lock:
            return dict(self._pending)

    def drain(self, runner: Callable[[str, date], object]) -> List[Tuple[str, date, object]]:
        """Run ``runner(owner_id, from_date)`` for every pending owner."""
        with self._lock:
            batch = sorted(self._pending.items())
            self._pending.clear()
        done = []
        for owner_id, from_date in batch:
            logger.debug("Draining recalculation for %s from %s", owner_id, from_date)
            done.append((owner_id, from_date, runner(owner_id, from_date)))
        return done


def earliest_affected(old_date: Optional[date], new_date: Optional[date]) -> date:
    """Day from which snapshots are stale after a ledger create/edit/delete."""
    dates = [d for d in (old_date, new_date) if d is not None]
    if not dates:
        raise ValueError("a transaction change needs at least one date")
    return min(dates)


def transaction_changed(queue: RecalculationQueue, owner_id: str,
                        old_date: Optional[date], new_date: Optional[date] = None) -> date:
    """Create: (None, new). Edit: (old, new). Delete: (old, None)."""
    return queue.request(owner_id, earliest_affected(old_date, new_date))
