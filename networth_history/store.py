from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Callable, ContextManager, List, Optional

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from .models import DailySnapshot
from .reconstruct import DailySnapshotData

SessionFactory = Callable[[], ContextManager[Session]]

# columns an upsert never overwrites
_KEEP_ON_CONFLICT = ("owner_id", "snapshot_date", "created_at")


class SQLSnapshotStore:
    """Snapshot persistence keyed by (owner_id, snapshot_date).

    Every upsert is a single INSERT ... ON CONFLICT DO UPDATE in its own
    session, so each day written by a reconstruction run is durable on its
    own and concurrent writers of one key end up last-writer-wins.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def upsert(self, owner_id: str, data: DailySnapshotData) -> DailySnapshot:
        now = datetime.now(timezone.utc)
        values = {
            "owner_id": owner_id,
            "snapshot_date": data.snapshot_date,
            "account_balances": {k: float(v) for k, v in data.account_balances.items()},
            "total_accounts": float(data.total_accounts),
            "total_investments": float(data.total_investments),
            "net_worth": float(data.net_worth),
            "income": float(data.income),
            "expenses": float(data.expenses),
            "exchange_rate": float(data.exchange_rate),
            "created_at": now,
            "updated_at": now,
        }
        stmt = sqlite_insert(DailySnapshot).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["owner_id", "snapshot_date"],
            set_={k: stmt.excluded[k] for k in values if k not in _KEEP_ON_CONFLICT},
        )
        with self.session_factory() as s:
            s.exec(stmt)
            s.commit()
            return s.get(DailySnapshot, (owner_id, data.snapshot_date))

    def range(self, owner_id: str, start: Optional[date] = None, end: Optional[date] = None) -> List[DailySnapshot]:
        """Snapshots for ``owner_id`` between ``start`` and ``end`` inclusive, oldest first."""
        stmt = select(DailySnapshot).where(DailySnapshot.owner_id == owner_id)
        if start is not None:
            stmt = stmt.where(DailySnapshot.snapshot_date >= start)
        if end is not None:
            stmt = stmt.where(DailySnapshot.snapshot_date <= end)
        with self.session_factory() as s:
            return list(s.exec(stmt.order_by(DailySnapshot.snapshot_date)).all())
