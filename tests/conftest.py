"""Pytest configuration and fixtures."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from networth_history import db
from networth_history.config import EngineSettings
from networth_history.main import create_app
from networth_history.models import Account, Investment, LedgerTransaction, TransactionType
from networth_history.store import SQLSnapshotStore

TODAY = date(2024, 6, 30)


def days_ago(n, today=TODAY):
    return today - timedelta(days=n)


def make_account(id, balance, currency="EUR", owner_id="alice", name=None):
    return Account(id=id, owner_id=owner_id, name=name or f"acct-{id}", currency=currency, balance=balance)


def make_tx(id, kind, amount, day, account_id, to_account_id=None, currency="EUR", owner_id="alice"):
    return LedgerTransaction(
        id=id, owner_id=owner_id, transaction_type=TransactionType(kind), amount=amount,
        currency=currency, transaction_date=day, account_id=account_id, to_account_id=to_account_id,
    )


def make_investment(id, quantity, avg_purchase_price, current_price=None, currency="EUR", owner_id="alice"):
    return Investment(id=id, owner_id=owner_id, name=f"inv-{id}", currency=currency, quantity=quantity,
                      avg_purchase_price=avg_purchase_price, current_price=current_price)


@pytest.fixture
def memory_db():
    """Fresh in-memory database bound to the package-level engine."""
    db.init_memory_db()
    yield db
    db.dispose_db()


@pytest.fixture
def store(memory_db):
    return SQLSnapshotStore(db.get_session)


@pytest.fixture
def settings(tmp_path):
    return EngineSettings(data_dir=tmp_path, exchange_rate=1.08, max_workers=2)


@pytest.fixture
def client(memory_db, settings, tmp_path):
    app = create_app(settings, config_file=tmp_path / "config.json", init_database=False)
    with TestClient(app) as c:
        yield c
