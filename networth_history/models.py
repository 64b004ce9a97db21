from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field

# --- Core tables ---


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"
    transfer = "transfer"
    investment_buy = "investment_buy"
    investment_sell = "investment_sell"


class Account(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    name: str
    currency: str = Field(min_length=3, max_length=3, default="EUR")
    balance: float = 0.0  # always "as of now"
    is_active: bool = Field(default=True)


class Investment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    name: str
    currency: str = Field(min_length=3, max_length=3, default="EUR")
    quantity: float = 0.0
    avg_purchase_price: float = 0.0
    current_price: Optional[float] = None
    is_active: bool = Field(default=True)


class LedgerTransaction(SQLModel, table=True):
    __tablename__ = "ledger_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: str = Field(index=True)
    transaction_type: TransactionType
    amount: float = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3, default="EUR")
    transaction_date: date = Field(index=True)
    account_id: Optional[int] = Field(default=None, foreign_key="account.id")
    to_account_id: Optional[int] = Field(default=None, foreign_key="account.id")  # transfer only
    investment_id: Optional[int] = Field(default=None, foreign_key="investment.id")  # buy/sell only
    note: Optional[str] = None


# --- Derived ---

class DailySnapshot(SQLModel, table=True):
    __tablename__ = "daily_snapshot"

    # one row per (owner, day); written only by the engine
    owner_id: str = Field(primary_key=True)
    snapshot_date: date = Field(primary_key=True)
    account_balances: Dict[str, float] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    total_accounts: float = 0.0
    total_investments: float = 0.0
    net_worth: float = 0.0
    income: float = 0.0
    expenses: float = 0.0
    exchange_rate: float
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
