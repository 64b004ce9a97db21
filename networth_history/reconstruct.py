from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Sequence

from .config import DEFAULT_REPORTING_CURRENCY
from .currency import Number, to_decimal, to_reporting_currency, validate_rate
from .ledger import after, on_day
from .models import Account, Investment, LedgerTransaction, TransactionType

ZERO = Decimal("0")

INCOME_TYPES = (TransactionType.income, TransactionType.investment_sell)
EXPENSE_TYPES = (TransactionType.expense, TransactionType.investment_buy)


@dataclass(frozen=True)
class DailySnapshotData:
    """One day's aggregate, in the reporting currency except ``account_balances``."""
    snapshot_date: date
    account_balances: Dict[str, Decimal] = field(default_factory=dict)  # native currency
    total_accounts: Decimal = ZERO
    total_investments: Decimal = ZERO
    net_worth: Decimal = ZERO
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    exchange_rate: Decimal = Decimal("1")


def balance_effect(tx: LedgerTransaction, account_id, investment_trades_move_cash: bool = True) -> Decimal:
    """Signed change ``tx`` makes to the balance of ``account_id`` when posted."""
    amount = to_decimal(tx.amount)
    kind = tx.transaction_type
    delta = ZERO
    if tx.account_id == account_id:
        if kind == TransactionType.income:
            delta += amount
        elif kind in (TransactionType.expense, TransactionType.transfer):
            delta -= amount
        elif investment_trades_move_cash and kind == TransactionType.investment_buy:
            delta -= amount
        elif investment_trades_move_cash and kind == TransactionType.investment_sell:
            delta += amount
    if tx.to_account_id == account_id and kind == TransactionType.transfer:
        delta += amount
    return delta


def reconstruct_balance(account: Account, day: date, ledger: Iterable[LedgerTransaction],
                        investment_trades_move_cash: bool = True) -> Decimal:
    """End-of-day balance of ``account`` on ``day``.

    Starts from the current balance and undoes every transaction dated after
    ``day``. Only the set of later transactions matters, so the ledger order is
    irrelevant. No clock check is made; callers reject future days.
    """
    balance = to_decimal(account.balance)
    for tx in after(ledger, day):
        balance -= balance_effect(tx, account.id, investment_trades_move_cash)
    return balance


def investment_value(investment: Investment) -> Decimal:
    # current valuation for every day; there is no price history
    price = investment.current_price
    if price is None or price == 0:
        price = investment.avg_purchase_price
    return to_decimal(investment.quantity) * to_decimal(price or 0)


def aggregate_day(day: date, accounts: Sequence[Account], investments: Sequence[Investment],
                  ledger: Sequence[LedgerTransaction], rate: Number, *,
                  reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
                  investment_trades_move_cash: bool = True) -> DailySnapshotData:
    rate = validate_rate(rate)

    balances: Dict[str, Decimal] = {}
    total_accounts = ZERO
    for acct in accounts:
        bal = reconstruct_balance(acct, day, ledger, investment_trades_move_cash)
        balances[str(acct.id)] = bal
        total_accounts += to_reporting_currency(bal, acct.currency, rate, reporting_currency)

    total_investments = ZERO
    for inv in investments:
        total_investments += to_reporting_currency(investment_value(inv), inv.currency, rate, reporting_currency)

    # sum natively per currency, convert once: exact, so ledger order cannot matter
    income_by_cur: Dict[str, Decimal] = {}
    expenses_by_cur: Dict[str, Decimal] = {}
    for tx in on_day(ledger, day):
        cur = (tx.currency or reporting_currency).upper()
        if tx.transaction_type in INCOME_TYPES:
            income_by_cur[cur] = income_by_cur.get(cur, ZERO) + to_decimal(tx.amount)
        elif tx.transaction_type in EXPENSE_TYPES:
            expenses_by_cur[cur] = expenses_by_cur.get(cur, ZERO) + to_decimal(tx.amount)
        # transfers are internal movements
    income = sum((to_reporting_currency(v, c, rate, reporting_currency) for c, v in sorted(income_by_cur.items())), ZERO)
    expenses = sum((to_reporting_currency(v, c, rate, reporting_currency) for c, v in sorted(expenses_by_cur.items())), ZERO)

    return DailySnapshotData(
        snapshot_date=day,
        account_balances=balances,
        total_accounts=total_accounts,
        total_investments=total_investments,
        net_worth=total_accounts + total_investments,
        income=income,
        expenses=expenses,
        exchange_rate=rate,
    )
