import random
from decimal import Decimal

from conftest import TODAY, days_ago, make_account, make_investment, make_tx

from networth_history.reconstruct import aggregate_day, balance_effect, investment_value, reconstruct_balance


def _checking_scenario():
    checking = make_account(1, 1000, name="Checking")
    ledger = [
        make_tx(1, "expense", 200, days_ago(5), 1),
        make_tx(2, "income", 500, days_ago(2), 1),
    ]
    return checking, ledger


class TestReconstructBalance:
    def test_checking_scenario(self):
        checking, ledger = _checking_scenario()
        assert reconstruct_balance(checking, days_ago(6), ledger) == Decimal("700")
        assert reconstruct_balance(checking, days_ago(3), ledger) == Decimal("500")
        assert reconstruct_balance(checking, TODAY, ledger) == Decimal("1000")

    def test_transaction_day_itself_is_included(self):
        checking, ledger = _checking_scenario()
        # end-of-day: the expense on day -5 has already happened
        assert reconstruct_balance(checking, days_ago(5), ledger) == Decimal("500")

    def test_today_equals_current_balance(self):
        acct = make_account(1, "1234.56")
        ledger = [make_tx(i, "expense", i, days_ago(i), 1) for i in range(1, 10)]
        assert reconstruct_balance(acct, TODAY, ledger) == Decimal("1234.56")

    def test_conservation_with_income_and_expenses(self):
        acct = make_account(1, "812.40")
        ledger = [
            make_tx(1, "income", "120.10", days_ago(9), 1),
            make_tx(2, "expense", "33.30", days_ago(7), 1),
            make_tx(3, "income", "0.70", days_ago(4), 1),
            make_tx(4, "expense", "99.99", days_ago(1), 1),
        ]
        for n in range(0, 12):
            day = days_ago(n)
            later = [tx for tx in ledger if tx.transaction_date > day]
            income = sum((Decimal(str(tx.amount)) for tx in later if tx.transaction_type == "income"), Decimal(0))
            expense = sum((Decimal(str(tx.amount)) for tx in later if tx.transaction_type == "expense"), Decimal(0))
            assert reconstruct_balance(acct, day, ledger) + income - expense == Decimal("812.40")

    def test_transfer_symmetry(self):
        a = make_account(1, 300)
        b = make_account(2, 50)
        ledger = [make_tx(1, "transfer", 80, days_ago(4), 1, to_account_id=2)]
        after_t = days_ago(4)
        for n in (5, 6, 10):
            before_t = days_ago(n)
            assert reconstruct_balance(a, before_t, ledger) == reconstruct_balance(a, after_t, ledger) + 80
            assert reconstruct_balance(b, before_t, ledger) == reconstruct_balance(b, after_t, ledger) - 80

    def test_unrelated_accounts_are_untouched(self):
        other = make_account(3, 42)
        ledger = [make_tx(1, "transfer", 80, days_ago(4), 1, to_account_id=2),
                  make_tx(2, "income", 10, days_ago(2), 1)]
        assert reconstruct_balance(other, days_ago(10), ledger) == Decimal("42")

    def test_order_independence(self):
        acct = make_account(1, "1000.01")
        rng = random.Random(7)
        ledger = [make_tx(i, rng.choice(["income", "expense", "transfer"]), f"{i}.{i % 10}3",
                          days_ago(i % 15), 1, to_account_id=2) for i in range(1, 60)]
        expected = [reconstruct_balance(acct, days_ago(n), ledger) for n in range(16)]
        for _ in range(5):
            shuffled = list(ledger)
            rng.shuffle(shuffled)
            assert [reconstruct_balance(acct, days_ago(n), shuffled) for n in range(16)] == expected


class TestInvestmentTrades:
    def test_buy_and_sell_move_cash_by_default(self):
        acct = make_account(1, 1000)
        ledger = [make_tx(1, "investment_buy", 300, days_ago(3), 1),
                  make_tx(2, "investment_sell", 100, days_ago(1), 1)]
        assert reconstruct_balance(acct, days_ago(2), ledger) == Decimal("900")
        assert reconstruct_balance(acct, days_ago(4), ledger) == Decimal("1200")

    def test_cash_neutral_reading(self):
        acct = make_account(1, 1000)
        ledger = [make_tx(1, "investment_buy", 300, days_ago(3), 1),
                  make_tx(2, "investment_sell", 100, days_ago(1), 1)]
        assert reconstruct_balance(acct, days_ago(4), ledger, investment_trades_move_cash=False) == Decimal("1000")

    def test_effect_is_symmetric_with_income_and_expense(self):
        buy = make_tx(1, "investment_buy", 5, TODAY, 1)
        expense = make_tx(2, "expense", 5, TODAY, 1)
        sell = make_tx(3, "investment_sell", 5, TODAY, 1)
        income = make_tx(4, "income", 5, TODAY, 1)
        assert balance_effect(buy, 1) == balance_effect(expense, 1) == Decimal("-5")
        assert balance_effect(sell, 1) == balance_effect(income, 1) == Decimal("5")


class TestInvestmentValue:
    def test_uses_current_price(self):
        assert investment_value(make_investment(1, 10, 5, current_price=7)) == Decimal("70")

    def test_falls_back_to_average_purchase_price(self):
        assert investment_value(make_investment(1, 10, 5)) == Decimal("50")
        assert investment_value(make_investment(1, 10, 5, current_price=0)) == Decimal("50")


class TestAggregateDay:
    def test_totals_and_cashflow(self):
        eur = make_account(1, 1000)
        usd = make_account(2, 108, currency="USD")
        investments = [make_investment(1, 2, 100, current_price=150),
                       make_investment(2, 1, 216, currency="USD")]
        ledger = [
            make_tx(1, "income", 50, TODAY, 1),
            make_tx(2, "investment_sell", 54, TODAY, 2, currency="USD"),
            make_tx(3, "expense", 20, TODAY, 1),
            make_tx(4, "investment_buy", 10, TODAY, 1),
            make_tx(5, "transfer", 999, TODAY, 1, to_account_id=2),
        ]
        snap = aggregate_day(TODAY, [eur, usd], investments, ledger, "1.08")

        assert snap.snapshot_date == TODAY
        assert snap.account_balances == {"1": Decimal("1000"), "2": Decimal("108")}
        assert snap.total_accounts == Decimal("1100")
        assert snap.total_investments == Decimal("500")
        assert snap.net_worth == Decimal("1600")
        assert snap.income == Decimal("100")
        assert snap.expenses == Decimal("30")
        assert snap.exchange_rate == Decimal("1.08")

    def test_investments_use_current_value_on_past_days(self):
        investments = [make_investment(1, 3, 10, current_price=20)]
        old = aggregate_day(days_ago(100), [], investments, [], 1.08)
        new = aggregate_day(TODAY, [], investments, [], 1.08)
        assert old.total_investments == new.total_investments == Decimal("60")

    def test_historical_day(self):
        checking, ledger = _checking_scenario()
        snap = aggregate_day(days_ago(5), [checking], [], ledger, 1.08)
        assert snap.account_balances == {"1": Decimal("500")}
        assert snap.expenses == Decimal("200")
        assert snap.income == Decimal("0")

    def test_order_independence_of_snapshot(self):
        accounts = [make_account(1, "500.5"), make_account(2, "80", currency="USD")]
        ledger = [make_tx(i, ["income", "expense", "investment_buy"][i % 3], f"{i}.37", days_ago(i % 4),
                          1 + i % 2, currency=["EUR", "USD"][i % 2]) for i in range(1, 40)]
        expected = [aggregate_day(days_ago(n), accounts, [], ledger, "1.08") for n in range(5)]
        rng = random.Random(3)
        for _ in range(5):
            shuffled = list(ledger)
            rng.shuffle(shuffled)
            assert [aggregate_day(days_ago(n), accounts, [], shuffled, "1.08") for n in range(5)] == expected
