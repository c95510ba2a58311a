"""Tests for CashLedgerService: range defaults, carried-forward balances and the dashboard."""

from datetime import date
from decimal import Decimal

import pytest

from cashbook_kernel.exceptions import AccountNotFoundError, InvalidDateRangeError
from cashbook_services.ledger_service import CashLedgerService


@pytest.fixture
def ledgers(session, config, clock):
    return CashLedgerService(session, config, clock)


@pytest.fixture
def history(book, account_id):
    """Start 100; +200 and -50 on March 1st, +90 on March 2nd, +1000 on March 20th."""
    book.update_settings(account_id, starting_balance="100")
    supplier = book.create_supplier(account_id)
    book.create_income(account_id, date(2024, 3, 1), "200")
    book.create_expense(
        account_id, date(2024, 3, 1), "50", "SUPPLIER_PAYMENT", supplier_id=supplier.id,
    )
    book.create_expense(
        account_id, date(2024, 3, 1), "70", "SUPPLIER", supplier_id=supplier.id, paid_now=False,
    )
    book.create_income(account_id, date(2024, 3, 2), "90")
    book.create_income(account_id, date(2024, 3, 20), "1000")
    return supplier


class TestResolveRange:

    def test_defaults_to_last_thirty_days(self, ledgers):
        assert ledgers.resolve_range() == (date(2024, 2, 15), date(2024, 3, 15))

    def test_start_counts_back_from_explicit_end(self, ledgers):
        assert ledgers.resolve_range(date_to=date(2024, 1, 30)) == (date(2024, 1, 1), date(2024, 1, 30))

    def test_inverted_range_rejected(self, ledgers):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            ledgers.resolve_range(date(2024, 3, 5), date(2024, 3, 1))
        assert exc_info.value.code == "INVALID_DATE_RANGE"


class TestDailyLedger:

    def test_full_history_balances(self, ledgers, account_id, history):
        ledger = ledgers.daily_ledger(account_id, date(2024, 3, 1), date(2024, 3, 2))

        assert ledger.opening_balance == Decimal("100")
        assert [r.running_balance for r in ledger.rows] == [Decimal("250"), Decimal("340")]
        assert ledger.currency == "RSD"

    def test_sub_range_carries_balance_forward(self, ledgers, account_id, history):
        ledger = ledgers.daily_ledger(account_id, date(2024, 3, 2), date(2024, 3, 3))

        assert ledger.opening_balance == Decimal("250")
        assert [r.running_balance for r in ledger.rows] == [Decimal("340"), Decimal("340")]
        assert ledger.closing_balance == Decimal("340")

    def test_records_after_range_ignored(self, ledgers, account_id, history):
        ledger = ledgers.daily_ledger(account_id, date(2024, 3, 10), date(2024, 3, 15))

        assert ledger.closing_balance == Decimal("340")

    def test_paying_credit_purchase_moves_balance(self, ledgers, book, account_id, history):
        credit = [
            e for e in book.selector.expenses(account_id)
            if e.type.value == "SUPPLIER" and not e.paid_now
        ][0]
        book.mark_expense_paid(account_id, credit.id)

        ledger = ledgers.daily_ledger(account_id, date(2024, 3, 1), date(2024, 3, 2))

        assert [r.running_balance for r in ledger.rows] == [Decimal("180"), Decimal("270")]

    def test_unknown_account(self, ledgers):
        with pytest.raises(AccountNotFoundError):
            ledgers.daily_ledger(404)

    def test_logged(self, ledgers, account_id, history, captured_logs):
        ledgers.daily_ledger(account_id, date(2024, 3, 2), date(2024, 3, 3))

        built = [r for r in captured_logs() if r["message"] == "cash_ledger_built"][0]
        assert built["opening_balance"] == "250"
        assert built["account_id"] == str(account_id)


class TestDashboard:

    def test_today_row_and_summary(self, ledgers, account_id, history):
        dashboard = ledgers.dashboard(account_id)

        assert dashboard.ledger.date_to == date(2024, 3, 15)
        assert len(dashboard.ledger.rows) == 30
        assert dashboard.today is not None
        assert dashboard.today.date == date(2024, 3, 15)
        assert dashboard.summary.opening_balance == Decimal("100")
        assert dashboard.summary.income_total_net == Decimal("290")
        assert dashboard.summary.expenses_cash_total == Decimal("50")
        assert dashboard.summary.closing_balance == Decimal("340")

    def test_today_outside_range(self, ledgers, account_id):
        dashboard = ledgers.dashboard(account_id, date(2024, 1, 1), date(2024, 1, 7))

        assert dashboard.today is None
        assert dashboard.summary.day_count == 7
