"""
cashbook_engines.daily_ledger -- Day-by-day cash ledger with running balance.

Responsibility:
    Turn income and expense records into one row per calendar day with
    per-channel net revenue, cash-impacting expense totals, VAT totals and a
    cumulative running balance.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Never reads the clock.

Invariants enforced:
    - One row per calendar day in the inclusive range, zero-filled.
    - Cash impact: an expense moves cash today iff it is not a SUPPLIER
      expense, or it is a SUPPLIER expense with ``paid_now``.  A credit
      purchase is a liability, not a cash outflow; it reaches the ledger
      when the SUPPLIER_PAYMENT that settles it is recorded.
    - VAT is a reporting total and accumulates for every expense,
      cash-impacting or not.
    - Opening balance reconstruction uses the same cash-impact rule as the
      daily rows (``is_cash_impacting`` / ``expense_cash_amount``).

Failure modes:
    - None for well-formed input.  ``date_from > date_to`` yields no rows.
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from cashbook_engines.tracer import traced_engine
from cashbook_kernel.domain.records import (
    Expense,
    ExpenseType,
    Income,
    IncomeChannel,
    calendar_day,
)
from cashbook_kernel.domain.values import ZERO, to_decimal
from cashbook_kernel.logging_config import get_logger

logger = get_logger("engines.daily_ledger")


@dataclass(frozen=True)
class LedgerRow:
    """One calendar day of the cash ledger."""

    date: date
    income_local_net: Decimal
    income_delivery_net: Decimal
    income_total_net: Decimal
    delivery_fee_total: Decimal
    expenses_cash_total: Decimal
    vat_total: Decimal
    running_balance: Decimal

    @property
    def daily_net_change(self) -> Decimal:
        return self.income_total_net - self.expenses_cash_total


@dataclass(frozen=True)
class LedgerSummary:
    """Period totals over a sequence of ledger rows."""

    opening_balance: Decimal
    income_local_net: Decimal
    income_delivery_net: Decimal
    income_total_net: Decimal
    delivery_fee_total: Decimal
    expenses_cash_total: Decimal
    vat_total: Decimal
    closing_balance: Decimal
    day_count: int

    @property
    def net_change(self) -> Decimal:
        return self.closing_balance - self.opening_balance


def is_cash_impacting(expense: Expense) -> bool:
    """True if the expense reduces the cash balance on its own date."""
    return expense.type != ExpenseType.SUPPLIER or expense.paid_now


def expense_cash_amount(expense: Expense) -> Decimal:
    """Cash leaving the business for an expense, ignoring whether it is paid yet.

    Salary carries employer contributions on top of the gross amount.
    """
    if expense.type == ExpenseType.SALARY:
        return expense.gross_amount + expense.contributions_amount
    return expense.gross_amount


def iter_days(date_from: date, date_to: date) -> Iterable[date]:
    """Every calendar day from ``date_from`` to ``date_to`` inclusive."""
    day = date_from
    while day <= date_to:
        yield day
        day += timedelta(days=1)


@traced_engine("daily_ledger", "1.0", fingerprint_fields=("starting_balance", "date_from", "date_to"))
def build_daily_ledger(
    starting_balance: Decimal,
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    date_from: date,
    date_to: date,
) -> list[LedgerRow]:
    """
    Build the day-by-day cash ledger.

    Records are bucketed by their own calendar day; records falling outside
    ``[date_from, date_to]`` do not appear and do not move the balance.

    Args:
        starting_balance: Balance before the first day of the range.
        incomes: Income records.
        expenses: Expense records.
        date_from: First day (inclusive).
        date_to: Last day (inclusive).

    Returns:
        One LedgerRow per day, in date order.
    """
    t0 = time.monotonic()
    logger.info("daily_ledger_started", extra={
        "starting_balance": str(starting_balance),
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "income_count": len(incomes),
        "expense_count": len(expenses),
    })

    if date_from > date_to:
        logger.warning("daily_ledger_empty_range", extra={
            "date_from": date_from.isoformat(),
            "date_to": date_to.isoformat(),
        })
        return []

    incomes_by_day: dict[date, list[Income]] = defaultdict(list)
    for income in incomes:
        incomes_by_day[calendar_day(income.date)].append(income)

    expenses_by_day: dict[date, list[Expense]] = defaultdict(list)
    for expense in expenses:
        expenses_by_day[calendar_day(expense.date)].append(expense)

    running = to_decimal(starting_balance)
    rows: list[LedgerRow] = []

    for day in iter_days(date_from, date_to):
        income_local_net = ZERO
        income_delivery_net = ZERO
        delivery_fee_total = ZERO
        for income in incomes_by_day.get(day, ()):
            if income.channel == IncomeChannel.LOCAL:
                income_local_net += income.net_amount
            else:
                income_delivery_net += income.net_amount
            delivery_fee_total += income.fee_amount

        income_total_net = income_local_net + income_delivery_net

        expenses_cash_total = ZERO
        vat_total = ZERO
        for expense in expenses_by_day.get(day, ()):
            vat_total += expense.vat_amount
            if is_cash_impacting(expense):
                expenses_cash_total += expense_cash_amount(expense)

        running += income_total_net - expenses_cash_total

        rows.append(LedgerRow(
            date=day,
            income_local_net=income_local_net,
            income_delivery_net=income_delivery_net,
            income_total_net=income_total_net,
            delivery_fee_total=delivery_fee_total,
            expenses_cash_total=expenses_cash_total,
            vat_total=vat_total,
            running_balance=running,
        ))

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("daily_ledger_completed", extra={
        "row_count": len(rows),
        "closing_balance": str(running),
        "duration_ms": duration_ms,
    })
    return rows


def reconstruct_opening_balance(
    starting_balance: Decimal,
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    before: date,
) -> Decimal:
    """
    Balance at the start of ``before``.

    Replays every income net amount and every cash-impacting expense dated
    strictly before ``before`` on top of the account's absolute starting
    balance.
    """
    balance = to_decimal(starting_balance)
    replayed = 0
    for income in incomes:
        if calendar_day(income.date) < before:
            balance += income.net_amount
            replayed += 1
    for expense in expenses:
        if calendar_day(expense.date) < before and is_cash_impacting(expense):
            balance -= expense_cash_amount(expense)
            replayed += 1

    logger.debug("opening_balance_reconstructed", extra={
        "before": before.isoformat(),
        "replayed_count": replayed,
        "opening_balance": str(balance),
    })
    return balance


def build_range_ledger(
    starting_balance: Decimal,
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    date_from: date,
    date_to: date,
) -> tuple[Decimal, list[LedgerRow]]:
    """
    Ledger for a sub-range of the account's history.

    ``incomes`` and ``expenses`` must cover the complete history up to
    ``date_to``; records before ``date_from`` are folded into the opening
    balance and records after ``date_to`` are ignored.

    Returns:
        ``(opening_balance, rows)``.
    """
    opening = reconstruct_opening_balance(starting_balance, incomes, expenses, date_from)
    in_range_incomes = [i for i in incomes if date_from <= calendar_day(i.date) <= date_to]
    in_range_expenses = [e for e in expenses if date_from <= calendar_day(e.date) <= date_to]
    rows = build_daily_ledger(opening, in_range_incomes, in_range_expenses, date_from, date_to)
    return opening, rows


def summarize_ledger(rows: Sequence[LedgerRow], opening_balance: Decimal) -> LedgerSummary:
    """Period totals for the dashboard header."""
    income_local = sum((r.income_local_net for r in rows), ZERO)
    income_delivery = sum((r.income_delivery_net for r in rows), ZERO)
    return LedgerSummary(
        opening_balance=opening_balance,
        income_local_net=income_local,
        income_delivery_net=income_delivery,
        income_total_net=income_local + income_delivery,
        delivery_fee_total=sum((r.delivery_fee_total for r in rows), ZERO),
        expenses_cash_total=sum((r.expenses_cash_total for r in rows), ZERO),
        vat_total=sum((r.vat_total for r in rows), ZERO),
        closing_balance=rows[-1].running_balance if rows else opening_balance,
        day_count=len(rows),
    )
