"""
cashbook_services.ledger_service -- Cash ledger and dashboard for an account.

Responsibility:
    Resolve the requested date range (defaulting to the last
    ``default_range_days`` days ending today by the injected clock), fetch
    the account's complete history up to the end of the range, and hand it
    to ``build_range_ledger`` so the first row's balance already includes
    everything that happened before the range.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Reads only.

Invariants enforced:
    - The opening balance for a range is reconstructed from the account's
      absolute starting balance, never taken from a stored figure.
    - "Today" comes from the injected Clock, never from the system time
      directly.

Failure modes:
    - AccountNotFoundError if the account does not exist.
    - InvalidDateRangeError if an explicit range ends before it starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from cashbook_config import CashbookConfig
from cashbook_engines.daily_ledger import (
    LedgerRow,
    LedgerSummary,
    build_range_ledger,
    summarize_ledger,
)
from cashbook_kernel.domain.clock import Clock, SystemClock
from cashbook_kernel.exceptions import InvalidDateRangeError
from cashbook_kernel.logging_config import LogContext, get_logger
from cashbook_kernel.selectors.cashbook_selector import CashbookSelector
from cashbook_services.bookkeeping_service import default_settings

logger = get_logger("services.ledger")


@dataclass(frozen=True)
class CashLedger:
    """The day-by-day ledger for one account over one range."""

    account_id: int
    date_from: date
    date_to: date
    currency: str
    opening_balance: Decimal
    rows: tuple[LedgerRow, ...]

    @property
    def closing_balance(self) -> Decimal:
        return self.rows[-1].running_balance if self.rows else self.opening_balance


@dataclass(frozen=True)
class Dashboard:
    """Ledger plus the header figures shown above it."""

    ledger: CashLedger
    summary: LedgerSummary
    today: LedgerRow | None


class CashLedgerService:
    """
    Builds the cash ledger for an account.

    Contract:
        ``daily_ledger`` returns one row per day of the resolved range with
        the running balance carried in from the account's full history.
    """

    def __init__(
        self,
        session: Session,
        config: CashbookConfig,
        clock: Clock | None = None,
    ):
        self.session = session
        self.config = config
        self.clock = clock or SystemClock()
        self.selector = CashbookSelector(session)

    def resolve_range(
        self,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> tuple[date, date]:
        """
        Fill in missing range bounds.

        A missing end is today; a missing start is ``default_range_days``
        days back from the end, inclusive of both.

        Raises:
            InvalidDateRangeError: if the range ends before it starts.
        """
        span = timedelta(days=self.config.ledger.default_range_days - 1)
        if date_to is None:
            date_to = self.clock.today()
        if date_from is None:
            date_from = date_to - span
        if date_from > date_to:
            raise InvalidDateRangeError(date_from, date_to)
        return date_from, date_to

    def daily_ledger(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> CashLedger:
        """Ledger rows for the range, with the balance brought forward."""
        date_from, date_to = self.resolve_range(date_from, date_to)

        with LogContext.bind(account_id=account_id):
            settings = self.selector.settings(account_id, default_settings(self.config))
            incomes = self.selector.incomes(account_id, date_to=date_to)
            expenses = self.selector.expenses(account_id, date_to=date_to)

            opening, rows = build_range_ledger(
                settings.starting_balance, incomes, expenses, date_from, date_to,
            )
            ledger = CashLedger(
                account_id=account_id,
                date_from=date_from,
                date_to=date_to,
                currency=settings.currency,
                opening_balance=opening,
                rows=tuple(rows),
            )
            logger.info("cash_ledger_built", extra={
                "date_from": date_from.isoformat(),
                "date_to": date_to.isoformat(),
                "opening_balance": str(opening),
                "closing_balance": str(ledger.closing_balance),
            })
        return ledger

    def dashboard(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> Dashboard:
        """Ledger, period totals and today's row when today is in range."""
        ledger = self.daily_ledger(account_id, date_from, date_to)
        today = self.clock.today()
        today_row = next((r for r in ledger.rows if r.date == today), None)
        return Dashboard(
            ledger=ledger,
            summary=summarize_ledger(ledger.rows, ledger.opening_balance),
            today=today_row,
        )
