"""
cashbook_services.bookkeeping_service -- Create, edit and delete stored records.

Responsibility:
    The write side of the cashbook: accounts, settings, suppliers, incomes,
    expenses and supplier transactions.  Every create and every edit runs the
    record's raw inputs through ``cashbook_engines.entries`` so derived
    fields (fee, net, VAT, paid_now) are always recomputed together.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Takes a caller-owned Session; flushes so new ids are available but never
    commits.  Wrap calls in ``session_scope()`` to commit.

Invariants enforced:
    - An edit never updates one derived field without the others.
    - Marking a SUPPLIER expense paid is an edit: the record is recomputed
      and its cash impact moves to its own date.
    - Supplier transaction ``created_at`` comes from the injected clock, so
      same-day ordering in the supplier ledger is reproducible in tests.
    - Every query and write is scoped by ``account_id``.

Failure modes:
    - AccountNotFoundError, SupplierNotFoundError, RecordNotFoundError.
    - SupplierInUseError when deleting a supplier that expenses reference.
    - ValueError from the entry engines (negative amount, supplier missing
      on a supplier-typed expense).
"""

from __future__ import annotations

from datetime import date, datetime, time as day_time, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from cashbook_config import CashbookConfig
from cashbook_engines.entries import (
    prepare_expense,
    prepare_income,
    prepare_supplier_transaction,
)
from cashbook_kernel.domain.clock import Clock, SystemClock
from cashbook_kernel.domain.currency import validate_currency
from cashbook_kernel.domain.records import (
    AccountSettings,
    Expense,
    ExpenseType,
    Income,
    IncomeChannel,
    Supplier,
    SupplierCategory,
    SupplierTransaction,
    SupplierTransactionType,
    calendar_day,
)
from cashbook_kernel.domain.values import ZERO, to_decimal
from cashbook_kernel.exceptions import SupplierInUseError
from cashbook_kernel.logging_config import LogContext, get_logger
from cashbook_kernel.models.account import Account, AccountSettingsRecord
from cashbook_kernel.models.expense import ExpenseRecord
from cashbook_kernel.models.revenue import RevenueRecord
from cashbook_kernel.models.supplier import SupplierRecord, SupplierTransactionRecord
from cashbook_kernel.selectors.cashbook_selector import (
    CashbookSelector,
    expense_from_record,
    income_from_record,
    supplier_from_record,
    supplier_transaction_from_record,
)

logger = get_logger("services.bookkeeping")


class _Unchanged:
    def __repr__(self) -> str:
        return "UNCHANGED"


# Marks an edit argument the caller did not supply
UNCHANGED: Any = _Unchanged()


def to_storage_time(value: datetime) -> datetime:
    """Naive UTC datetime as stored in the database."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return to_storage_time(value)
    return datetime.combine(value, day_time.min)


def default_settings(config: CashbookConfig) -> AccountSettings:
    """Settings an account uses until it saves its own."""
    defaults = config.defaults
    return AccountSettings(
        starting_balance=defaults.starting_balance,
        default_vat_percent=defaults.default_vat_percent,
        delivery_fee_percent=defaults.delivery_fee_percent,
        currency=defaults.currency,
    )


class BookkeepingService:
    """
    Writes incomes, expenses, suppliers and supplier transactions.

    Contract:
        Each create/update method returns the stored record as a frozen
        domain record, with its database id.

    Non-goals:
        - Does NOT commit.  The caller owns the transaction.
        - Does NOT store receipts or any file attachments.
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

    # =========================================================================
    # Accounts and settings
    # =========================================================================

    def create_account(self, name: str, slug: str) -> int:
        """Create an account and return its id."""
        account = Account(name=name, slug=slug)
        self.session.add(account)
        self.session.flush()
        logger.info("account_created", extra={"account_id": account.id, "slug": slug})
        return account.id

    def settings(self, account_id: int) -> AccountSettings:
        return self.selector.settings(account_id, default_settings(self.config))

    def update_settings(
        self,
        account_id: int,
        starting_balance: Decimal | str = UNCHANGED,
        default_vat_percent: Decimal | str = UNCHANGED,
        delivery_fee_percent: Decimal | str = UNCHANGED,
        currency: str = UNCHANGED,
    ) -> AccountSettings:
        """
        Update an account's settings, creating the row from the configured
        defaults on first save.

        Existing records keep the rates they were entered with; only new
        entries and edits pick up changed defaults.
        """
        current = self.settings(account_id)
        row = self.selector.settings_record(account_id)
        if row is None:
            row = AccountSettingsRecord(account_id=account_id)
            self.session.add(row)

        row.starting_balance = (
            current.starting_balance if starting_balance is UNCHANGED else to_decimal(starting_balance)
        )
        row.default_vat_percent = (
            current.default_vat_percent if default_vat_percent is UNCHANGED
            else _non_negative("default_vat_percent", default_vat_percent)
        )
        row.delivery_fee_percent = (
            current.delivery_fee_percent if delivery_fee_percent is UNCHANGED
            else _non_negative("delivery_fee_percent", delivery_fee_percent)
        )
        row.currency = current.currency if currency is UNCHANGED else validate_currency(currency)
        self.session.flush()

        updated = self.selector.settings(account_id, current)
        with LogContext.bind(account_id=account_id):
            logger.info("settings_updated", extra={
                "starting_balance": str(updated.starting_balance),
                "default_vat_percent": str(updated.default_vat_percent),
                "delivery_fee_percent": str(updated.delivery_fee_percent),
                "currency": updated.currency,
            })
        return updated

    # =========================================================================
    # Suppliers
    # =========================================================================

    def create_supplier(
        self,
        account_id: int,
        name: str | None = None,
        category: SupplierCategory | str = SupplierCategory.OTHER,
        vat_percent: Decimal | str | None = None,
        opening_balance: Decimal | str = ZERO,
        number: int | None = None,
    ) -> Supplier:
        """
        Create a supplier.  ``number`` defaults to the next free number in
        the account.  ``created_at`` comes from the clock and dates the
        opening balance entry of a supplier with no transactions.
        """
        self.selector.require_account(account_id)
        row = SupplierRecord(
            account_id=account_id,
            number=number if number is not None else self.selector.next_supplier_number(account_id),
            name=(name or "").strip() or None,
            category=SupplierCategory(category).value,
            vat_percent=_non_negative("vat_percent", vat_percent) if vat_percent is not None else None,
            opening_balance=to_decimal(opening_balance),
            created_at=to_storage_time(self.clock.now()),
        )
        self.session.add(row)
        self.session.flush()

        with LogContext.bind(account_id=account_id, supplier_id=row.id):
            logger.info("supplier_created", extra={
                "number": row.number,
                "category": row.category,
                "opening_balance": str(row.opening_balance),
            })
        return supplier_from_record(row)

    def update_supplier(
        self,
        account_id: int,
        supplier_id: int,
        name: str | None = UNCHANGED,
        category: SupplierCategory | str = UNCHANGED,
        vat_percent: Decimal | str | None = UNCHANGED,
        opening_balance: Decimal | str = UNCHANGED,
        number: int = UNCHANGED,
    ) -> Supplier:
        """Edit a supplier.  Stored transaction rates are not rewritten."""
        row = self.selector.supplier_record(account_id, supplier_id)
        if name is not UNCHANGED:
            row.name = (name or "").strip() or None
        if category is not UNCHANGED:
            row.category = SupplierCategory(category).value
        if vat_percent is not UNCHANGED:
            row.vat_percent = _non_negative("vat_percent", vat_percent) if vat_percent is not None else None
        if opening_balance is not UNCHANGED:
            row.opening_balance = to_decimal(opening_balance)
        if number is not UNCHANGED:
            row.number = number
        self.session.flush()

        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            logger.info("supplier_updated", extra={"number": row.number})
        return supplier_from_record(row)

    def delete_supplier(self, account_id: int, supplier_id: int) -> None:
        """
        Delete a supplier and its ledger transactions.

        Raises:
            SupplierInUseError: if expenses still reference the supplier.
        """
        row = self.selector.supplier_record(account_id, supplier_id)
        in_use = self.selector.count_expenses_for_supplier(account_id, supplier_id)
        if in_use:
            raise SupplierInUseError(supplier_id, in_use)

        self.session.execute(
            delete(SupplierTransactionRecord).where(
                SupplierTransactionRecord.account_id == account_id,
                SupplierTransactionRecord.supplier_id == supplier_id,
            )
        )
        self.session.delete(row)
        self.session.flush()

        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            logger.info("supplier_deleted")

    # =========================================================================
    # Incomes
    # =========================================================================

    def create_income(
        self,
        account_id: int,
        date: date,
        amount: Decimal | str,
        channel: IncomeChannel | str = IncomeChannel.LOCAL,
        fee_percent: Decimal | str | None = None,
        note: str = "",
    ) -> Income:
        """Record a day's revenue.  DELIVERY without a fee uses the account's."""
        settings = self.settings(account_id)
        income = prepare_income(
            calendar_day(date), amount, channel, settings,
            fee_percent=fee_percent, note=note,
        )
        row = RevenueRecord(account_id=account_id)
        _apply_income(row, income)
        self.session.add(row)
        self.session.flush()

        with LogContext.bind(account_id=account_id):
            logger.info("income_created", extra={
                "income_id": row.id,
                "channel": income.channel.value,
                "amount": str(income.amount),
                "net_amount": str(income.net_amount),
            })
        return income_from_record(row)

    def update_income(
        self,
        account_id: int,
        income_id: int,
        date: date = UNCHANGED,
        amount: Decimal | str = UNCHANGED,
        channel: IncomeChannel | str = UNCHANGED,
        fee_percent: Decimal | str | None = UNCHANGED,
        note: str = UNCHANGED,
    ) -> Income:
        """
        Edit an income, recomputing fee and net together.

        A DELIVERY income keeps its applied fee unless a new one is given
        or the channel changes.
        """
        row = self.selector.revenue_record(account_id, income_id)
        current = income_from_record(row)
        new_channel = current.channel if channel is UNCHANGED else IncomeChannel(channel)

        if fee_percent is UNCHANGED:
            fee_percent = current.fee_percent_applied if new_channel == current.channel else None

        income = prepare_income(
            current.date if date is UNCHANGED else calendar_day(date),
            current.amount if amount is UNCHANGED else amount,
            new_channel,
            self.settings(account_id),
            fee_percent=fee_percent,
            note=current.note if note is UNCHANGED else note,
        )
        _apply_income(row, income)
        self.session.flush()

        with LogContext.bind(account_id=account_id):
            logger.info("income_updated", extra={
                "income_id": income_id,
                "net_amount": str(income.net_amount),
            })
        return income_from_record(row)

    def delete_income(self, account_id: int, income_id: int) -> None:
        row = self.selector.revenue_record(account_id, income_id)
        self.session.delete(row)
        self.session.flush()
        with LogContext.bind(account_id=account_id):
            logger.info("income_deleted", extra={"income_id": income_id})

    # =========================================================================
    # Expenses
    # =========================================================================

    def create_expense(
        self,
        account_id: int,
        date: date,
        gross_amount: Decimal | str,
        expense_type: ExpenseType | str,
        vat_percent: Decimal | str | None = None,
        paid_now: bool = False,
        contributions_amount: Decimal | str = ZERO,
        supplier_id: int | None = None,
        note: str = "",
    ) -> Expense:
        """
        Record an expense.

        Without an explicit ``vat_percent`` the supplier's default rate
        applies, then the account default (SUPPLIER and OTHER only).
        """
        settings = self.settings(account_id)
        supplier_vat = self._supplier_vat_percent(account_id, supplier_id)
        expense = prepare_expense(
            calendar_day(date), gross_amount, expense_type, settings,
            supplier_vat_percent=supplier_vat,
            vat_percent=vat_percent,
            paid_now=paid_now,
            contributions_amount=contributions_amount,
            supplier_id=supplier_id,
            note=note,
        )
        row = ExpenseRecord(account_id=account_id)
        _apply_expense(row, expense)
        self.session.add(row)
        self.session.flush()

        with LogContext.bind(account_id=account_id):
            logger.info("expense_created", extra={
                "expense_id": row.id,
                "expense_type": expense.type.value,
                "gross_amount": str(expense.gross_amount),
                "vat_amount": str(expense.vat_amount),
                "paid_now": expense.paid_now,
            })
        return expense_from_record(row)

    def update_expense(
        self,
        account_id: int,
        expense_id: int,
        date: date = UNCHANGED,
        gross_amount: Decimal | str = UNCHANGED,
        expense_type: ExpenseType | str = UNCHANGED,
        vat_percent: Decimal | str | None = UNCHANGED,
        paid_now: bool = UNCHANGED,
        contributions_amount: Decimal | str = UNCHANGED,
        supplier_id: int | None = UNCHANGED,
        note: str = UNCHANGED,
    ) -> Expense:
        """
        Edit an expense, recomputing VAT, net and payment fields together.

        The stored VAT rate is kept unless a new one is given or the type
        or supplier changes, in which case the rate is resolved again.
        """
        row = self.selector.expense_record(account_id, expense_id)
        current = expense_from_record(row)

        new_type = current.type if expense_type is UNCHANGED else ExpenseType(expense_type)
        new_supplier = current.supplier_id if supplier_id is UNCHANGED else supplier_id

        if vat_percent is UNCHANGED:
            same_basis = new_type == current.type and new_supplier == current.supplier_id
            vat_percent = current.vat_percent if same_basis else None

        expense = prepare_expense(
            current.date if date is UNCHANGED else calendar_day(date),
            current.gross_amount if gross_amount is UNCHANGED else gross_amount,
            new_type,
            self.settings(account_id),
            supplier_vat_percent=self._supplier_vat_percent(account_id, new_supplier),
            vat_percent=vat_percent,
            paid_now=current.paid_now if paid_now is UNCHANGED else paid_now,
            contributions_amount=(
                current.contributions_amount if contributions_amount is UNCHANGED
                else contributions_amount
            ),
            supplier_id=new_supplier,
            note=current.note if note is UNCHANGED else note,
        )
        _apply_expense(row, expense)
        self.session.flush()

        with LogContext.bind(account_id=account_id):
            logger.info("expense_updated", extra={
                "expense_id": expense_id,
                "expense_type": expense.type.value,
                "paid_now": expense.paid_now,
                "was_paid_now": current.paid_now,
            })
        return expense_from_record(row)

    def mark_expense_paid(self, account_id: int, expense_id: int, paid: bool = True) -> Expense:
        """Toggle ``paid_now`` on a SUPPLIER expense."""
        return self.update_expense(account_id, expense_id, paid_now=paid)

    def delete_expense(self, account_id: int, expense_id: int) -> None:
        row = self.selector.expense_record(account_id, expense_id)
        self.session.delete(row)
        self.session.flush()
        with LogContext.bind(account_id=account_id):
            logger.info("expense_deleted", extra={"expense_id": expense_id})

    def _supplier_vat_percent(self, account_id: int, supplier_id: int | None) -> Decimal | None:
        if supplier_id is None:
            return None
        return self.selector.supplier(account_id, supplier_id).vat_percent

    # =========================================================================
    # Supplier transactions
    # =========================================================================

    def create_supplier_transaction(
        self,
        account_id: int,
        supplier_id: int,
        transaction_type: SupplierTransactionType | str,
        amount: Decimal | str,
        date: date | datetime | None = None,
        vat_rate: Decimal | str | None = None,
        description: str = "",
        invoice_number: str | None = None,
    ) -> SupplierTransaction:
        """
        Add an invoice, payment or correction to a supplier's ledger.

        The VAT rate is resolved and stored now: explicit -> supplier
        default -> account default -> legacy fallback.  ``date`` defaults to
        the current time.
        """
        supplier = self.selector.supplier(account_id, supplier_id)
        settings = self.settings(account_id)
        now = to_storage_time(self.clock.now())

        transaction = prepare_supplier_transaction(
            id=0,
            date=_as_datetime(date) if date is not None else now,
            created_at=now,
            transaction_type=transaction_type,
            amount=amount,
            legacy_vat_percent=self.config.ledger.legacy_vat_percent,
            vat_rate=vat_rate,
            supplier_vat_percent=supplier.vat_percent,
            account_vat_percent=settings.default_vat_percent,
            description=description,
            invoice_number=invoice_number,
        )
        row = SupplierTransactionRecord(account_id=account_id, supplier_id=supplier_id)
        _apply_supplier_transaction(row, transaction)
        row.created_at = transaction.created_at
        self.session.add(row)
        self.session.flush()

        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            logger.info("supplier_transaction_created", extra={
                "transaction_id": row.id,
                "transaction_type": transaction.type.value,
                "amount": str(transaction.amount),
                "vat_rate": str(transaction.vat_rate) if transaction.vat_rate is not None else None,
            })
        return supplier_transaction_from_record(row)

    def update_supplier_transaction(
        self,
        account_id: int,
        transaction_id: int,
        transaction_type: SupplierTransactionType | str = UNCHANGED,
        amount: Decimal | str = UNCHANGED,
        date: date | datetime = UNCHANGED,
        vat_rate: Decimal | str | None = UNCHANGED,
        description: str = UNCHANGED,
        invoice_number: str | None = UNCHANGED,
    ) -> SupplierTransaction:
        """Edit a supplier transaction.  ``created_at`` never changes."""
        row = self.selector.supplier_transaction_record(account_id, transaction_id)
        current = supplier_transaction_from_record(row)
        supplier = self.selector.supplier(account_id, row.supplier_id)
        settings = self.settings(account_id)

        new_type = current.type if transaction_type is UNCHANGED else SupplierTransactionType(transaction_type)
        if vat_rate is UNCHANGED:
            vat_rate = current.vat_rate if new_type == current.type else None

        transaction = prepare_supplier_transaction(
            id=current.id,
            date=current.date if date is UNCHANGED else _as_datetime(date),
            created_at=current.created_at,
            transaction_type=new_type,
            amount=current.amount if amount is UNCHANGED else amount,
            legacy_vat_percent=self.config.ledger.legacy_vat_percent,
            vat_rate=vat_rate,
            supplier_vat_percent=supplier.vat_percent,
            account_vat_percent=settings.default_vat_percent,
            description=current.description if description is UNCHANGED else description,
            invoice_number=current.invoice_number if invoice_number is UNCHANGED else invoice_number,
        )
        _apply_supplier_transaction(row, transaction)
        self.session.flush()

        with LogContext.bind(account_id=account_id, supplier_id=row.supplier_id):
            logger.info("supplier_transaction_updated", extra={
                "transaction_id": transaction_id,
                "transaction_type": transaction.type.value,
            })
        return supplier_transaction_from_record(row)

    def delete_supplier_transaction(self, account_id: int, transaction_id: int) -> None:
        row = self.selector.supplier_transaction_record(account_id, transaction_id)
        supplier_id = row.supplier_id
        self.session.delete(row)
        self.session.flush()
        with LogContext.bind(account_id=account_id, supplier_id=supplier_id):
            logger.info("supplier_transaction_deleted", extra={"transaction_id": transaction_id})


def _non_negative(name: str, value: Decimal | str) -> Decimal:
    result = to_decimal(value)
    if result < ZERO:
        raise ValueError(f"{name} cannot be negative: {result}")
    return result


def _apply_income(row: RevenueRecord, income: Income) -> None:
    row.date = calendar_day(income.date)
    row.amount = income.amount
    row.channel = income.channel.value
    row.fee_percent = income.fee_percent_applied
    row.fee_amount = income.fee_amount
    row.net_amount = income.net_amount
    row.note = income.note or None


def _apply_expense(row: ExpenseRecord, expense: Expense) -> None:
    row.date = calendar_day(expense.date)
    row.amount = expense.gross_amount
    row.net_amount = expense.net_amount
    row.vat_percent = expense.vat_percent
    row.vat_amount = expense.vat_amount
    row.contributions_amount = expense.contributions_amount
    row.type = expense.type.value
    row.supplier_id = expense.supplier_id
    row.paid_now = expense.paid_now
    row.note = expense.note or None


def _apply_supplier_transaction(row: SupplierTransactionRecord, transaction: SupplierTransaction) -> None:
    row.type = transaction.type.value
    row.amount = transaction.amount
    row.vat_rate = transaction.vat_rate
    row.description = transaction.description
    row.invoice_number = transaction.invoice_number
    row.date = transaction.date
