"""
Module: cashbook_kernel.selectors.cashbook_selector
Responsibility: Read-only queries over an account's stored records, returned
    as the frozen domain records the engines consume.
Architecture position: Kernel > Selectors.  May import from models/, domain/
    and selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Every query is scoped by ``account_id``.  A supplier or record id that
      belongs to another account is reported as not found.
    - Results are ordered deterministically (date, then id) so replaying a
      ledger over the same rows gives the same result.
    - No stored balances: every balance is computed by the engines from the
      returned rows.

Failure modes:
    - AccountNotFoundError, SupplierNotFoundError, RecordNotFoundError.
"""

from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from cashbook_kernel.domain.records import (
    AccountSettings,
    Expense,
    Income,
    Supplier,
    SupplierTransaction,
)
from cashbook_kernel.exceptions import (
    AccountNotFoundError,
    RecordNotFoundError,
    SupplierNotFoundError,
)
from cashbook_kernel.models.account import Account, AccountSettingsRecord
from cashbook_kernel.models.expense import ExpenseRecord
from cashbook_kernel.models.revenue import RevenueRecord
from cashbook_kernel.models.supplier import SupplierRecord, SupplierTransactionRecord
from cashbook_kernel.selectors.base import BaseSelector


def income_from_record(row: RevenueRecord) -> Income:
    return Income(
        id=row.id,
        date=row.date,
        amount=row.amount,
        channel=row.channel,
        net_amount=row.net_amount,
        fee_percent_applied=row.fee_percent,
        fee_amount=row.fee_amount,
        note=row.note or "",
    )


def expense_from_record(row: ExpenseRecord) -> Expense:
    return Expense(
        id=row.id,
        date=row.date,
        gross_amount=row.amount,
        type=row.type,
        net_amount=row.net_amount,
        vat_percent=row.vat_percent,
        vat_amount=row.vat_amount,
        contributions_amount=row.contributions_amount,
        paid_now=row.paid_now,
        supplier_id=row.supplier_id,
        note=row.note or "",
    )


def supplier_from_record(row: SupplierRecord) -> Supplier:
    return Supplier(
        id=row.id,
        number=row.number,
        category=row.category,
        name=row.name,
        vat_percent=row.vat_percent,
        opening_balance=row.opening_balance,
        created_at=row.created_at,
    )


def supplier_transaction_from_record(row: SupplierTransactionRecord) -> SupplierTransaction:
    return SupplierTransaction(
        id=row.id,
        date=row.date,
        created_at=row.created_at,
        type=row.type,
        amount=row.amount,
        vat_rate=row.vat_rate,
        description=row.description,
        invoice_number=row.invoice_number,
    )


def settings_from_record(row: AccountSettingsRecord) -> AccountSettings:
    return AccountSettings(
        starting_balance=row.starting_balance,
        default_vat_percent=row.default_vat_percent,
        delivery_fee_percent=row.delivery_fee_percent,
        currency=row.currency,
    )


class CashbookSelector(BaseSelector):
    """
    Selector for one account's incomes, expenses, suppliers and settings.

    Contract:
        Every method takes the account id explicitly.  Date bounds are
        inclusive calendar days; a bound of None leaves that side open.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Accounts and settings
    # ------------------------------------------------------------------

    def require_account(self, account_id: int) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def settings_record(self, account_id: int) -> AccountSettingsRecord | None:
        return self.session.scalars(
            select(AccountSettingsRecord).where(AccountSettingsRecord.account_id == account_id)
        ).one_or_none()

    def settings(self, account_id: int, defaults: AccountSettings) -> AccountSettings:
        """
        The account's settings, or ``defaults`` when none are stored yet.

        Raises:
            AccountNotFoundError: If the account does not exist.
        """
        self.require_account(account_id)
        row = self.settings_record(account_id)
        if row is None:
            return defaults
        return settings_from_record(row)

    # ------------------------------------------------------------------
    # Suppliers
    # ------------------------------------------------------------------

    def supplier_record(self, account_id: int, supplier_id: int) -> SupplierRecord:
        row = self.session.get(SupplierRecord, supplier_id)
        if row is None or row.account_id != account_id:
            raise SupplierNotFoundError(account_id, supplier_id)
        return row

    def supplier(self, account_id: int, supplier_id: int) -> Supplier:
        return supplier_from_record(self.supplier_record(account_id, supplier_id))

    def suppliers(self, account_id: int) -> list[Supplier]:
        """All suppliers of the account, ordered by number."""
        rows = self.session.scalars(
            select(SupplierRecord)
            .where(SupplierRecord.account_id == account_id)
            .order_by(SupplierRecord.number)
        ).all()
        return [supplier_from_record(r) for r in rows]

    def next_supplier_number(self, account_id: int) -> int:
        numbers = self.session.scalars(
            select(SupplierRecord.number).where(SupplierRecord.account_id == account_id)
        ).all()
        return max(numbers, default=0) + 1

    def supplier_transactions(self, account_id: int, supplier_id: int) -> list[SupplierTransaction]:
        """Every transaction of a supplier, in storage order."""
        self.supplier_record(account_id, supplier_id)
        rows = self.session.scalars(
            select(SupplierTransactionRecord)
            .where(
                SupplierTransactionRecord.account_id == account_id,
                SupplierTransactionRecord.supplier_id == supplier_id,
            )
            .order_by(SupplierTransactionRecord.id)
        ).all()
        return [supplier_transaction_from_record(r) for r in rows]

    def supplier_transaction_record(
        self, account_id: int, transaction_id: int,
    ) -> SupplierTransactionRecord:
        row = self.session.get(SupplierTransactionRecord, transaction_id)
        if row is None or row.account_id != account_id:
            raise RecordNotFoundError("SupplierTransaction", transaction_id)
        return row

    # ------------------------------------------------------------------
    # Incomes and expenses
    # ------------------------------------------------------------------

    def incomes(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[Income]:
        """Incomes dated within the inclusive bounds, oldest first."""
        stmt = select(RevenueRecord).where(RevenueRecord.account_id == account_id)
        if date_from is not None:
            stmt = stmt.where(RevenueRecord.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(RevenueRecord.date <= date_to)
        rows = self.session.scalars(stmt.order_by(RevenueRecord.date, RevenueRecord.id)).all()
        return [income_from_record(r) for r in rows]

    def expenses(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
        supplier_ids: Sequence[int] | None = None,
    ) -> list[Expense]:
        """Expenses dated within the inclusive bounds, oldest first."""
        stmt = select(ExpenseRecord).where(ExpenseRecord.account_id == account_id)
        if date_from is not None:
            stmt = stmt.where(ExpenseRecord.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(ExpenseRecord.date <= date_to)
        if supplier_ids is not None:
            stmt = stmt.where(ExpenseRecord.supplier_id.in_(list(supplier_ids)))
        rows = self.session.scalars(stmt.order_by(ExpenseRecord.date, ExpenseRecord.id)).all()
        return [expense_from_record(r) for r in rows]

    def revenue_record(self, account_id: int, revenue_id: int) -> RevenueRecord:
        row = self.session.get(RevenueRecord, revenue_id)
        if row is None or row.account_id != account_id:
            raise RecordNotFoundError("Income", revenue_id)
        return row

    def expense_record(self, account_id: int, expense_id: int) -> ExpenseRecord:
        row = self.session.get(ExpenseRecord, expense_id)
        if row is None or row.account_id != account_id:
            raise RecordNotFoundError("Expense", expense_id)
        return row

    def count_expenses_for_supplier(self, account_id: int, supplier_id: int) -> int:
        return len(self.session.scalars(
            select(ExpenseRecord.id).where(
                ExpenseRecord.account_id == account_id,
                ExpenseRecord.supplier_id == supplier_id,
            )
        ).all())
