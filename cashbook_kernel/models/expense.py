"""
Module: cashbook_kernel.models.expense
Responsibility: ORM persistence for expenses: supplier purchases (paid now or
    on credit), supplier payments, salaries and other costs.

Invariants enforced (by the writer, cashbook_engines.entries):
    - net_amount + vat_amount == amount.
    - SUPPLIER_PAYMENT rows carry no VAT.
    - paid_now is True for every type except SUPPLIER.
    - contributions_amount is zero unless type is SALARY.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cashbook_kernel.db.base import TrackedBase


class ExpenseRecord(TrackedBase):
    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_account_date", "account_id", "date"),
        Index("idx_expense_supplier", "supplier_id"),
    )

    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)

    # Gross, VAT included
    amount: Mapped[Decimal] = mapped_column(nullable=False)

    net_amount: Mapped[Decimal] = mapped_column(nullable=False)

    vat_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    vat_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # Employer contributions on top of gross salary
    contributions_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    # SUPPLIER | SUPPLIER_PAYMENT | SALARY | OTHER
    type: Mapped[str] = mapped_column(String(32), nullable=False)

    supplier_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id"), nullable=True)

    paid_now: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    note: Mapped[str | None] = mapped_column(String(2000), nullable=True)
