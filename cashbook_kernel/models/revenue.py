"""
Module: cashbook_kernel.models.revenue
Responsibility: ORM persistence for daily revenue entries.

Invariants enforced (by the writer, cashbook_engines.entries):
    - net_amount == amount - fee_amount.
    - LOCAL rows carry fee_percent == 0.
"""

import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cashbook_kernel.db.base import TrackedBase


class RevenueRecord(TrackedBase):
    __tablename__ = "revenues"

    __table_args__ = (Index("idx_revenue_account_date", "account_id", "date"),)

    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date(), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # LOCAL | DELIVERY
    channel: Mapped[str] = mapped_column(String(32), nullable=False, default="LOCAL")

    fee_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    fee_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    net_amount: Mapped[Decimal] = mapped_column(nullable=False)

    note: Mapped[str | None] = mapped_column(String(2000), nullable=True)
