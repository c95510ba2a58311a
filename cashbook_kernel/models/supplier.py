"""
Module: cashbook_kernel.models.supplier
Responsibility: ORM persistence for suppliers and their ledger transactions
    (invoices, payments, corrections).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Supplier number is unique within an account (uq_supplier_number).
    - Transaction amounts are non-negative magnitudes; the type decides the
      sign of their effect on the balance.
    - Transaction ``created_at`` is set by the application clock, so the
      ledger's same-day ordering is reproducible.

Failure modes:
    - IntegrityError on duplicate supplier number within an account.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cashbook_kernel.db.base import Base, TrackedBase


class SupplierRecord(TrackedBase):
    """A supplier the restaurant buys from."""

    __tablename__ = "suppliers"

    __table_args__ = (
        UniqueConstraint("account_id", "number", name="uq_supplier_number"),
        Index("idx_supplier_account", "account_id"),
    )

    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)

    # User-facing sequence number within the account
    number: Mapped[int] = mapped_column(nullable=False)

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    category: Mapped[str] = mapped_column(String(32), nullable=False, default="OTHER")

    # Default VAT rate for this supplier's invoices
    vat_percent: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Amount owed before the first recorded transaction
    opening_balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<SupplierRecord {self.id} #{self.number}>"


class SupplierTransactionRecord(Base):
    """An entry in a supplier's ledger."""

    __tablename__ = "supplier_transactions"

    __table_args__ = (
        Index("idx_supplier_tx_supplier", "account_id", "supplier_id"),
        Index("idx_supplier_tx_date", "date"),
    )

    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)

    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id"), nullable=False)

    # INVOICE | PAYMENT | CORRECTION
    type: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    # Rate resolved at entry time; NULL for payments and legacy rows
    vat_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    description: Mapped[str] = mapped_column(String(2000), nullable=False, default="")

    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    date: Mapped[datetime] = mapped_column(DateTime(), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
