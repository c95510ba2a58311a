"""
Module: cashbook_kernel.models.account
Responsibility: ORM persistence for accounts (one restaurant each) and their
    settings row.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - At most one settings row per account (uq_settings_account).
    - Account slug is unique.

Failure modes:
    - IntegrityError on duplicate slug or on a second settings row.
"""

from decimal import Decimal

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cashbook_kernel.db.base import TrackedBase


class Account(TrackedBase):
    """
    One restaurant's books.  Every other row carries its ``account_id``.
    """

    __tablename__ = "accounts"

    __table_args__ = (UniqueConstraint("slug", name="uq_account_slug"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    slug: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.slug}>"


class AccountSettingsRecord(TrackedBase):
    """
    Per-account settings.

    Created lazily with configured defaults the first time an account's
    settings are read.
    """

    __tablename__ = "account_settings"

    __table_args__ = (UniqueConstraint("account_id", name="uq_settings_account"),)

    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)

    # Cash balance before the first recorded day
    starting_balance: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    default_vat_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    delivery_fee_percent: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="RSD")
